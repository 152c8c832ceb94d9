"""End-to-end workflow: orders CSV to ranked FBT suggestions in the gold zone."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from ..config import PipelineConfig
from ..data import gold
from ..data.ingestion import (
    OrderRecord,
    build_transactions,
    cleanse_orders,
    load_bronze_orders,
    load_silver_orders,
    read_orders_csv,
    write_bronze_orders,
    write_silver_orders,
)
from ..errors import InsufficientData
from ..models.apriori import AprioriEngine, FBTResult
from ..models.itemsets import Transaction

logger = logging.getLogger(__name__)


@dataclass
class PipelineArtifacts:
    bronze_orders: List[OrderRecord]
    silver_orders: List[OrderRecord]
    transactions: List[Transaction]
    itemset_count: int
    assoc_rules: List[Dict[str, object]]
    fbt_suggestions: List[Dict[str, object]]

    def __getitem__(self, item: str):
        return {
            "bronze_orders": self.bronze_orders,
            "silver_orders": self.silver_orders,
            "transactions": self.transactions,
            "itemset_count": self.itemset_count,
            "assoc_rules": self.assoc_rules,
            "fbt_suggestions": self.fbt_suggestions,
        }[item]


def run_pipeline(
    config: PipelineConfig,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> PipelineArtifacts:
    engine = AprioriEngine(config.mining, should_cancel=should_cancel)
    config.loader.validate()
    lakehouse = config.lakehouse

    raw_orders = read_orders_csv(config.orders_source)
    write_bronze_orders(raw_orders, lakehouse)
    bronze_orders = load_bronze_orders(lakehouse)

    cleansed_orders = cleanse_orders(bronze_orders)
    write_silver_orders(cleansed_orders, lakehouse)
    silver_orders = load_silver_orders(lakehouse)

    transactions = build_transactions(silver_orders, config.loader, as_of=config.as_of)
    if len(transactions) < config.loader.min_transactions:
        raise InsufficientData(len(transactions), config.loader.min_transactions)

    result: FBTResult = engine.suggestions(transactions)

    rule_rows = [rule.to_row() for rule in result.rules]
    suggestion_rows = [suggestion.to_row() for suggestion in result.suggestions]
    gold.write_gold_table(rule_rows, lakehouse, "assoc_rules")
    gold.write_gold_table(suggestion_rows, lakehouse, "fbt_suggestions")
    logger.info("Wrote %d suggestions under %s", len(suggestion_rows), lakehouse.gold)

    return PipelineArtifacts(
        bronze_orders=bronze_orders,
        silver_orders=silver_orders,
        transactions=transactions,
        itemset_count=len(result.itemsets),
        assoc_rules=rule_rows,
        fbt_suggestions=suggestion_rows,
    )
