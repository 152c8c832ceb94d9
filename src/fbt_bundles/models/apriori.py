"""Stateless Apriori engine that turns baskets into FBT suggestions."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Sequence

from ..config import MiningConfig
from .association_rules import AssociationRule, generate_association_rules
from .itemsets import ItemSet, Transaction, mine_frequent_itemsets
from .suggestions import FBTSuggestion, rank_suggestions

logger = logging.getLogger(__name__)


@dataclass
class FBTResult:
    itemsets: List[ItemSet]
    rules: List[AssociationRule]
    suggestions: List[FBTSuggestion]


@dataclass(frozen=True)
class AprioriEngine:
    """One mining configuration, applied to whatever baskets it is given.

    The engine keeps no state between calls, so a new instance per shop or
    time window is as cheap as reusing one.
    """

    config: MiningConfig = field(default_factory=MiningConfig)
    should_cancel: Optional[Callable[[], bool]] = None

    def __post_init__(self) -> None:
        self.config.validate()

    def frequent_itemsets(self, transactions: Sequence[Transaction]) -> List[ItemSet]:
        return mine_frequent_itemsets(
            transactions,
            self.config.min_support,
            max_level=self.config.max_level,
            should_cancel=self.should_cancel,
        )

    def association_rules(
        self, transactions: Sequence[Transaction], itemsets: Sequence[ItemSet]
    ) -> List[AssociationRule]:
        return generate_association_rules(
            itemsets,
            transactions,
            self.config.min_confidence,
            self.config.min_lift,
        )

    def suggestions(self, transactions: Sequence[Transaction]) -> FBTResult:
        itemsets = self.frequent_itemsets(transactions)
        rules = self.association_rules(transactions, itemsets)
        suggestions = rank_suggestions(rules, self.config.max_per_product)
        logger.info(
            "Mined %d transactions: %d itemsets, %d rules, %d suggestions",
            len(transactions),
            len(itemsets),
            len(rules),
            len(suggestions),
        )
        return FBTResult(itemsets=itemsets, rules=rules, suggestions=suggestions)
