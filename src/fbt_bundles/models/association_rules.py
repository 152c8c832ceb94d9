"""Association rules derived from frequent itemsets."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from .itemsets import ItemSet, ItemSetKey, Transaction, proper_subsets, support_of

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssociationRule:
    antecedent: Tuple[str, ...]
    consequent: Tuple[str, ...]
    support: float
    confidence: float
    lift: float

    def to_row(self) -> Dict[str, object]:
        return {
            "lhs": list(self.antecedent),
            "rhs": list(self.consequent),
            "support": self.support,
            "confidence": self.confidence,
            "lift": self.lift,
        }


def build_lookup(itemsets: Sequence[ItemSet]) -> Dict[ItemSetKey, ItemSet]:
    return {itemset.key: itemset for itemset in itemsets}


def generate_association_rules(
    itemsets: Sequence[ItemSet],
    transactions: Sequence[Transaction],
    min_confidence: float,
    min_lift: float,
) -> List[AssociationRule]:
    """Split every frequent itemset into antecedent/consequent rules.

    Antecedents that were not themselves mined as frequent are skipped. The
    consequent's support is always counted again over ``transactions`` because
    it may never have been evaluated on its own.
    """
    lookup = build_lookup(itemsets)
    rules: List[AssociationRule] = []
    for itemset in itemsets:
        if len(itemset) < 2:
            continue
        for antecedent in proper_subsets(itemset.items):
            antecedent_set = lookup.get(ItemSetKey(antecedent))
            if antecedent_set is None or not antecedent_set.support:
                continue
            consequent = tuple(item for item in itemset.items if item not in antecedent)

            confidence = itemset.support / antecedent_set.support
            consequent_support = support_of(consequent, transactions)
            lift = confidence / consequent_support if consequent_support > 0 else 0.0

            if confidence >= min_confidence and lift >= min_lift:
                rules.append(
                    AssociationRule(
                        antecedent=antecedent,
                        consequent=consequent,
                        support=itemset.support,
                        confidence=confidence,
                        lift=lift,
                    )
                )
    logger.debug("Generated %d rules from %d itemsets", len(rules), len(itemsets))
    return rules
