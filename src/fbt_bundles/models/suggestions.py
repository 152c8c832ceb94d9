"""Per-product ranking of association rules into FBT suggestions."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from .association_rules import AssociationRule


@dataclass(frozen=True)
class FBTSuggestion:
    product_id: str
    bundled_products: Tuple[str, ...]
    support: float
    confidence: float
    lift: float

    def to_row(self) -> Dict[str, object]:
        return {
            "product_id": self.product_id,
            "bundled_products": list(self.bundled_products),
            "support": self.support,
            "confidence": self.confidence,
            "lift": self.lift,
        }


def ranking_key(rule: AssociationRule) -> Tuple[float, float, float]:
    # confidence, then lift, then support; all descending
    return (-rule.confidence, -rule.lift, -rule.support)


def rank_suggestions(rules: Sequence[AssociationRule], max_per_product: int) -> List[FBTSuggestion]:
    """Group single-anchor rules by product and keep the best of each group.

    Anchors appear in the order they are first seen among ``rules``.
    """
    by_anchor: Dict[str, List[AssociationRule]] = {}
    for rule in rules:
        if len(rule.antecedent) != 1:
            continue
        by_anchor.setdefault(rule.antecedent[0], []).append(rule)

    suggestions: List[FBTSuggestion] = []
    for product_id, group in by_anchor.items():
        for rule in sorted(group, key=ranking_key)[:max_per_product]:
            suggestions.append(
                FBTSuggestion(
                    product_id=product_id,
                    bundled_products=rule.consequent,
                    support=rule.support,
                    confidence=rule.confidence,
                    lift=rule.lift,
                )
            )
    return suggestions
