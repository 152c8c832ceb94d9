"""Offline evaluation of FBT suggestions against held-out baskets."""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Sequence, Set, Tuple

from ..models.itemsets import Transaction
from ..models.suggestions import FBTSuggestion


def precision_at_k(recommended: Sequence[str], relevant: Set[str], k: int) -> float:
    """Compute Precision@K for a single query."""
    if k <= 0:
        return 0.0
    top_k = recommended[:k]
    if not top_k:
        return 0.0
    hits = sum(1 for item in top_k if item in relevant)
    return hits / len(top_k)


def recall_at_k(recommended: Sequence[str], relevant: Set[str], k: int) -> float:
    """Compute Recall@K for a single query."""
    if not relevant:
        return 0.0
    hits = sum(1 for item in recommended[:k] if item in relevant)
    return hits / len(relevant)


def average_precision_at_k(recommended: Sequence[str], relevant: Set[str], k: int) -> float:
    if not relevant:
        return 0.0
    hits = 0
    precision_sum = 0.0
    for idx, item in enumerate(recommended[:k], start=1):
        if item in relevant:
            hits += 1
            precision_sum += hits / idx
    if hits == 0:
        return 0.0
    return precision_sum / min(len(relevant), k)


def split_holdout(
    transactions: Sequence[Transaction], holdout_fraction: float
) -> Tuple[List[Transaction], List[Transaction]]:
    """Split baskets chronologically; the newest ``holdout_fraction`` is held out.

    Baskets without a timestamp keep their input order and sort first.
    """
    if not 0.0 <= holdout_fraction < 1.0:
        raise ValueError("holdout_fraction must be in [0, 1)")
    ordered = sorted(
        enumerate(transactions),
        key=lambda pair: (pair[1].timestamp or datetime.min, pair[0]),
    )
    cut = len(ordered) - int(len(ordered) * holdout_fraction)
    return [t for _, t in ordered[:cut]], [t for _, t in ordered[cut:]]


def recommended_items(suggestions: Sequence[FBTSuggestion]) -> Dict[str, List[str]]:
    """Flatten each anchor's ranked bundles into a de-duplicated item list."""
    per_anchor: Dict[str, List[str]] = {}
    for suggestion in suggestions:
        items = per_anchor.setdefault(suggestion.product_id, [])
        for product_id in suggestion.bundled_products:
            if product_id not in items:
                items.append(product_id)
    return per_anchor


@dataclass
class EvaluationReport:
    queries: int
    precision: float
    recall: float
    map_score: float


def evaluate_suggestions(
    suggestions: Sequence[FBTSuggestion],
    holdout: Sequence[Transaction],
    k: int,
) -> EvaluationReport:
    """Score suggestions on every (basket, anchor) pair of the holdout.

    Each anchor found in a held-out basket is one query; the other items of
    that basket are the relevant set.
    """
    per_anchor = recommended_items(suggestions)
    queries = 0
    precision = recall = ap = 0.0
    for transaction in holdout:
        for anchor in transaction.items:
            recommended = per_anchor.get(anchor)
            relevant = set(transaction.items) - {anchor}
            if not recommended or not relevant:
                continue
            queries += 1
            precision += precision_at_k(recommended, relevant, k)
            recall += recall_at_k(recommended, relevant, k)
            ap += average_precision_at_k(recommended, relevant, k)
    if not queries:
        return EvaluationReport(queries=0, precision=0.0, recall=0.0, map_score=0.0)
    return EvaluationReport(
        queries=queries,
        precision=precision / queries,
        recall=recall / queries,
        map_score=ap / queries,
    )
