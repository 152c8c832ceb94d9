"""Frequent itemset mining using a level-wise Apriori search.

Every itemset in this module is addressed through :class:`ItemSetKey`, a
sorted tuple of item ids. Subsets, prefix joins and antecedent lookups all rely
on the same ordering, so keys built anywhere in the pipeline compare equal
whenever they describe the same set of items.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from ..errors import MiningCancelled

logger = logging.getLogger(__name__)

DEFAULT_MAX_LEVEL = 10


@dataclass(frozen=True)
class Transaction:
    order_id: str
    items: Tuple[str, ...]
    timestamp: Optional[datetime] = None
    basket: FrozenSet[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "items", tuple(self.items))
        object.__setattr__(self, "basket", frozenset(self.items))

    def contains_all(self, items: Iterable[str]) -> bool:
        return self.basket.issuperset(items)


@dataclass(frozen=True)
class ItemSetKey:
    """Canonical lookup key: item ids in ascending order, no duplicates."""

    items: Tuple[str, ...]

    def __post_init__(self) -> None:
        items = tuple(self.items)
        if any(left >= right for left, right in zip(items, items[1:])):
            raise ValueError(f"ItemSetKey items must be strictly ascending: {items!r}")
        object.__setattr__(self, "items", items)

    @classmethod
    def of(cls, items: Iterable[str]) -> "ItemSetKey":
        return cls(tuple(sorted(set(items))))

    @property
    def prefix(self) -> Tuple[str, ...]:
        return self.items[:-1]

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class ItemSet:
    key: ItemSetKey
    support: float
    count: int

    @property
    def items(self) -> Tuple[str, ...]:
        return self.key.items

    def __len__(self) -> int:
        return len(self.key)


def proper_subsets(items: Sequence[str]) -> List[Tuple[str, ...]]:
    """Return every proper non-empty subset of ``items``.

    Subsets follow the bit patterns ``1 .. 2**n - 2`` where bit ``j`` selects
    ``items[j]``. Each subset keeps the order of ``items``, so subsets of a
    canonical key are canonical too.
    """
    n = len(items)
    subsets: List[Tuple[str, ...]] = []
    for mask in range(1, (1 << n) - 1):
        subsets.append(tuple(items[j] for j in range(n) if mask & (1 << j)))
    return subsets


def count_support(items: Iterable[str], transactions: Sequence[Transaction]) -> int:
    """Count transactions holding every item, by a full scan."""
    wanted = tuple(items)
    return sum(1 for transaction in transactions if transaction.contains_all(wanted))


def support_of(items: Iterable[str], transactions: Sequence[Transaction]) -> float:
    if not transactions:
        return 0.0
    return count_support(items, transactions) / len(transactions)


def sanitize_transactions(transactions: Iterable[Transaction]) -> List[Transaction]:
    """De-duplicate and sort basket items, dropping baskets left empty."""
    cleaned: List[Transaction] = []
    for transaction in transactions:
        items = ItemSetKey.of(item for item in transaction.items if item).items
        if not items:
            continue
        cleaned.append(Transaction(transaction.order_id, items, transaction.timestamp))
    return cleaned


def _first_level_candidates(transactions: Sequence[Transaction]) -> List[ItemSetKey]:
    distinct = {item for transaction in transactions for item in transaction.items}
    return [ItemSetKey((item,)) for item in sorted(distinct)]


def _join_candidates(previous: Dict[ItemSetKey, ItemSet]) -> List[ItemSetKey]:
    """Join (k-1)-itemsets that share their first k-2 items.

    Candidates with an infrequent (k-1)-subset are pruned; they could never
    clear the support threshold.
    """
    by_prefix: Dict[Tuple[str, ...], List[str]] = {}
    for key in previous:
        by_prefix.setdefault(key.prefix, []).append(key.items[-1])

    candidates: Dict[ItemSetKey, None] = {}
    for prefix, tails in by_prefix.items():
        tails = sorted(tails)
        for i, left in enumerate(tails):
            for right in tails[i + 1:]:
                candidate = ItemSetKey(prefix + (left, right))
                if candidate in candidates:
                    continue
                if all(
                    ItemSetKey(candidate.items[:j] + candidate.items[j + 1:]) in previous
                    for j in range(len(candidate))
                ):
                    candidates[candidate] = None
    return sorted(candidates, key=lambda key: key.items)


def mine_frequent_itemsets(
    transactions: Sequence[Transaction],
    min_support: float,
    max_level: int = DEFAULT_MAX_LEVEL,
    should_cancel: Optional[Callable[[], bool]] = None,
) -> List[ItemSet]:
    """Return every itemset whose support is at least ``min_support``.

    ``min_support`` is expected to be validated by the caller. The search
    stops once a level yields no frequent itemsets or ``max_level`` is reached.
    """
    if not transactions:
        return []

    total = len(transactions)
    frequent: List[ItemSet] = []
    previous: Dict[ItemSetKey, ItemSet] = {}
    level = 1

    while level <= max_level:
        if should_cancel is not None and should_cancel():
            raise MiningCancelled(level)
        candidates = _first_level_candidates(transactions) if level == 1 else _join_candidates(previous)

        current: Dict[ItemSetKey, ItemSet] = {}
        for key in candidates:
            count = count_support(key.items, transactions)
            support = count / total
            if support >= min_support:
                current[key] = ItemSet(key=key, support=support, count=count)

        logger.debug(
            "Level %d: %d candidates, %d frequent", level, len(candidates), len(current)
        )
        if not current:
            break
        frequent.extend(current.values())
        previous = current
        level += 1
    else:
        if _join_candidates(previous):
            logger.warning("Stopped itemset search at level cap %d", max_level)

    return frequent
