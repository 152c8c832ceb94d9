"""Exceptions raised around the mining engine."""
from __future__ import annotations


class InvalidParameter(ValueError):
    """A threshold or limit is outside its allowed range."""

    def __init__(self, name: str, value: object, reason: str) -> None:
        super().__init__(f"{name}={value!r} {reason}")
        self.name = name
        self.value = value
        self.reason = reason


class MiningCancelled(RuntimeError):
    """The caller's cancellation hook fired between mining levels."""

    def __init__(self, level: int) -> None:
        super().__init__(f"Mining cancelled before level {level}")
        self.level = level


class InsufficientData(RuntimeError):
    """Too few baskets survived loading to mine meaningful rules."""

    def __init__(self, transactions_found: int, required: int) -> None:
        super().__init__(
            f"Not enough order data for analysis: {transactions_found} transactions, need {required}"
        )
        self.transactions_found = transactions_found
        self.required = required
