"""Configuration models for the frequently-bought-together pipeline."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional

from .errors import InvalidParameter


@dataclass
class LakehousePaths:
    """Local directory layout that mimics a bronze/silver/gold lakehouse."""

    root: Path
    bronze: Path = field(init=False)
    silver: Path = field(init=False)
    gold: Path = field(init=False)

    def __post_init__(self) -> None:
        self.bronze = self.root / "bronze"
        self.silver = self.root / "silver"
        self.gold = self.root / "gold"
        for path in (self.bronze, self.silver, self.gold):
            path.mkdir(parents=True, exist_ok=True)


@dataclass
class MiningConfig:
    """Thresholds used by the Apriori engine.

    ``max_level`` caps the itemset size the miner will search. It only guards
    against pathological input; results below the cap are exact.
    """

    min_support: float = 0.01
    min_confidence: float = 0.3
    min_lift: float = 1.0
    max_per_product: int = 3
    max_level: int = 10

    def validate(self) -> "MiningConfig":
        if not 0.0 < self.min_support <= 1.0:
            raise InvalidParameter("min_support", self.min_support, "must be in (0, 1]")
        if not 0.0 <= self.min_confidence <= 1.0:
            raise InvalidParameter("min_confidence", self.min_confidence, "must be in [0, 1]")
        if self.min_lift < 0.0:
            raise InvalidParameter("min_lift", self.min_lift, "must be >= 0")
        if self.max_per_product < 0:
            raise InvalidParameter("max_per_product", self.max_per_product, "must be >= 0")
        if self.max_level < 1:
            raise InvalidParameter("max_level", self.max_level, "must be >= 1")
        return self


@dataclass
class LoaderConfig:
    """Limits applied while turning order lines into baskets."""

    lookback_days: int = 90
    max_orders: int = 10000
    min_basket_size: int = 2
    max_basket_size: int = 50
    min_transactions: int = 10

    def validate(self) -> "LoaderConfig":
        if self.lookback_days < 0:
            raise InvalidParameter("lookback_days", self.lookback_days, "must be >= 0")
        if self.max_orders < 1:
            raise InvalidParameter("max_orders", self.max_orders, "must be >= 1")
        if self.min_basket_size < 1:
            raise InvalidParameter("min_basket_size", self.min_basket_size, "must be >= 1")
        if self.max_basket_size < self.min_basket_size:
            raise InvalidParameter(
                "max_basket_size", self.max_basket_size, "must be >= min_basket_size"
            )
        if self.min_transactions < 0:
            raise InvalidParameter("min_transactions", self.min_transactions, "must be >= 0")
        return self


@dataclass
class PipelineConfig:
    """Aggregate configuration for one generation run."""

    lakehouse_root: Path
    orders_source: Path
    mining: MiningConfig = field(default_factory=MiningConfig)
    loader: LoaderConfig = field(default_factory=LoaderConfig)
    # Reference point for the lookback window; defaults to the newest order.
    as_of: Optional[datetime] = None

    @property
    def lakehouse(self) -> LakehousePaths:
        return LakehousePaths(self.lakehouse_root)
