"""Per-shop FBT settings persisted for the admin API."""
from __future__ import annotations

import csv
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from threading import Lock
from typing import Dict, Iterable, List, Optional

from ..config import LoaderConfig, MiningConfig


@dataclass
class ShopSettings:
    shop: str
    is_enabled: bool = False
    min_support: float = MiningConfig.min_support
    min_confidence: float = MiningConfig.min_confidence
    min_lift: float = MiningConfig.min_lift
    max_per_product: int = MiningConfig.max_per_product
    lookback_days: int = LoaderConfig.lookback_days

    def mining_config(self) -> MiningConfig:
        return MiningConfig(
            min_support=self.min_support,
            min_confidence=self.min_confidence,
            min_lift=self.min_lift,
            max_per_product=self.max_per_product,
        )

    def loader_config(self) -> LoaderConfig:
        return LoaderConfig(lookback_days=self.lookback_days)


FIELDNAMES = [f.name for f in fields(ShopSettings)]


def _from_row(row: Dict[str, str]) -> ShopSettings:
    return ShopSettings(
        shop=row["shop"],
        is_enabled=row["is_enabled"] == "True",
        min_support=float(row["min_support"]),
        min_confidence=float(row["min_confidence"]),
        min_lift=float(row["min_lift"]),
        max_per_product=int(row["max_per_product"]),
        lookback_days=int(row["lookback_days"]),
    )


class SettingsStore:
    """CSV-backed store of shop settings used by the admin API."""

    def __init__(self, path: Path) -> None:
        self.path = path
        self._lock = Lock()

    def list_settings(self) -> List[ShopSettings]:
        if not self.path.exists():
            return []
        with self.path.open(newline="") as handle:
            return [_from_row(row) for row in csv.DictReader(handle)]

    def get(self, shop: str) -> Optional[ShopSettings]:
        for settings in self.list_settings():
            if settings.shop == shop:
                return settings
        return None

    def get_or_default(self, shop: str) -> ShopSettings:
        return self.get(shop) or ShopSettings(shop=shop)

    def upsert(self, settings: ShopSettings) -> ShopSettings:
        """Insert or replace the settings of one shop.

        The backing file is rewritten on every call to keep the implementation
        straightforward and avoid partial writes.
        """

        with self._lock:
            current: Dict[str, ShopSettings] = {
                existing.shop: existing for existing in self.list_settings()
            }
            current[settings.shop] = settings
            self._write_all(current.values())
        return settings

    def _write_all(self, records: Iterable[ShopSettings]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=FIELDNAMES)
            writer.writeheader()
            for record in records:
                writer.writerow(asdict(record))
