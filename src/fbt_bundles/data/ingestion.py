"""Order ingestion helpers for the FBT pipeline."""
from __future__ import annotations

import csv
import json
import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from ..config import LakehousePaths, LoaderConfig
from ..models.itemsets import Transaction

logger = logging.getLogger(__name__)


@dataclass
class OrderRecord:
    order_id: str
    product_id: str
    quantity: int
    unit_price: float
    order_ts: str


def read_orders_csv(path: Path) -> List[OrderRecord]:
    records: List[OrderRecord] = []
    with path.open() as handle:
        reader = csv.DictReader(handle)
        for row in reader:
            records.append(
                OrderRecord(
                    order_id=row["order_id"],
                    product_id=row["product_id"],
                    quantity=int(float(row.get("quantity") or 0) or 0),
                    unit_price=float(row.get("unit_price") or 0.0),
                    order_ts=row["order_ts"],
                )
            )
    return records


def _write_json(records: List[OrderRecord], target: Path) -> Path:
    target.parent.mkdir(parents=True, exist_ok=True)
    with target.open("w") as handle:
        json.dump([asdict(record) for record in records], handle, indent=2)
    return target


def _read_json(path: Path) -> List[OrderRecord]:
    with path.open() as handle:
        raw = json.load(handle)
    return [OrderRecord(**row) for row in raw]


def write_bronze_orders(records: List[OrderRecord], lakehouse: LakehousePaths) -> Path:
    return _write_json(records, lakehouse.bronze / "orders_raw.json")


def load_bronze_orders(lakehouse: LakehousePaths) -> List[OrderRecord]:
    return _read_json(lakehouse.bronze / "orders_raw.json")


def cleanse_orders(bronze_records: List[OrderRecord]) -> List[OrderRecord]:
    seen = set()
    cleansed: List[OrderRecord] = []
    for record in bronze_records:
        if not record.order_id or not record.product_id or not record.order_ts:
            continue
        try:
            parse_timestamp(record.order_ts)
        except ValueError:
            continue
        key = (record.order_id, record.product_id)
        if key in seen:
            continue
        seen.add(key)
        cleansed.append(
            OrderRecord(
                order_id=record.order_id,
                product_id=record.product_id,
                quantity=record.quantity if record.quantity > 0 else 1,
                unit_price=record.unit_price if record.unit_price >= 0 else 0.0,
                order_ts=record.order_ts,
            )
        )
    dropped = len(bronze_records) - len(cleansed)
    if dropped:
        logger.info("Dropped %d invalid or duplicate order lines", dropped)
    return cleansed


def write_silver_orders(records: List[OrderRecord], lakehouse: LakehousePaths) -> Path:
    return _write_json(records, lakehouse.silver / "orders.json")


def load_silver_orders(lakehouse: LakehousePaths) -> List[OrderRecord]:
    return _read_json(lakehouse.silver / "orders.json")


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_timestamp(value: str) -> datetime:
    return to_naive_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


def build_transactions(
    orders: Sequence[OrderRecord],
    loader: LoaderConfig,
    as_of: Optional[datetime] = None,
) -> List[Transaction]:
    """Group order lines into de-duplicated baskets.

    Orders older than ``loader.lookback_days`` before ``as_of`` (the newest
    order when omitted) are ignored. At most ``loader.max_orders`` orders
    inside that window are read. Baskets smaller than
    ``loader.min_basket_size`` are dropped and those larger than
    ``loader.max_basket_size`` are truncated.
    """
    baskets: Dict[str, List[str]] = {}
    timestamps: Dict[str, datetime] = {}
    for record in orders:
        if record.order_id not in baskets:
            baskets[record.order_id] = []
            timestamps[record.order_id] = parse_timestamp(record.order_ts)
        basket = baskets[record.order_id]
        if record.product_id not in basket:
            basket.append(record.product_id)

    if not baskets:
        return []

    reference = to_naive_utc(as_of) if as_of else max(timestamps.values())
    cutoff = reference - timedelta(days=loader.lookback_days)

    transactions: List[Transaction] = []
    truncated = 0
    in_window = 0
    for order_id, items in baskets.items():
        timestamp = timestamps[order_id]
        if timestamp < cutoff or timestamp > reference:
            continue
        in_window += 1
        if in_window > loader.max_orders:
            break
        if len(items) < loader.min_basket_size:
            continue
        if len(items) > loader.max_basket_size:
            truncated += 1
            items = items[: loader.max_basket_size]
        transactions.append(Transaction(order_id=order_id, items=tuple(sorted(items)), timestamp=timestamp))

    if truncated:
        logger.warning("Truncated %d baskets to %d items", truncated, loader.max_basket_size)
    logger.info("Built %d transactions from %d orders", len(transactions), len(baskets))
    return transactions
