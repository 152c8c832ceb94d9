"""Read-side lookup of FBT suggestions from each shop's gold zone."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List

from ..data.gold import gold_table_path


class RecommendationIndex:
    """Serves ranked suggestions per shop and anchor product.

    Each shop's generation run writes under ``<root>/<shop>/gold``. The table
    is re-read on every lookup so a fresh run is visible without restarting
    the API.
    """

    def __init__(self, lakehouse_root: Path) -> None:
        self.lakehouse_root = lakehouse_root

    def _by_product(self, shop: str) -> Dict[str, List[Dict[str, object]]]:
        path = gold_table_path(self.lakehouse_root / shop / "gold", "fbt_suggestions")
        if not path.exists():
            return {}
        with path.open() as handle:
            rows = json.load(handle)
        grouped: Dict[str, List[Dict[str, object]]] = {}
        for row in rows:
            grouped.setdefault(str(row["product_id"]), []).append(row)
        return grouped

    def recommendations_for(self, shop: str, product_id: str, limit: int) -> List[Dict[str, object]]:
        return self._by_product(shop).get(product_id, [])[:limit]

    def anchors(self, shop: str) -> List[str]:
        return sorted(self._by_product(shop))
