"""Gold-zone tables written by a generation run."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List

from ..config import LakehousePaths

GOLD_TABLES = {
    "assoc_rules": "assoc_rules.json",
    "fbt_suggestions": "fbt_suggestions.json",
}


def gold_table_path(gold_dir: Path, table_name: str) -> Path:
    try:
        return gold_dir / GOLD_TABLES[table_name]
    except KeyError:
        raise KeyError(f"Unsupported gold table: {table_name}") from None


def write_gold_table(rows: List[Dict[str, object]], lakehouse: LakehousePaths, table_name: str) -> Path:
    target = gold_table_path(lakehouse.gold, table_name)
    with target.open("w") as handle:
        json.dump(rows, handle, indent=2)
    return target
