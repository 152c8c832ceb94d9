"""FastAPI application exposing FBT settings, generation and lookups."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import asdict
from pathlib import Path
from typing import Dict, List

from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from fbt_bundles.config import PipelineConfig
from fbt_bundles.errors import InsufficientData, InvalidParameter
from fbt_bundles.service.recommendation_index import RecommendationIndex
from fbt_bundles.service.settings_store import SettingsStore, ShopSettings
from fbt_bundles.workflows.pipeline import run_pipeline

logger = logging.getLogger(__name__)


def _resolve_settings_path() -> Path:
    configured = os.environ.get("FBT_SETTINGS_PATH")
    if configured:
        return Path(configured)
    return Path("data/fbt_settings.csv")


def _resolve_orders_path(shop: str) -> Path:
    # ORDERS_SOURCE may contain a {shop} placeholder for per-shop exports.
    configured = os.environ.get("ORDERS_SOURCE")
    if configured:
        return Path(configured.format(shop=shop))
    return Path("data/orders.csv")


def _resolve_lakehouse_root() -> Path:
    configured = os.environ.get("LAKEHOUSE_ROOT")
    if configured:
        return Path(configured)
    return Path(".lakehouse")


app = FastAPI(title="Frequently Bought Together Admin")
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
settings_store = SettingsStore(_resolve_settings_path())
lakehouse_root = _resolve_lakehouse_root()
recommendation_index = RecommendationIndex(lakehouse_root)

SHOP_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


def _shop_root(shop: str) -> Path:
    if not SHOP_PATTERN.match(shop):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="invalid shop name",
        )
    return lakehouse_root / shop


class SettingsPayload(BaseModel):
    is_enabled: bool = False
    min_support: float = Field(default=0.01, gt=0.0, le=1.0)
    min_confidence: float = Field(default=0.3, ge=0.0, le=1.0)
    min_lift: float = Field(default=1.0, ge=0.0)
    max_per_product: int = Field(default=3, ge=0)
    lookback_days: int = Field(default=90, ge=0)

    def to_settings(self, shop: str) -> ShopSettings:
        return ShopSettings(shop=shop, **self.model_dump())


@app.get("/api/fbt/config/{shop}")
def api_get_settings(shop: str) -> Dict[str, object]:
    return asdict(settings_store.get_or_default(shop))


@app.post("/api/fbt/config/{shop}")
def api_update_settings(shop: str, payload: SettingsPayload) -> Dict[str, object]:
    settings = settings_store.upsert(payload.to_settings(shop))
    return asdict(settings)


@app.post("/api/fbt/generate/{shop}")
def api_generate(shop: str) -> Dict[str, object]:
    settings = settings_store.get(shop)
    if settings is None or not settings.is_enabled:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="FBT is not enabled for this shop",
        )
    config = PipelineConfig(
        lakehouse_root=_shop_root(shop),
        orders_source=_resolve_orders_path(shop),
        mining=settings.mining_config(),
        loader=settings.loader_config(),
    )
    try:
        artifacts = run_pipeline(config)
    except InvalidParameter as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    except InsufficientData as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "Not enough order data for analysis",
                "transactions_found": exc.transactions_found,
            },
        ) from exc
    logger.info("Generated %d suggestions for %s", len(artifacts.fbt_suggestions), shop)
    return {
        "success": True,
        "transactions_analyzed": len(artifacts.transactions),
        "suggestions_created": len(artifacts.fbt_suggestions),
    }


@app.get("/api/fbt/{shop}/recommendations")
def api_list_anchors(shop: str) -> List[str]:
    _shop_root(shop)
    return recommendation_index.anchors(shop)


@app.get("/api/fbt/{shop}/recommendations/{product_id}")
def api_recommendations(shop: str, product_id: str, limit: int = 3) -> Dict[str, object]:
    if limit <= 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="limit must be positive",
        )
    _shop_root(shop)
    recommendations = recommendation_index.recommendations_for(shop, product_id, limit)
    return {"shop": shop, "product_id": product_id, "recommendations": recommendations}
