"""Service utilities for operational tooling around the FBT pipeline."""

from .recommendation_index import RecommendationIndex
from .settings_store import SettingsStore, ShopSettings

__all__ = ["RecommendationIndex", "SettingsStore", "ShopSettings"]
