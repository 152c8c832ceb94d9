from pathlib import Path

from fbt_bundles.config import MiningConfig
from fbt_bundles.service.settings_store import SettingsStore, ShopSettings


def test_settings_store_roundtrip(tmp_path: Path) -> None:
    store = SettingsStore(tmp_path / "settings.csv")

    record = ShopSettings(
        shop="demo.example.com",
        is_enabled=True,
        min_support=0.05,
        min_confidence=0.4,
        min_lift=1.2,
        max_per_product=2,
        lookback_days=30,
    )

    store.upsert(record)
    stored = store.list_settings()

    assert len(stored) == 1
    assert stored[0] == record


def test_settings_store_upsert_overwrites(tmp_path: Path) -> None:
    store = SettingsStore(tmp_path / "settings.csv")

    store.upsert(ShopSettings(shop="demo.example.com"))
    updated = ShopSettings(shop="demo.example.com", is_enabled=True, min_support=0.2)
    store.upsert(updated)
    store.upsert(ShopSettings(shop="other.example.com"))

    assert len(store.list_settings()) == 2
    assert store.get("demo.example.com") == updated


def test_missing_shop_gets_defaults(tmp_path: Path) -> None:
    store = SettingsStore(tmp_path / "settings.csv")

    assert store.get("new.example.com") is None
    settings = store.get_or_default("new.example.com")
    assert settings.is_enabled is False
    assert settings.mining_config() == MiningConfig()
    assert settings.loader_config().lookback_days == 90
