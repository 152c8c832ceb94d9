import csv
import json
from importlib import reload

import pytest

pytest.importorskip("fastapi")
from fastapi.testclient import TestClient


def _write_orders(path, baskets):
    with path.open("w", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=["order_id", "product_id", "quantity", "unit_price", "order_ts"])
        writer.writeheader()
        for idx, basket in enumerate(baskets):
            for product_id in basket:
                writer.writerow(
                    {
                        "order_id": f"order-{idx}",
                        "product_id": product_id,
                        "quantity": 1,
                        "unit_price": 9.99,
                        "order_ts": f"2026-04-{idx + 1:02d}T08:00:00",
                    }
                )


@pytest.fixture()
def api_client(tmp_path, monkeypatch):
    settings_path = tmp_path / "settings.csv"
    lakehouse_root = tmp_path / "lakehouse"
    gold_dir = lakehouse_root / "shop-a" / "gold"
    gold_dir.mkdir(parents=True)
    sample_suggestions = [
        {"product_id": "SKU-1", "bundled_products": ["SKU-2"], "support": 0.3, "confidence": 0.8, "lift": 1.6},
        {"product_id": "SKU-1", "bundled_products": ["SKU-3"], "support": 0.2, "confidence": 0.6, "lift": 1.2},
        {"product_id": "SKU-2", "bundled_products": ["SKU-1"], "support": 0.3, "confidence": 0.7, "lift": 1.6},
    ]
    with (gold_dir / "fbt_suggestions.json").open("w") as handle:
        json.dump(sample_suggestions, handle)

    _write_orders(tmp_path / "demo-orders.csv", [["SKU-1", "SKU-2"]] * 8 + [["SKU-3", "SKU-4"]] * 4)
    _write_orders(tmp_path / "shop-b-orders.csv", [["SKU-7", "SKU-8"]] * 12)

    monkeypatch.setenv("FBT_SETTINGS_PATH", str(settings_path))
    monkeypatch.setenv("ORDERS_SOURCE", str(tmp_path / "{shop}-orders.csv"))
    monkeypatch.setenv("LAKEHOUSE_ROOT", str(lakehouse_root))

    from app import main

    reload(main)
    client = TestClient(main.app)

    yield client

    client.close()


def test_recommendations_follow_gold_ranking(api_client: TestClient):
    response = api_client.get("/api/fbt/shop-a/recommendations/SKU-1", params={"limit": 1})
    assert response.status_code == 200
    payload = response.json()
    assert payload["product_id"] == "SKU-1"
    assert [row["bundled_products"] for row in payload["recommendations"]] == [["SKU-2"]]

    anchors = api_client.get("/api/fbt/shop-a/recommendations").json()
    assert anchors == ["SKU-1", "SKU-2"]
    assert api_client.get("/api/fbt/shop-b/recommendations").json() == []


def test_limit_validation(api_client: TestClient):
    response = api_client.get("/api/fbt/shop-a/recommendations/SKU-1", params={"limit": 0})
    assert response.status_code == 400
    assert response.json()["detail"] == "limit must be positive"


def test_settings_roundtrip_and_validation(api_client: TestClient):
    defaults = api_client.get("/api/fbt/config/demo")
    assert defaults.status_code == 200
    assert defaults.json()["is_enabled"] is False
    assert defaults.json()["min_support"] == 0.01

    updated = api_client.post(
        "/api/fbt/config/demo",
        json={"is_enabled": True, "min_support": 0.2, "min_confidence": 0.5, "max_per_product": 2},
    )
    assert updated.status_code == 200
    assert updated.json()["min_support"] == 0.2
    assert api_client.get("/api/fbt/config/demo").json()["is_enabled"] is True

    invalid = api_client.post("/api/fbt/config/demo", json={"min_support": 0.0})
    assert invalid.status_code == 422


def test_generate_requires_enabled_shop(api_client: TestClient):
    response = api_client.post("/api/fbt/generate/demo")
    assert response.status_code == 400
    assert response.json()["detail"] == "FBT is not enabled for this shop"


def test_generate_refreshes_recommendations(api_client: TestClient):
    api_client.post(
        "/api/fbt/config/demo",
        json={"is_enabled": True, "min_support": 0.2, "min_confidence": 0.5, "min_lift": 1.0},
    )
    response = api_client.post("/api/fbt/generate/demo")
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["transactions_analyzed"] == 12
    assert body["suggestions_created"] == 4

    recs = api_client.get("/api/fbt/demo/recommendations/SKU-3").json()["recommendations"]
    assert recs[0]["bundled_products"] == ["SKU-4"]
    assert recs[0]["confidence"] == pytest.approx(1.0)
    assert recs[0]["lift"] == pytest.approx(3.0)


def test_generation_is_isolated_per_shop(api_client: TestClient):
    api_client.post("/api/fbt/config/demo", json={"is_enabled": True, "min_support": 0.2, "max_per_product": 3})
    api_client.post("/api/fbt/config/shop-b", json={"is_enabled": True, "min_support": 0.2, "max_per_product": 0})

    assert api_client.post("/api/fbt/generate/demo").json()["suggestions_created"] == 4
    assert api_client.post("/api/fbt/generate/shop-b").json()["suggestions_created"] == 0

    demo_recs = api_client.get("/api/fbt/demo/recommendations/SKU-1").json()["recommendations"]
    assert [row["bundled_products"] for row in demo_recs] == [["SKU-2"]]
    assert api_client.get("/api/fbt/shop-b/recommendations/SKU-7").json()["recommendations"] == []
    # untouched shop keeps its own table
    assert api_client.get("/api/fbt/shop-a/recommendations").json() == ["SKU-1", "SKU-2"]


def test_shop_names_cannot_escape_lakehouse(api_client: TestClient):
    response = api_client.get("/api/fbt/..hidden/recommendations/SKU-1")
    assert response.status_code == 400
    assert response.json()["detail"] == "invalid shop name"
