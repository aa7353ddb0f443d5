"""
Integration tests for the product price endpoint.

WHAT: GET /api/v1/products/{id}/price against real rates and products
WHY: Storefront prices must match the calculator to the paisa
HOW: TestClient, worked-example product seeded in SQLite
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest


@pytest.mark.integration
class TestProductPrice:

    def test_worked_example_price(self, client, sample_product):
        response = client.get(f"/api/v1/products/{sample_product}/price")

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Lakshmi Kasu Necklace"
        assert data["rate_per_gram"] == "6000.00"
        assert data["metal_value"] == "60000.00"
        assert data["wastage_value"] == "7200.00"
        assert data["making_charge"] == "1500.00"
        assert data["subtotal"] == "68700.00"
        assert data["gst_amount"] == "2061.00"
        assert data["listed_price"] == "70761.00"
        assert data["final_total_price"] == "70761.00"
        assert data["degraded"] is False

    def test_floor_and_wholesale_never_exposed(self, client, sample_product):
        data = client.get(f"/api/v1/products/{sample_product}/price").json()

        assert not any("floor" in key or "wholesale" in key for key in data)
        assert "57709" not in str(data)

    def test_price_follows_rate_override(self, client, sample_product):
        client.post("/api/v1/rates", json={"rates": [{"metal_type": "22K_GOLD", "rate_per_gram": "6100"}]})

        data = client.get(f"/api/v1/products/{sample_product}/price").json()

        assert data["metal_value"] == "61000.00"
        # (61000 + 7320 + 1500) * 1.03
        assert data["listed_price"] == "71914.60"

    def test_active_discount_lowers_selling_price(self, client, product_factory, rate_store):
        now = datetime.now(timezone.utc)
        product_id = product_factory(
            discount_type="PERCENTAGE",
            discount_value=Decimal("10"),
            discount_start=now - timedelta(days=1),
            discount_end=now + timedelta(days=1),
        )

        data = client.get(f"/api/v1/products/{product_id}/price").json()

        assert data["listed_price"] == "70761.00"
        assert data["discount_amount"] == "7076.10"
        assert data["final_total_price"] == "63684.90"

    def test_missing_rate_is_flagged_degraded(self, client, product_factory, rate_store):
        rate_store.upsert_rates({"SILVER": 0}, updated_by="manual")
        product_id = product_factory(name="Silver Anklet", metal_type="SILVER")

        data = client.get(f"/api/v1/products/{product_id}/price").json()

        assert data["degraded"] is True

    def test_unknown_product_404(self, client):
        response = client.get("/api/v1/products/9999/price")

        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "PRODUCT_NOT_FOUND"
        assert body["details"] == {"product_id": 9999}
