"""
Tests para la configuración de la tienda
"""

from decimal import Decimal

from app.modules.shop_settings.service import ShopSettingsService


class TestShopSettings:
    def test_defaults_created_on_first_read(self, db_session):
        shop_settings = ShopSettingsService(db_session).get_settings()
        assert shop_settings.discount_percentage == Decimal("3")
        assert shop_settings.shop_name == "Medical Shop"

    def test_get_settings_endpoint(self, client):
        response = client.get("/settings/")
        assert response.status_code == 200
        assert Decimal(response.json()["discount_percentage"]) == Decimal("3")

    def test_update_settings(self, client):
        response = client.put("/settings/", json={
            "shop_name": "Farmacia Central",
            "currency": "COP",
            "discount_percentage": "5"
        })
        assert response.status_code == 200
        assert response.json()["shop_name"] == "Farmacia Central"
        assert Decimal(client.get("/settings/").json()["discount_percentage"]) == Decimal("5")

    def test_discount_out_of_range_rejected(self, client):
        response = client.put("/settings/", json={
            "shop_name": "Farmacia Central",
            "currency": "COP",
            "discount_percentage": "150"
        })
        assert response.status_code == 422

    def test_commit_uses_configured_discount(self, client, session_headers, sample_products):
        client.put("/settings/", json={"shop_name": "Farmacia", "currency": "$", "discount_percentage": "10"})
        client.post(
            "/billing/draft/lines",
            json={"item_id": str(sample_products[0].id), "quantity": 5},
            headers=session_headers
        )
        response = client.post("/billing/draft/commit", headers=session_headers)
        assert Decimal(response.json()["invoice"]["total"]) == Decimal("45.00")
