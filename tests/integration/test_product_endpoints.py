"""API tests for the admin catalog and storefront product endpoints."""

from decimal import Decimal
from uuid import uuid4

import pytest

pytestmark = pytest.mark.integration

PRODUCTS_URL = "/api/v1/products/"


class TestAdminProducts:
    def test_requires_authentication(self, api_client):
        assert api_client.get(PRODUCTS_URL).status_code == 401

    def test_create(self, admin_client, category):
        response = admin_client.post(
            PRODUCTS_URL,
            {
                "sku": "pol-001",
                "name": "Classic Polo",
                "price": "49.90",
                "sale_price": "39.90",
                "stock_quantity": 5,
                "category_id": str(category.id),
            },
            format="json",
        )

        assert response.status_code == 201
        body = response.json()
        assert body["sku"] == "POL-001"
        assert body["slug"] == "classic-polo"
        assert body["current_price"] == "39.90"
        assert body["in_stock"] is True
        assert body["category"]["slug"] == "casual"

    def test_create_validation_error(self, admin_client):
        response = admin_client.post(PRODUCTS_URL, {"name": "No SKU"}, format="json")

        assert response.status_code == 422
        assert response.json()["detail"] == "The given data was invalid."
        assert "sku" in response.json()["errors"]

    def test_create_duplicate_sku(self, admin_client, make_product):
        make_product(sku="POL-001")

        response = admin_client.post(
            PRODUCTS_URL,
            {"sku": "POL-001", "name": "Polo", "price": "10.00"},
            format="json",
        )

        assert response.status_code == 409

    def test_create_sale_price_not_below_price(self, admin_client):
        response = admin_client.post(
            PRODUCTS_URL,
            {"sku": "A-1", "name": "A", "price": "10.00", "sale_price": "10.00"},
            format="json",
        )
        assert response.status_code == 422

    def test_list_and_retrieve(self, admin_client, make_product):
        product = make_product(name="Polo")

        listing = admin_client.get(PRODUCTS_URL, {"search": "polo"})
        detail = admin_client.get(f"{PRODUCTS_URL}{product.id}/")

        assert listing.status_code == 200
        assert listing.json()["count"] == 1
        assert detail.json()["id"] == str(product.id)

    def test_retrieve_unknown(self, admin_client):
        assert admin_client.get(f"{PRODUCTS_URL}{uuid4()}/").status_code == 404

    def test_partial_update_clears_sale_price(self, admin_client, make_product):
        product = make_product(price=Decimal("50.00"), sale_price=Decimal("40.00"))

        response = admin_client.patch(
            f"{PRODUCTS_URL}{product.id}/", {"sale_price": None}, format="json"
        )

        assert response.status_code == 200
        assert response.json()["sale_price"] is None
        assert response.json()["current_price"] == "50.00"

    def test_destroy_soft_deletes(self, admin_client, make_product):
        product = make_product()

        response = admin_client.delete(f"{PRODUCTS_URL}{product.id}/")

        assert response.status_code == 204
        product.refresh_from_db()
        assert product.is_deleted
        assert admin_client.get(f"{PRODUCTS_URL}{product.id}/").status_code == 404

    def test_categories_for_select(self, admin_client, category):
        response = admin_client.get(f"{PRODUCTS_URL}categories/")
        assert response.json()[0]["name"] == "Casual"


class TestStorefront:
    def test_listing_is_public_and_filtered(self, api_client, make_product):
        visible = make_product(name="Polo")
        make_product(is_active=False)
        make_product(stock_quantity=0)

        response = api_client.get("/api/v1/public/products/")

        assert response.status_code == 200
        body = response.json()
        assert body["per_page"] == 12
        assert [row["id"] for row in body["results"]] == [str(visible.id)]

    def test_detail_by_slug(self, api_client, make_product):
        make_product(name="Classic Polo")

        response = api_client.get("/api/v1/public/products/classic-polo/")

        assert response.status_code == 200
        assert response.json()["name"] == "Classic Polo"

    def test_unknown_slug(self, api_client):
        assert api_client.get("/api/v1/public/products/nope/").status_code == 404

    def test_categories(self, api_client, category):
        response = api_client.get("/api/v1/public/categories/")
        assert response.status_code == 200
        assert response.json()[0]["value"] == str(category.id)

    def test_cart_stock_validation(self, api_client, make_product):
        ok = make_product(stock_quantity=5)
        short = make_product(stock_quantity=1)

        response = api_client.post(
            "/api/v1/public/cart/validate-stock/",
            {
                "items": [
                    {"product_id": str(ok.id), "quantity": 2},
                    {"product_id": str(short.id), "quantity": 2},
                ]
            },
            format="json",
        )

        assert response.status_code == 200
        body = response.json()
        assert body["valid"] is False
        assert [item["valid"] for item in body["items"]] == [True, False]
        assert body["items"][1]["available_quantity"] == 1
