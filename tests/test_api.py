"""
Tests for the shopcore HTTP API.

Each test builds its own app through create_app so catalog and cart state
never leak between tests.
"""

import copy

import httpx
import pytest
from fastapi.testclient import TestClient

from shopcore.api.server import create_app
from shopcore.cart.checkout import CheckoutClient
from shopcore.data.catalog_repository import CatalogRepository
from shopcore.data.catalog_source import StaticCatalogSource


@pytest.fixture
def orders():
    """Requests received by the fake order service."""
    return []


@pytest.fixture
def client(raw_restaurant_catalog, raw_clothing_catalog, config, orders):
    def order_handler(request: httpx.Request) -> httpx.Response:
        orders.append(request)
        return httpx.Response(200, json={"order_id": "ord-1", "order_number": "A-1", "total_amount": 0})

    app = create_app(
        repository=CatalogRepository(config=config),
        source=StaticCatalogSource({"shop": raw_clothing_catalog}, config),
        checkout=CheckoutClient(url="http://orders.test", transport=httpx.MockTransport(order_handler)),
        config=config,
    )
    test_client = TestClient(app)
    test_client.post("/vendors/diner/catalog", json={"products": raw_restaurant_catalog})
    return test_client


# ============================================================================
# Catalog
# ============================================================================

class TestCatalogEndpoints:
    def test_health(self, client):
        data = client.get("/").json()
        assert data["status"] == "online"
        assert data["config"]["vendors_loaded"] == 1

    def test_load_from_body(self, client):
        response = client.post("/vendors/v9/catalog", json={"products": [{"id": 1, "name": "A", "price": 2, "stock": -1}]})
        data = response.json()
        assert response.status_code == 200
        assert data["product_count"] == 1
        assert data["issues"][0]["field"] == "stock"

    def test_load_from_source(self, client):
        data = client.post("/vendors/shop/catalog", json={}).json()
        assert data["product_count"] == 2
        assert data["version"] == 1

    def test_load_source_failure_is_502(self, client):
        assert client.post("/vendors/unknown/catalog", json={}).status_code == 502

    def test_query(self, client):
        response = client.post("/vendors/diner/query", json={
            "category": "Main Course",
            "sort_field": "price",
            "sort_direction": "desc",
        })
        data = response.json()
        assert response.status_code == 200
        assert [p["id"] for p in data["items"]] == ["1", "2"]
        assert data["items"][1]["stock_status"] == "lowStock"
        assert data["items"][0]["facets"]["cuisine"] == "Indian"

    def test_query_facet_and_stock_status(self, client):
        data = client.post("/vendors/diner/query", json={
            "stock_status": "outOfStock",
            "facets": {"dietary_type": "Vegan"},
        }).json()
        assert [p["id"] for p in data["items"]] == ["3"]
        assert data["items"][0]["list_price"] == 250

    def test_query_unknown_vendor(self, client):
        assert client.post("/vendors/ghost/query", json={}).status_code == 404

    def test_query_bad_stock_status(self, client):
        assert client.post("/vendors/diner/query", json={"stock_status": "plenty"}).status_code == 422

    def test_variant_stock_serialized(self, client):
        client.post("/vendors/shop/catalog", json={})
        data = client.post("/vendors/shop/query", json={"search_term": "linen"}).json()
        assert data["items"][0]["stock"]["XS"] == 5
        assert data["items"][0]["total_stock"] == 43

    def test_facets(self, client):
        data = client.get("/vendors/diner/facets").json()
        assert data["options"]["category"] == ["All", "Main Course", "Salads"]
        assert data["stock_status_counts"] == {"inStock": 1, "lowStock": 1, "outOfStock": 1}


# ============================================================================
# Cart
# ============================================================================

class TestCartEndpoints:
    def test_add_and_read(self, client):
        response = client.post("/cart/s1/items", json={"vendor_id": "diner", "product_id": "1", "quantity": 3})
        assert response.status_code == 200
        assert response.json()["total_price"] == 1260

        data = client.get("/cart/s1").json()
        assert data["lines"][0]["unit_price"] == 420
        assert data["item_count"] == 3

    def test_create_cart_returns_session(self, client):
        data = client.post("/cart").json()
        assert data["session_id"]
        assert client.get(f"/cart/{data['session_id']}").status_code == 200

    def test_missing_cart(self, client):
        assert client.get("/cart/none").status_code == 404

    def test_unknown_product(self, client):
        response = client.post("/cart/s1/items", json={"vendor_id": "diner", "product_id": "77"})
        assert response.status_code == 404

    def test_out_of_stock_is_conflict(self, client):
        response = client.post("/cart/s1/items", json={"vendor_id": "diner", "product_id": "3"})
        assert response.status_code == 409
        assert "out of stock" in response.json()["detail"]

    def test_invalid_quantity(self, client):
        response = client.post("/cart/s1/items", json={"vendor_id": "diner", "product_id": "1", "quantity": 0})
        assert response.status_code == 422

    def test_set_quantity_and_remove(self, client):
        client.post("/cart/s1/items", json={"vendor_id": "diner", "product_id": "1"})
        data = client.put("/cart/s1/items/1", json={"quantity": 6}).json()
        assert data["total_price"] == 6 * 399

        data = client.put("/cart/s1/items/1", json={"quantity": 0}).json()
        assert data["lines"] == []

    def test_set_quantity_over_stock(self, client):
        client.post("/cart/s1/items", json={"vendor_id": "diner", "product_id": "2"})
        assert client.put("/cart/s1/items/2", json={"quantity": 16}).status_code == 409

    def test_set_quantity_checks_reloaded_stock(self, client, raw_restaurant_catalog):
        client.post("/cart/s1/items", json={"vendor_id": "diner", "product_id": "1"})
        reloaded = copy.deepcopy(raw_restaurant_catalog)
        reloaded[0]["stock"] = 2
        client.post("/vendors/diner/catalog", json={"products": reloaded})

        response = client.put("/cart/s1/items/1", json={"quantity": 10})
        assert response.status_code == 409
        assert client.get("/cart/s1").json()["item_count"] == 1
        assert client.put("/cart/s1/items/1", json={"quantity": 2}).status_code == 200

    def test_set_quantity_missing_line(self, client):
        client.post("/cart/s1/items", json={"vendor_id": "diner", "product_id": "2"})
        assert client.put("/cart/s1/items/1", json={"quantity": 2}).status_code == 404

    def test_variant_lines(self, client):
        client.post("/vendors/shop/catalog", json={})
        client.post("/cart/s2/items", json={"vendor_id": "shop", "product_id": "11", "variant_key": "M"})
        client.post("/cart/s2/items", json={"vendor_id": "shop", "product_id": "11", "variant_key": "L"})
        data = client.delete("/cart/s2/items/11", params={"variant_key": "M"}).json()
        assert [line["variant_key"] for line in data["lines"]] == ["L"]
        assert data["total_price"] == 6900

    def test_mixed_vendor_add_is_conflict(self, client):
        client.post("/vendors/shop/catalog", json={})
        client.post("/cart/s1/items", json={"vendor_id": "diner", "product_id": "1"})
        response = client.post("/cart/s1/items", json={"vendor_id": "shop", "product_id": "11", "variant_key": "M"})
        assert response.status_code == 409
        assert "diner" in response.json()["detail"]
        assert [line["product_id"] for line in client.get("/cart/s1").json()["lines"]] == ["1"]

    def test_emptied_cart_takes_another_vendor(self, client):
        client.post("/vendors/shop/catalog", json={})
        client.post("/cart/s1/items", json={"vendor_id": "diner", "product_id": "1"})
        client.delete("/cart/s1/items/1")
        response = client.post("/cart/s1/items", json={"vendor_id": "shop", "product_id": "11", "variant_key": "M"})
        assert response.status_code == 200
        assert response.json()["total_price"] == 6900

    def test_delete_cart(self, client):
        client.post("/cart/s1/items", json={"vendor_id": "diner", "product_id": "1"})
        assert client.delete("/cart/s1").json()["status"] == "deleted"
        assert client.get("/cart/s1").status_code == 404


# ============================================================================
# Checkout
# ============================================================================

class TestCheckoutEndpoint:
    def test_checkout_clears_cart(self, client, orders):
        client.post("/cart/s1/items", json={"vendor_id": "diner", "product_id": "1", "quantity": 2})
        response = client.post("/cart/s1/checkout", json={"vendor_id": "diner", "discount_amount": 100})

        data = response.json()
        assert response.status_code == 200
        assert data["order_id"] == "ord-1"
        assert data["subtotal"] == 900
        assert data["total"] == 800
        assert len(orders) == 1
        assert client.get("/cart/s1").json()["lines"] == []

    def test_checkout_empty_cart_is_502(self, client, orders):
        client.post("/cart/s1/items", json={"vendor_id": "diner", "product_id": "1"})
        client.put("/cart/s1/items/1", json={"quantity": 0})
        assert client.post("/cart/s1/checkout", json={"vendor_id": "diner"}).status_code == 502
        assert orders == []
