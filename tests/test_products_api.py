"""
Tests for the product endpoints
"""
import asyncio

from fastapi import status
from fastapi.testclient import TestClient

from catalog.main import create_app
from catalog.store import MemoryStore


class HangingStore(MemoryStore):
    async def ping(self):
        await asyncio.sleep(5)
        return True


def titles(response):
    return [item["title"] for item in response.json()["items"]]


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "running"
    health = client.get("/health").json()
    assert health["status"] == "healthy"
    assert health["database"] == "connected"


def test_health_reports_disconnected_when_ping_hangs(settings):
    fast = settings.model_copy(update={"health_check_timeout_ms": 50})
    with TestClient(create_app(fast, HangingStore())) as test_client:
        health = test_client.get("/health").json()
    assert health["status"] == "healthy"
    assert health["database"] == "disconnected"


def test_filter_by_category(abc_client):
    response = abc_client.get("/products", params={"category": "x"})
    assert response.status_code == status.HTTP_200_OK
    items = response.json()["items"]
    assert len(items) == 2
    assert {item["category"] for item in items} == {"x"}


def test_filter_in_stock(abc_client):
    response = abc_client.get("/products", params={"inStock": "true"})
    assert sorted(titles(response)) == ["A", "C"]


def test_filter_price_range(abc_client):
    response = abc_client.get("/products", params={"minPrice": "20", "maxPrice": "300"})
    assert sorted(titles(response)) == ["B", "C"]


def test_filter_price_range_excludes_cheaper(abc_client):
    response = abc_client.get("/products", params={"minPrice": "60", "maxPrice": "300"})
    assert titles(response) == ["B"]


def test_sort_by_price_ascending(abc_client):
    response = abc_client.get("/products", params={"sort": "price", "order": "asc"})
    assert titles(response) == ["A", "C", "B"]
    assert response.json()["sort"] == {"by": "price", "order": "asc"}


def test_default_sort_is_newest_first(abc_client):
    assert titles(abc_client.get("/products")) == ["C", "B", "A"]


def test_category_match_is_anchored(client):
    response = client.get("/products", params={"category": "Phones"})
    assert titles(response) == ["Phone Case"]


def test_max_price_only(client):
    response = client.get("/products", params={"maxPrice": "500"})
    prices = [item["price"] for item in response.json()["items"]]
    assert prices and all(price <= 500 for price in prices)


def test_pagination_metadata(client):
    body = client.get("/products", params={"page": "2", "limit": "4"}).json()
    assert len(body["items"]) == 2
    assert body["pagination"] == {
        "currentPage": 2,
        "totalPages": 2,
        "totalProducts": 6,
        "limit": 4,
        "hasNextPage": False,
        "hasPrevPage": True,
        "nextPage": None,
        "prevPage": 1,
    }


def test_malformed_filters_are_ignored(client):
    response = client.get("/products", params={"page": "zero", "limit": "lots", "minPrice": "cheap"})
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["pagination"]["currentPage"] == 1
    assert body["pagination"]["totalProducts"] == 6
    assert body["filtersApplied"] == {}


def test_empty_result_is_success(client):
    body = client.get("/products", params={"category": "nothing"}).json()
    assert body["success"] is True
    assert body["items"] == []
    assert body["stats"] is None
    assert body["pagination"]["totalPages"] == 0


def test_page_stats(abc_client):
    stats = abc_client.get("/products").json()["stats"]
    assert stats == {
        "minPrice": 10,
        "maxPrice": 200,
        "avgPrice": 86.67,
        "totalStock": 7,
        "categories": ["x", "y"],
    }


def test_same_query_is_idempotent(client):
    params = {"sort": "rating", "order": "desc", "limit": "3"}
    first = client.get("/products", params=params).json()
    second = client.get("/products", params=params).json()
    assert first["items"] == second["items"]
    assert first["pagination"] == second["pagination"]


def test_tags_filter_accepts_repeats(client):
    response = client.get("/products?tags=macos&tags=ios")
    assert sorted(titles(response)) == ["MacBook Pro", "iPhone 9"]


def test_search_orders_by_relevance(client):
    body = client.get("/products/search", params={"q": "laptop"}).json()
    assert set(item["title"] for item in body["items"]) == {"Galaxy Book", "MacBook Pro"}
    assert body["sort"]["by"] == "relevance"
    assert body["pagination"]["limit"] == 20
    assert all(item["score"] > 0 for item in body["items"])


def test_search_without_terms_lists_everything(client):
    body = client.get("/products/search").json()
    assert body["pagination"]["totalProducts"] == 6
    assert body["sort"]["by"] == "createdAt"


def test_categories(client):
    body = client.get("/products/categories").json()
    assert body["count"] == 5
    laptops = next(category for category in body["categories"] if category["name"] == "laptops")
    assert laptops["count"] == 2


def test_get_product_with_similar(client):
    listing = client.get("/products", params={"category": "laptops"}).json()
    product_id = listing["items"][0]["_id"]

    body = client.get(f"/products/{product_id}").json()
    assert body["product"]["_id"] == product_id
    assert len(body["similarProducts"]) == 1
    assert body["similarProducts"][0]["_id"] != product_id


def test_get_unknown_product(client):
    response = client.get("/products/65a000000000000000000000")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "NotFound"


def test_invalid_product_id(client):
    response = client.get("/products/not-an-id")
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert response.json()["error"] == "InvalidInput"


def test_create_product(client):
    payload = {
        "title": "  Desk Lamp ",
        "price": 39.9,
        "category": "home",
        "brand": "Lumo",
        "stock": 12,
        "tags": "light, desk",
    }
    response = client.post("/products", json=payload)
    assert response.status_code == status.HTTP_201_CREATED
    product = response.json()["product"]
    assert product["title"] == "Desk Lamp"
    assert product["tags"] == ["light", "desk"]
    assert product["searchKeywords"] == ["desk lamp", "lumo", "home"]
    assert product["createdAt"] is not None

    fetched = client.get(f"/products/{product['_id']}").json()["product"]
    assert fetched["price"] == 39.9


def test_create_product_defaults_category(client):
    product = client.post("/products", json={"title": "Mystery", "price": 1}).json()["product"]
    assert product["category"] == "uncategorized"
    assert product["stock"] == 0


def test_create_product_validation(client):
    response = client.post("/products", json={"title": "   ", "price": -5})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    body = response.json()
    assert body["success"] is False
    assert body["error"] == "InvalidInput"
    assert {detail["field"] for detail in body["details"]} == {"title", "price"}


def test_create_product_requires_price(client):
    response = client.post("/products", json={"title": "No price"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_update_product(client):
    product_id = client.post("/products", json={"title": "Chair", "price": 80, "brand": "Oak"}).json()["product"]["_id"]

    response = client.put(f"/products/{product_id}", json={"price": 95, "title": "Armchair"})
    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert body["changes"] == ["price", "title"]
    assert body["product"]["price"] == 95
    assert body["product"]["brand"] == "Oak"
    assert body["product"]["searchKeywords"][0] == "armchair"


def test_update_blank_category_becomes_uncategorized(client):
    product_id = client.post("/products", json={"title": "Lamp", "price": 30, "category": "lighting"}).json()["product"]["_id"]

    response = client.put(f"/products/{product_id}", json={"category": "   "})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["product"]["category"] == "uncategorized"

    names = [row["name"] for row in client.get("/products/categories").json()["categories"]]
    assert "uncategorized" in names
    assert "" not in names


def test_update_requires_changes(client):
    product_id = client.post("/products", json={"title": "Stool", "price": 20}).json()["product"]["_id"]
    response = client.put(f"/products/{product_id}", json={})
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_update_rejects_bad_rating(client):
    product_id = client.post("/products", json={"title": "Sofa", "price": 400}).json()["product"]["_id"]
    response = client.put(f"/products/{product_id}", json={"rating": 9})
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_update_unknown_product(client):
    response = client.put("/products/65a000000000000000000000", json={"price": 1})
    assert response.status_code == status.HTTP_404_NOT_FOUND


def test_delete_product(client):
    product_id = client.post("/products", json={"title": "Bin", "price": 5}).json()["product"]["_id"]

    response = client.delete(f"/products/{product_id}")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["product"]["title"] == "Bin"

    assert client.get(f"/products/{product_id}").status_code == status.HTTP_404_NOT_FOUND
    assert client.delete(f"/products/{product_id}").status_code == status.HTTP_404_NOT_FOUND


def test_unknown_route(client):
    response = client.get("/nowhere")
    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["success"] is False
