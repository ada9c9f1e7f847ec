from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from catalog.config import Settings
from catalog.main import create_app
from catalog.models import build_search_keywords
from catalog.store import MemoryStore

BASE_TIME = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_product(title, price, category="electronics", brand="", stock=10, rating=None,
                 tags=(), discount=None, description="", minutes=0):
    """Product document as it is stored, created ``minutes`` after BASE_TIME."""
    created = BASE_TIME + timedelta(minutes=minutes)
    doc = {
        "title": title,
        "price": price,
        "description": description,
        "category": category,
        "brand": brand,
        "stock": stock,
        "tags": list(tags),
        "imageUrl": "",
        "specifications": {},
        "searchKeywords": build_search_keywords(title, brand, category),
        "createdAt": created,
        "updatedAt": created,
    }
    if rating is not None:
        doc["rating"] = rating
    if discount is not None:
        doc["discountPercentage"] = discount
    return doc


CATALOG = [
    make_product("iPhone 9", 549, "smartphones", "Apple", stock=94, rating=4.69,
                 tags=["phone", "ios"], discount=12.96, description="An apple mobile phone", minutes=1),
    make_product("Galaxy Book", 1499, "laptops", "Samsung", stock=50, rating=4.25,
                 tags=["laptop"], discount=4.15, description="Samsung laptop with touch screen", minutes=2),
    make_product("MacBook Pro", 1749, "laptops", "Apple", stock=83, rating=4.57,
                 tags=["laptop", "macos"], description="Apple laptop with M1 chip", minutes=3),
    make_product("Phone Case", 15, "Phones", "Generic", stock=0, rating=3.1,
                 tags=["accessory"], description="Protective case", minutes=4),
    make_product("Rose Oil", 30, "fragrances", "", stock=5, rating=5.0,
                 tags=["beauty"], discount=20, description="Pure rose oil", minutes=5),
    make_product("Vintage Watch", 12500, "watches", "Rolex", stock=1,
                 description="Collector watch", minutes=6),
]


@pytest.fixture
def catalog():
    return [dict(doc) for doc in CATALOG]


@pytest.fixture
def store(catalog):
    return MemoryStore(catalog)


@pytest.fixture
def settings():
    return Settings(_env_file=None, store_backend="memory", query_timeout_ms=2000, log_level="WARNING")


@pytest.fixture
def client(settings, store):
    with TestClient(create_app(settings, store)) as test_client:
        yield test_client


@pytest.fixture
def abc_client(settings):
    """App over the three-product catalog: A (x, in stock), B (x, sold out), C (y)."""
    store = MemoryStore([
        make_product("A", 10, "x", stock=5, minutes=1),
        make_product("B", 200, "x", stock=0, minutes=2),
        make_product("C", 50, "y", stock=2, minutes=3),
    ])
    with TestClient(create_app(settings, store)) as test_client:
        yield test_client
