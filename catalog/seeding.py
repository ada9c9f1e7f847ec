"""
Seed the products collection from the dummyjson.com catalog.

Usage:
    catalog-seed --limit 100
    catalog-seed --url https://dummyjson.com/products --memory
"""
import argparse
import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import httpx
from pydantic import ValidationError

from .config import DatabaseManager, Settings, get_settings
from .errors import CatalogError
from .models.product import DEFAULT_CATEGORY, ProductDocument, utcnow
from .store import Document, MemoryStore, ProductStore

logger = logging.getLogger(__name__)


def to_product_document(raw: Dict[str, Any], now: Optional[datetime] = None) -> Document:
    """Map one dummyjson product to a stored product document."""
    images = [image for image in raw.get("images") or [] if isinstance(image, str)]
    thumbnail = raw.get("thumbnail")
    product = ProductDocument.new(
        now=now,
        title=(raw.get("title") or "").strip(),
        description=(raw.get("description") or "").strip(),
        price=raw.get("price") or 0,
        category=(raw.get("category") or "").strip() or DEFAULT_CATEGORY,
        brand=(raw.get("brand") or "").strip(),
        stock=raw.get("stock") or 0,
        rating=raw.get("rating"),
        discount_percentage=raw.get("discountPercentage"),
        tags=[str(tag).strip() for tag in raw.get("tags") or [] if str(tag).strip()],
        image_url=thumbnail or (images[0] if images else ""),
        thumbnail=thumbnail,
        images=images,
    )
    return product.to_document()


async def fetch_products(client: httpx.AsyncClient, url: str, limit: int) -> List[Dict[str, Any]]:
    logger.info(f"📡 Fetching products from {url}...")
    response = await client.get(url, params={"limit": limit})
    response.raise_for_status()
    products = response.json().get("products", [])
    logger.info(f"📦 {len(products)} products fetched")
    return products


async def seed(store: ProductStore, client: httpx.AsyncClient, url: str, limit: int) -> int:
    """Replace the collection content with freshly imported products."""
    raw_products = await fetch_products(client, url, limit)

    now = utcnow()
    documents = []
    for raw in raw_products:
        try:
            documents.append(to_product_document(raw, now=now))
        except ValidationError as e:
            logger.warning(f"⚠️  Skipping product {raw.get('id')!r}: {e.error_count()} invalid field(s)")

    removed = await store.clear()
    logger.info(f"🧹 {removed} existing products removed")

    inserted = await store.insert_many(documents)
    logger.info(f"✅ {inserted} products inserted")
    return inserted


async def run(settings: Settings, url: str, limit: int, in_memory: bool = False) -> int:
    manager: Optional[DatabaseManager] = None
    if in_memory:
        store: ProductStore = MemoryStore()
    else:
        manager = DatabaseManager(settings)
        await manager.connect()
        await manager.create_indexes()
        store = manager.create_store()

    try:
        async with httpx.AsyncClient(timeout=settings.seed_timeout_s) as client:
            return await seed(store, client, url, limit)
    finally:
        await store.close()
        if manager is not None:
            await manager.disconnect()


def main(argv: Optional[List[str]] = None) -> int:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Seed the product catalog from dummyjson.com")
    parser.add_argument("--url", type=str, default=settings.seed_source_url, help="Source catalog URL")
    parser.add_argument("--limit", type=int, default=settings.seed_limit, help="Number of products to import")
    parser.add_argument("--memory", action="store_true", help="Import into a throwaway in-memory store")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        asyncio.run(run(settings, args.url, args.limit, in_memory=args.memory))
    except httpx.HTTPError as e:
        logger.error(f"❌ Could not fetch products: {e}")
        return 1
    except CatalogError as e:
        logger.error(f"❌ Seeding failed: {e.message}")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
