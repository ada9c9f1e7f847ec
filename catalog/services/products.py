"""
Product catalog operations.
Listing, search, lookups and mutations on top of a ``ProductStore``.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from bson import ObjectId
from pydantic import ValidationError

from ..errors import InvalidInput, NotFound
from ..models.product import UPDATABLE_FIELDS, ProductDocument, build_search_keywords, utcnow
from ..query import (
    ASCENDING,
    DESCENDING,
    RELEVANCE,
    Equals,
    Filter,
    GroupStats,
    ListingQuery,
    PageInfo,
    QueryBuilder,
    Range,
    Sort,
)
from ..store import Document, ProductStore
from .deadline import with_deadline

logger = logging.getLogger(__name__)

SEARCH_PAGE_SIZE = 20
SIMILAR_PRODUCTS_LIMIT = 4
CATEGORY_COUNTS = GroupStats("category", sort_by="_id", descending=False)


@dataclass
class ProductPage:
    """One page of a listing together with the query that produced it."""
    items: List[Document]
    page: PageInfo
    query: ListingQuery

    def stats(self) -> Optional[Dict[str, Any]]:
        return page_stats(self.items)


def page_stats(items: List[Document]) -> Optional[Dict[str, Any]]:
    """Price/stock summary over the products on one page; None when empty."""
    if not items:
        return None
    prices = [item.get("price") or 0 for item in items]
    return {
        "minPrice": round(min(prices), 2),
        "maxPrice": round(max(prices), 2),
        "avgPrice": round(sum(prices) / len(prices), 2),
        "totalStock": sum(item.get("stock") or 0 for item in items),
        "categories": sorted({item["category"] for item in items if item.get("category")}),
    }


def _invalid(error: ValidationError) -> InvalidInput:
    details = [
        {
            "field": ".".join(str(part) for part in err["loc"]),
            "message": err["msg"],
            "inputValue": err.get("input"),
        }
        for err in error.errors(include_url=False)
    ]
    return InvalidInput("Product validation failed", details=details)


def parse_product_id(raw: str) -> ObjectId:
    if not ObjectId.is_valid(raw):
        raise InvalidInput(f"Invalid product ID format: {raw}")
    return ObjectId(raw)


class ProductService:
    """Catalog use-cases. Every store call runs under ``timeout_s``."""

    def __init__(self, store: ProductStore, builder: QueryBuilder, timeout_s: float = 10.0):
        self.store = store
        self.builder = builder
        self.timeout_s = timeout_s

    async def list_products(self, params: Mapping[str, Any], default_sort: str = "createdAt") -> ProductPage:
        query = self.builder.build(params, default_sort=default_sort)
        total = await with_deadline(self.store.count(query.filter), self.timeout_s, "count products")

        items: List[Document] = []
        if total > 0:
            items = await with_deadline(
                self.store.find(query.filter, query.sort, skip=query.skip, limit=query.limit),
                self.timeout_s,
                "find products",
            )

        logger.debug(f"Listed {len(items)} of {total} products (page {query.page})")
        return ProductPage(items=items, page=PageInfo.from_total(query.page, query.limit, total), query=query)

    async def search(self, params: Mapping[str, Any]) -> ProductPage:
        """Listing driven by ``q``, ordered by relevance unless told otherwise."""
        merged = dict(params)
        if merged.get("q") is not None:
            merged["search"] = merged.pop("q")
        merged.setdefault("limit", str(SEARCH_PAGE_SIZE))
        return await self.list_products(merged, default_sort=RELEVANCE)

    async def get_product(self, product_id: str) -> Document:
        object_id = parse_product_id(product_id)
        product = await with_deadline(self.store.get(object_id), self.timeout_s, "get product")
        if product is None:
            raise NotFound("Product", product_id)
        return product

    async def similar_products(self, product: Document) -> List[Document]:
        """Up to four other products from the same category."""
        category = product.get("category")
        if not category:
            return []
        candidates = await with_deadline(
            self.store.find(
                Filter((Equals("category", category),)),
                Sort("createdAt", DESCENDING),
                limit=SIMILAR_PRODUCTS_LIMIT + 1,
            ),
            self.timeout_s,
            "find similar products",
        )
        others = [item for item in candidates if item["_id"] != product["_id"]]
        return others[:SIMILAR_PRODUCTS_LIMIT]

    async def create_product(self, fields: Dict[str, Any]) -> Document:
        try:
            product = ProductDocument.new(**fields)
        except ValidationError as e:
            raise _invalid(e) from e

        created = await with_deadline(self.store.insert(product.to_document()), self.timeout_s, "insert product")
        logger.info(f"✅ Product created: {created['_id']} ({product.title})")
        return created

    async def update_product(self, product_id: str, changes: Dict[str, Any]) -> Document:
        changes = {field: value for field, value in changes.items() if field in UPDATABLE_FIELDS}
        if not changes:
            raise InvalidInput("No valid fields supplied for update")

        current = await self.get_product(product_id)
        merged = {**current, **changes}
        changes["searchKeywords"] = build_search_keywords(
            merged.get("title", ""), merged.get("brand", ""), merged.get("category", "")
        )
        changes["updatedAt"] = utcnow()

        updated = await with_deadline(
            self.store.update(current["_id"], changes), self.timeout_s, "update product"
        )
        if updated is None:
            raise NotFound("Product", product_id)

        logger.info(f"📝 Product updated: {product_id} ({', '.join(sorted(changes))})")
        return updated

    async def delete_product(self, product_id: str) -> Document:
        object_id = parse_product_id(product_id)
        deleted = await with_deadline(self.store.delete(object_id), self.timeout_s, "delete product")
        if deleted is None:
            raise NotFound("Product", product_id)

        logger.info(f"🗑️  Product deleted: {product_id}")
        return deleted

    async def categories(self) -> List[Dict[str, Any]]:
        records = await with_deadline(self.store.aggregate(CATEGORY_COUNTS), self.timeout_s, "list categories")
        return [{"name": record["_id"], "count": record["count"]} for record in records]

    async def top_rated(self, min_price: float = 500, limit: int = 5, order: str = "desc") -> List[Document]:
        """Rated products above ``min_price``, best (or worst) rated first."""
        direction = ASCENDING if order.lower() == "asc" else DESCENDING
        predicate = Filter((Range("price", gt=min_price), Range("rating", gte=0)))
        return await with_deadline(
            self.store.find(predicate, Sort("rating", direction), limit=limit),
            self.timeout_s,
            "find top rated products",
        )
