"""
Aggregation reporter.

Runs the catalog report sub-queries concurrently and assembles the combined
report. Stores return raw accumulators; rounding and percentages happen here,
with percentages always taken against a separate full-collection count.
"""
import asyncio
import logging
from typing import Any, Awaitable, Dict, List, Optional

from ..errors import AggregationFailed
from ..models.product import utcnow
from ..query import MATCH_ALL, Buckets, GroupStats, Overview
from ..store import Document, ProductStore
from .deadline import with_deadline

logger = logging.getLogger(__name__)

PRICE_BOUNDARIES = (0, 100, 500, 1000, 2000, 5000, 10000)
RATING_BOUNDARIES = (0, 1, 2, 3, 4, 5)
TOP_BRANDS = 10

CATEGORY_STATS = GroupStats("category", sort_by="averagePrice", descending=True)
BRAND_STATS = GroupStats("brand", sort_by="inventoryValue", descending=True, limit=TOP_BRANDS)
PRICE_BUCKETS = Buckets("price", PRICE_BOUNDARIES, default="10000+")
RATING_BUCKETS = Buckets("rating", RATING_BOUNDARIES, default="unrated", close_last=True)
OVERVIEW = Overview()


def _round(value: Optional[float], digits: int) -> Optional[float]:
    return None if value is None else round(value, digits)


def percentage(count: int, total: int) -> float:
    return round(100 * count / total, 2) if total else 0.0


def bucket_label(lower: Any, boundaries: tuple) -> str:
    """``"100-500"`` for a lower boundary, or the default bucket's own label."""
    if lower in boundaries[:-1]:
        upper = boundaries[boundaries.index(lower) + 1]
        return f"{lower:g}-{upper:g}"
    return str(lower)


def group_statistics(record: Document) -> Dict[str, Any]:
    count = record.get("count") or 0
    discounted = record.get("discountedCount") or 0
    max_price = record.get("maxPrice")
    min_price = record.get("minPrice")
    price_range = max_price - min_price if max_price is not None and min_price is not None else None
    return {
        "name": record["_id"],
        "totalProducts": count,
        "totalStock": record.get("totalStock") or 0,
        "inventoryValue": round(record.get("inventoryValue") or 0, 2),
        "averagePrice": _round(record.get("averagePrice"), 2),
        "maxPrice": _round(max_price, 2),
        "minPrice": _round(min_price, 2),
        "priceRange": _round(price_range, 2),
        "averageRating": _round(record.get("averageRating"), 1),
        "discountedProducts": discounted,
        "discountRate": percentage(discounted, count),
    }


def price_distribution(records: List[Document], total: int) -> List[Dict[str, Any]]:
    return [
        {
            "range": bucket_label(record["_id"], PRICE_BOUNDARIES),
            "count": record["count"],
            "percentage": percentage(record["count"], total),
            "averageRating": _round(record.get("averageRating"), 1),
            "totalStock": record.get("totalStock") or 0,
            "categoryCount": record.get("categoryCount") or 0,
        }
        for record in records
    ]


def rating_distribution(records: List[Document], total: int) -> List[Dict[str, Any]]:
    return [
        {
            "range": bucket_label(record["_id"], RATING_BOUNDARIES),
            "count": record["count"],
            "percentage": percentage(record["count"], total),
            "averagePrice": _round(record.get("averagePrice"), 2),
            "categoryCount": record.get("categoryCount") or 0,
        }
        for record in records
    ]


def overview(records: List[Document]) -> Dict[str, Any]:
    if not records:
        return {
            "totalProducts": 0,
            "categoryCount": 0,
            "brandCount": 0,
            "averagePrice": None,
            "averageRating": None,
            "totalStock": 0,
            "inventoryValue": 0,
            "outOfStock": 0,
            "lowStock": 0,
        }
    record = dict(records[0])
    record.pop("_id", None)
    record["averagePrice"] = _round(record.get("averagePrice"), 2)
    record["averageRating"] = _round(record.get("averageRating"), 2)
    record["inventoryValue"] = round(record.get("inventoryValue") or 0, 2)
    return record


class AggregationReporter:
    """Builds the catalog statistics report from a ``ProductStore``."""

    def __init__(self, store: ProductStore, timeout_s: float = 10.0):
        self.store = store
        self.timeout_s = timeout_s

    async def _sub_query(self, name: str, awaitable: Awaitable[Any]) -> Any:
        try:
            return await with_deadline(awaitable, self.timeout_s, name)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"❌ Report sub-query '{name}' failed: {e}")
            raise AggregationFailed(name, e) from e

    async def _gather(self, queries: Dict[str, Awaitable[Any]]) -> Dict[str, Any]:
        """Run all sub-queries concurrently; the first failure cancels the rest."""
        tasks = {
            name: asyncio.ensure_future(self._sub_query(name, awaitable))
            for name, awaitable in queries.items()
        }
        try:
            results = await asyncio.gather(*tasks.values())
        except BaseException:
            for task in tasks.values():
                task.cancel()
            await asyncio.gather(*tasks.values(), return_exceptions=True)
            raise
        return dict(zip(tasks, results))

    async def report(self) -> Dict[str, Any]:
        results = await self._gather({
            "byCategory": self.store.aggregate(CATEGORY_STATS),
            "byBrand": self.store.aggregate(BRAND_STATS),
            "priceDistribution": self.store.aggregate(PRICE_BUCKETS),
            "ratingDistribution": self.store.aggregate(RATING_BUCKETS),
            "overview": self.store.aggregate(OVERVIEW),
            "total": self.store.count(MATCH_ALL),
        })
        total = results["total"]

        logger.info(f"📊 Statistics report built over {total} products")
        return {
            "byCategory": [group_statistics(record) for record in results["byCategory"]],
            "byBrand": [group_statistics(record) for record in results["byBrand"]],
            "priceDistribution": price_distribution(results["priceDistribution"], total),
            "ratingDistribution": rating_distribution(results["ratingDistribution"], total),
            "overview": overview(results["overview"]),
            "generatedAt": utcnow(),
        }

    async def category_stats(self) -> List[Dict[str, Any]]:
        records = await self._sub_query("byCategory", self.store.aggregate(CATEGORY_STATS))
        return [group_statistics(record) for record in records]

    async def brand_stats(self) -> List[Dict[str, Any]]:
        records = await self._sub_query("byBrand", self.store.aggregate(BRAND_STATS))
        return [group_statistics(record) for record in records]
