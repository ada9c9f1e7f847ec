"""
Tests for the aggregation reporter
"""
import asyncio
from statistics import mean

import pytest

from catalog.errors import AggregationFailed
from catalog.query import Buckets, GroupStats
from catalog.services.stats import AggregationReporter, bucket_label, percentage
from catalog.store import MemoryStore

from .conftest import CATALOG, make_product


class FailingStore(MemoryStore):
    """Fails one kind of aggregation and records cancelled sub-queries."""

    def __init__(self, documents, fail_on):
        super().__init__(documents)
        self.fail_on = fail_on
        self.cancelled = []

    async def aggregate(self, aggregation):
        if isinstance(aggregation, self.fail_on):
            await asyncio.sleep(0)
            raise RuntimeError("pipeline exploded")
        try:
            await asyncio.sleep(0.2)
        except asyncio.CancelledError:
            self.cancelled.append(aggregation)
            raise
        return await super().aggregate(aggregation)


class SlowStore(MemoryStore):
    async def count(self, predicate):
        await asyncio.sleep(1)
        return await super().count(predicate)


@pytest.fixture
def reporter(store):
    return AggregationReporter(store, timeout_s=2)


def test_percentage_of_empty_collection_is_zero():
    assert percentage(3, 0) == 0.0
    assert percentage(1, 3) == 33.33


def test_bucket_labels():
    boundaries = (0, 100, 500)
    assert bucket_label(0, boundaries) == "0-100"
    assert bucket_label(100, boundaries) == "100-500"
    assert bucket_label("500+", boundaries) == "500+"


@pytest.mark.asyncio
async def test_category_average_price_matches_documents(reporter):
    report = await reporter.report()
    laptops = next(row for row in report["byCategory"] if row["name"] == "laptops")
    expected = round(mean(doc["price"] for doc in CATALOG if doc["category"] == "laptops"), 2)
    assert laptops["averagePrice"] == expected
    assert laptops["totalProducts"] == 2
    assert laptops["priceRange"] == 250
    assert laptops["discountRate"] == 50.0


@pytest.mark.asyncio
async def test_categories_sorted_by_average_price(reporter):
    report = await reporter.report()
    averages = [row["averagePrice"] for row in report["byCategory"]]
    assert averages == sorted(averages, reverse=True)
    assert report["byCategory"][0]["name"] == "watches"


@pytest.mark.asyncio
async def test_price_percentages_sum_to_hundred(reporter):
    report = await reporter.report()
    buckets = report["priceDistribution"]
    assert sum(bucket["count"] for bucket in buckets) == len(CATALOG)
    assert sum(bucket["percentage"] for bucket in buckets) == pytest.approx(100, abs=0.05)
    assert buckets[-1]["range"] == "10000+"
    assert buckets[0]["range"] == "0-100"


@pytest.mark.asyncio
async def test_rating_distribution_has_unrated_bucket(reporter):
    report = await reporter.report()
    ranges = {row["range"]: row["count"] for row in report["ratingDistribution"]}
    assert ranges == {"3-4": 1, "4-5": 4, "unrated": 1}


@pytest.mark.asyncio
async def test_brands_ranked_by_inventory_value_top_ten():
    documents = [make_product(f"Item {i}", 10 + i, "misc", f"Brand {i:02d}", stock=i + 1) for i in range(12)]
    reporter = AggregationReporter(MemoryStore(documents))
    brands = await reporter.brand_stats()
    assert len(brands) == 10
    assert brands[0]["name"] == "Brand 11"
    values = [row["inventoryValue"] for row in brands]
    assert values == sorted(values, reverse=True)


@pytest.mark.asyncio
async def test_overview_and_timestamp(reporter):
    report = await reporter.report()
    assert report["overview"]["totalProducts"] == len(CATALOG)
    assert report["generatedAt"].tzinfo is not None


@pytest.mark.asyncio
async def test_empty_collection_report():
    report = await AggregationReporter(MemoryStore()).report()
    assert report["byCategory"] == []
    assert report["priceDistribution"] == []
    assert report["overview"]["totalProducts"] == 0


@pytest.mark.asyncio
async def test_failing_sub_query_aborts_report():
    store = FailingStore(CATALOG, fail_on=Buckets)
    reporter = AggregationReporter(store, timeout_s=2)
    with pytest.raises(AggregationFailed) as excinfo:
        await reporter.report()
    assert excinfo.value.sub_query in ("priceDistribution", "ratingDistribution")
    assert excinfo.value.to_dict()["subQuery"] == excinfo.value.sub_query
    assert any(isinstance(aggregation, GroupStats) for aggregation in store.cancelled)


@pytest.mark.asyncio
async def test_slow_sub_query_hits_deadline():
    reporter = AggregationReporter(SlowStore(CATALOG), timeout_s=0.05)
    with pytest.raises(AggregationFailed) as excinfo:
        await reporter.report()
    assert excinfo.value.sub_query == "total"
