"""
Tests for the MongoDB query translation
"""
import re

import pytest

from catalog.query import (
    DESCENDING,
    MATCH_ALL,
    AnyFieldContains,
    Buckets,
    Contains,
    Equals,
    Filter,
    GroupStats,
    Membership,
    Overview,
    Range,
    Sort,
    TextSearch,
)
from catalog.query.mongo import (
    clause_to_mongo,
    to_mongo_filter,
    to_mongo_pipeline,
    to_mongo_projection,
    to_mongo_sort,
)


def test_empty_filter_matches_everything():
    assert to_mongo_filter(MATCH_ALL) == {}


def test_equals_is_anchored_and_escaped():
    fragment = clause_to_mongo(Equals("category", "home+garden"))
    assert fragment == {"category": {"$regex": r"^home\+garden$", "$options": "i"}}

    pattern = re.compile(fragment["category"]["$regex"], re.IGNORECASE)
    assert pattern.search("Home+Garden")
    assert not pattern.search("home+garden-decor")


def test_equals_does_not_match_longer_category():
    pattern = re.compile(clause_to_mongo(Equals("category", "Phones"))["category"]["$regex"], re.IGNORECASE)
    assert pattern.search("phones")
    assert not pattern.search("smartphones")


def test_contains_and_range():
    assert clause_to_mongo(Contains("brand", "app")) == {"brand": {"$regex": "app", "$options": "i"}}
    assert clause_to_mongo(Range("price", gte=0, lte=500)) == {"price": {"$gte": 0, "$lte": 500}}
    assert clause_to_mongo(Range("stock", gt=0)) == {"stock": {"$gt": 0}}


def test_membership_uses_case_insensitive_patterns():
    fragment = clause_to_mongo(Membership("tags", ("Laptop",)))
    (pattern,) = fragment["tags"]["$in"]
    assert pattern.flags & re.IGNORECASE
    assert pattern.search("gaming laptop")


def test_text_and_any_field():
    assert clause_to_mongo(TextSearch("apple phone")) == {"$text": {"$search": "apple phone"}}
    fragment = clause_to_mongo(AnyFieldContains(("title", "brand"), "app"))
    assert fragment == {"$or": [
        {"title": {"$regex": "app", "$options": "i"}},
        {"brand": {"$regex": "app", "$options": "i"}},
    ]}


def test_colliding_keys_move_under_and():
    predicate = Filter((Range("price", gte=10), Range("price", lte=20), Equals("category", "x")))
    query = to_mongo_filter(predicate)
    assert query["price"] == {"$gte": 10}
    assert query["$and"] == [{"price": {"$lte": 20}}]
    assert "category" in query


def test_sort_has_id_tie_break():
    assert to_mongo_sort(Sort("price", 1)) == [("price", 1), ("_id", 1)]
    assert to_mongo_projection(Sort("price", 1)) is None


def test_relevance_sort_projects_score():
    sort = Sort("relevance", DESCENDING)
    assert to_mongo_sort(sort)[0] == ("score", {"$meta": "textScore"})
    assert to_mongo_projection(sort) == {"score": {"$meta": "textScore"}}


def test_group_stats_pipeline():
    pipeline = to_mongo_pipeline(GroupStats("brand", sort_by="inventoryValue", limit=10))
    stages = [next(iter(stage)) for stage in pipeline]
    assert stages == ["$match", "$group", "$sort", "$limit"]
    assert pipeline[0]["$match"] == {"brand": {"$exists": True, "$nin": ["", None]}}
    assert pipeline[1]["$group"]["_id"] == "$brand"
    assert pipeline[2]["$sort"] == {"inventoryValue": -1}
    assert pipeline[3]["$limit"] == 10


def test_group_stats_rejects_unknown_sort_key():
    with pytest.raises(ValueError):
        GroupStats("category", sort_by="popularity")


def test_bucket_pipeline_has_no_percentage():
    pipeline = to_mongo_pipeline(Buckets("price", (0, 100, 500), default="500+"))
    bucket = pipeline[0]["$bucket"]
    assert bucket["boundaries"] == [0, 100, 500]
    assert bucket["default"] == "500+"
    assert bucket["groupBy"] == "$price"
    assert "percentage" not in repr(pipeline)


def test_closed_buckets_fold_top_boundary():
    pipeline = to_mongo_pipeline(Buckets("rating", (0, 1, 2, 3, 4, 5), default="unrated", close_last=True))
    group_by = pipeline[0]["$bucket"]["groupBy"]
    assert group_by["$cond"][0] == {"$eq": ["$rating", 5]}
    assert group_by["$cond"][1] == 4


def test_bucket_boundaries_must_ascend():
    with pytest.raises(ValueError):
        Buckets("price", (100, 0), default="other")


def test_overview_pipeline_counts_non_empty_groups():
    pipeline = to_mongo_pipeline(Overview())
    projection = pipeline[1]["$project"]
    assert projection["categoryCount"]["$size"]["$filter"]["input"] == "$categories"
