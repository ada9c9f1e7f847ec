from .aggregations import Aggregation, Buckets, GroupStats, Overview
from .builder import ListingQuery, PageInfo, QueryBuilder
from .predicates import (
    ASCENDING,
    DESCENDING,
    MATCH_ALL,
    RELEVANCE,
    AnyFieldContains,
    Contains,
    Equals,
    Filter,
    Membership,
    Range,
    Sort,
    TextSearch,
)

__all__ = [
    "Aggregation",
    "Buckets",
    "GroupStats",
    "Overview",
    "ListingQuery",
    "PageInfo",
    "QueryBuilder",
    "ASCENDING",
    "DESCENDING",
    "MATCH_ALL",
    "RELEVANCE",
    "AnyFieldContains",
    "Contains",
    "Equals",
    "Filter",
    "Membership",
    "Range",
    "Sort",
    "TextSearch",
]
