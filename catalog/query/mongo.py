"""
MongoDB translation of typed filters, sorts and aggregation descriptors.
"""
import re
from typing import Any, Dict, List, Optional, Tuple

from .aggregations import Aggregation, Buckets, GroupStats, Overview
from .predicates import (
    AnyFieldContains,
    Clause,
    Contains,
    Equals,
    Filter,
    Membership,
    Range,
    Sort,
    TextSearch,
)

TEXT_SCORE = {"$meta": "textScore"}


def _regex(pattern: str) -> Dict[str, str]:
    return {"$regex": pattern, "$options": "i"}


def clause_to_mongo(clause: Clause) -> Dict[str, Any]:
    """Translate a single clause into a MongoDB query fragment."""
    if isinstance(clause, Equals):
        return {clause.field: _regex(f"^{re.escape(clause.value)}$")}
    if isinstance(clause, Contains):
        return {clause.field: _regex(re.escape(clause.value))}
    if isinstance(clause, Range):
        return {clause.field: {f"${op}": value for op, value in clause.bounds()}}
    if isinstance(clause, Membership):
        patterns = [re.compile(re.escape(value), re.IGNORECASE) for value in clause.values]
        return {clause.field: {"$in": patterns}}
    if isinstance(clause, TextSearch):
        return {"$text": {"$search": clause.terms}}
    if isinstance(clause, AnyFieldContains):
        pattern = re.escape(clause.value)
        return {"$or": [{name: _regex(pattern)} for name in clause.fields]}
    raise TypeError(f"Unsupported clause type: {type(clause).__name__}")


def to_mongo_filter(predicate: Filter) -> Dict[str, Any]:
    """Translate a ``Filter`` into a MongoDB query document.

    Fragments are merged into one document; when two clauses constrain the
    same key the extra ones are moved under ``$and``.
    """
    query: Dict[str, Any] = {}
    overflow: List[Dict[str, Any]] = []
    for clause in predicate.clauses:
        fragment = clause_to_mongo(clause)
        if any(key in query for key in fragment):
            overflow.append(fragment)
        else:
            query.update(fragment)
    if overflow:
        query.setdefault("$and", []).extend(overflow)
    return query


def to_mongo_sort(sort: Sort) -> List[Tuple[str, Any]]:
    """Sort keys with an ``_id`` tie-break in the same direction."""
    if sort.by_relevance:
        return [("score", TEXT_SCORE), ("_id", -1)]
    return [(sort.field, sort.direction), ("_id", sort.direction)]


def to_mongo_projection(sort: Sort) -> Optional[Dict[str, Any]]:
    return {"score": TEXT_SCORE} if sort.by_relevance else None


def _non_empty(field: str) -> Dict[str, Any]:
    return {field: {"$exists": True, "$nin": ["", None]}}


def _zero_if_null(field: str) -> Dict[str, Any]:
    return {"$ifNull": [f"${field}", 0]}


def _without_empty(array: str) -> Dict[str, Any]:
    return {"$filter": {"input": array, "cond": {"$not": [{"$in": ["$$this", ["", None]]}]}}}


def _inventory_value() -> Dict[str, Any]:
    return {"$sum": {"$multiply": [_zero_if_null("price"), _zero_if_null("stock")]}}


def group_stats_pipeline(aggregation: GroupStats) -> List[Dict[str, Any]]:
    pipeline: List[Dict[str, Any]] = [
        {"$match": _non_empty(aggregation.key)},
        {
            "$group": {
                "_id": f"${aggregation.key}",
                "count": {"$sum": 1},
                "totalStock": {"$sum": _zero_if_null("stock")},
                "inventoryValue": _inventory_value(),
                "averagePrice": {"$avg": "$price"},
                "maxPrice": {"$max": "$price"},
                "minPrice": {"$min": "$price"},
                "averageRating": {"$avg": "$rating"},
                "discountedCount": {
                    "$sum": {"$cond": [{"$gt": [_zero_if_null("discountPercentage"), 0]}, 1, 0]}
                },
            }
        },
        {"$sort": {aggregation.sort_by: -1 if aggregation.descending else 1}},
    ]
    if aggregation.limit is not None:
        pipeline.append({"$limit": aggregation.limit})
    return pipeline


def buckets_pipeline(aggregation: Buckets) -> List[Dict[str, Any]]:
    group_by: Any = f"${aggregation.field}"
    if aggregation.close_last:
        # fold the top boundary into the last bucket; missing values stay missing
        group_by = {
            "$cond": [
                {"$eq": [f"${aggregation.field}", aggregation.boundaries[-1]]},
                aggregation.boundaries[-2],
                f"${aggregation.field}",
            ]
        }
    return [
        {
            "$bucket": {
                "groupBy": group_by,
                "boundaries": list(aggregation.boundaries),
                "default": aggregation.default,
                "output": {
                    "count": {"$sum": 1},
                    "averagePrice": {"$avg": "$price"},
                    "averageRating": {"$avg": "$rating"},
                    "totalStock": {"$sum": _zero_if_null("stock")},
                    "categories": {"$addToSet": "$category"},
                },
            }
        },
        {"$addFields": {"categoryCount": {"$size": "$categories"}}},
        {"$project": {"categories": 0}},
    ]


def overview_pipeline(aggregation: Overview) -> List[Dict[str, Any]]:
    stock = _zero_if_null("stock")
    return [
        {
            "$group": {
                "_id": None,
                "totalProducts": {"$sum": 1},
                "categories": {"$addToSet": "$category"},
                "brands": {"$addToSet": "$brand"},
                "averagePrice": {"$avg": "$price"},
                "averageRating": {"$avg": "$rating"},
                "totalStock": {"$sum": stock},
                "inventoryValue": _inventory_value(),
                "outOfStock": {"$sum": {"$cond": [{"$lte": [stock, 0]}, 1, 0]}},
                "lowStock": {
                    "$sum": {
                        "$cond": [
                            {"$and": [{"$gt": [stock, 0]}, {"$lte": [stock, aggregation.low_stock_threshold]}]},
                            1,
                            0,
                        ]
                    }
                },
            }
        },
        {
            "$project": {
                "_id": 0,
                "totalProducts": 1,
                "averagePrice": 1,
                "averageRating": 1,
                "totalStock": 1,
                "inventoryValue": 1,
                "outOfStock": 1,
                "lowStock": 1,
                "categoryCount": {"$size": _without_empty("$categories")},
                "brandCount": {"$size": _without_empty("$brands")},
            }
        },
    ]


def to_mongo_pipeline(aggregation: Aggregation) -> List[Dict[str, Any]]:
    if isinstance(aggregation, GroupStats):
        return group_stats_pipeline(aggregation)
    if isinstance(aggregation, Buckets):
        return buckets_pipeline(aggregation)
    if isinstance(aggregation, Overview):
        return overview_pipeline(aggregation)
    raise TypeError(f"Unsupported aggregation type: {type(aggregation).__name__}")
