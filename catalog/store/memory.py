"""
In-process product store.

Evaluates the same typed filters, sorts and aggregation descriptors as the
MongoDB store, over a list of documents held in memory. Selected with
``STORE_BACKEND=memory`` and used by the test-suite.
"""
import copy
import re
from bisect import bisect_right
from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId

from ..models.product import TEXT_INDEX_WEIGHTS
from ..query.aggregations import Aggregation, Buckets, GroupStats, Overview
from ..query.predicates import (
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
from .base import Document, ProductStore

_WORD = re.compile(r"\w+")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _strings(document: Document, field: str) -> List[str]:
    value = document.get(field)
    values = value if isinstance(value, list) else [value]
    return [item for item in values if isinstance(item, str)]


def _mean(values: Iterable[Any]) -> Optional[float]:
    numbers = [value for value in values if _is_number(value)]
    return sum(numbers) / len(numbers) if numbers else None


def _number(document: Document, field: str) -> float:
    value = document.get(field)
    return value if _is_number(value) else 0


def text_score(document: Document, terms: str) -> float:
    """Weighted count of search words found in the text-indexed fields."""
    words = set(_WORD.findall(terms.lower()))
    score = 0.0
    for field, weight in TEXT_INDEX_WEIGHTS.items():
        for value in _strings(document, field):
            score += weight * sum(1 for word in _WORD.findall(value.lower()) if word in words)
    return score


def _in_range(value: Any, clause: Range) -> bool:
    if not _is_number(value):
        return False
    checks = {
        "gt": lambda bound: value > bound,
        "gte": lambda bound: value >= bound,
        "lt": lambda bound: value < bound,
        "lte": lambda bound: value <= bound,
    }
    return all(checks[op](bound) for op, bound in clause.bounds())


def matches(document: Document, clause: Clause) -> bool:
    if isinstance(clause, Equals):
        wanted = clause.value.lower()
        return any(value.lower() == wanted for value in _strings(document, clause.field))
    if isinstance(clause, Contains):
        needle = clause.value.lower()
        return any(needle in value.lower() for value in _strings(document, clause.field))
    if isinstance(clause, Range):
        return _in_range(document.get(clause.field), clause)
    if isinstance(clause, Membership):
        needles = [value.lower() for value in clause.values]
        return any(
            needle in value.lower()
            for value in _strings(document, clause.field)
            for needle in needles
        )
    if isinstance(clause, TextSearch):
        return text_score(document, clause.terms) > 0
    if isinstance(clause, AnyFieldContains):
        return any(matches(document, Contains(name, clause.value)) for name in clause.fields)
    raise TypeError(f"Unsupported clause type: {type(clause).__name__}")


def _nullable_key(value: Any):
    # missing values order before everything else, as in MongoDB
    return (value is not None, value)


class MemoryStore(ProductStore):
    """Products kept in a Python list."""

    def __init__(self, documents: Optional[List[Document]] = None):
        self.documents: List[Document] = []
        for document in documents or []:
            self._add(document)

    def _add(self, document: Document) -> Document:
        stored = copy.deepcopy(document)
        stored.setdefault("_id", ObjectId())
        self.documents.append(stored)
        return stored

    def _select(self, predicate: Filter) -> List[Document]:
        return [
            document
            for document in self.documents
            if all(matches(document, clause) for clause in predicate.clauses)
        ]

    def _find_text_terms(self, predicate: Filter) -> Optional[str]:
        for clause in predicate.clauses:
            if isinstance(clause, TextSearch):
                return clause.terms
        return None

    async def find(self, predicate: Filter, sort: Sort, skip: int = 0, limit: int = 0) -> List[Document]:
        selected = [copy.deepcopy(document) for document in self._select(predicate)]
        terms = self._find_text_terms(predicate)
        if sort.by_relevance and terms is not None:
            for document in selected:
                document["score"] = text_score(document, terms)
            selected.sort(key=lambda d: (d["score"], d["_id"]), reverse=True)
        else:
            selected.sort(
                key=lambda d: (_nullable_key(d.get(sort.field)), d["_id"]),
                reverse=sort.direction < 0,
            )
        window = selected[skip:]
        return window[:limit] if limit else window

    async def count(self, predicate: Filter) -> int:
        return len(self._select(predicate))

    async def aggregate(self, aggregation: Aggregation) -> List[Document]:
        if isinstance(aggregation, GroupStats):
            return self._group_stats(aggregation)
        if isinstance(aggregation, Buckets):
            return self._buckets(aggregation)
        if isinstance(aggregation, Overview):
            return self._overview(aggregation)
        raise TypeError(f"Unsupported aggregation type: {type(aggregation).__name__}")

    def _group_stats(self, aggregation: GroupStats) -> List[Document]:
        groups: Dict[Any, List[Document]] = {}
        for document in self.documents:
            key = document.get(aggregation.key)
            if key is None or key == "":
                continue
            groups.setdefault(key, []).append(document)

        records = []
        for key, members in groups.items():
            prices = [d.get("price") for d in members if _is_number(d.get("price"))]
            records.append({
                "_id": key,
                "count": len(members),
                "totalStock": sum(_number(d, "stock") for d in members),
                "inventoryValue": sum(_number(d, "price") * _number(d, "stock") for d in members),
                "averagePrice": _mean(prices),
                "maxPrice": max(prices) if prices else None,
                "minPrice": min(prices) if prices else None,
                "averageRating": _mean(d.get("rating") for d in members),
                "discountedCount": sum(1 for d in members if _number(d, "discountPercentage") > 0),
            })

        records.sort(key=lambda r: _nullable_key(r[aggregation.sort_by]), reverse=aggregation.descending)
        return records[: aggregation.limit] if aggregation.limit is not None else records

    def _buckets(self, aggregation: Buckets) -> List[Document]:
        lower, upper = aggregation.boundaries[0], aggregation.boundaries[-1]
        buckets: Dict[Any, List[Document]] = {}
        for document in self.documents:
            value = document.get(aggregation.field)
            if aggregation.close_last and value == upper:
                value = aggregation.boundaries[-2]
            if _is_number(value) and lower <= value < upper:
                key = aggregation.boundaries[bisect_right(aggregation.boundaries, value) - 1]
            else:
                key = aggregation.default
            buckets.setdefault(key, []).append(document)

        order = list(aggregation.boundaries[:-1]) + [aggregation.default]
        records = []
        for key in order:
            members = buckets.get(key)
            if not members:
                continue
            records.append({
                "_id": key,
                "count": len(members),
                "averagePrice": _mean(d.get("price") for d in members),
                "averageRating": _mean(d.get("rating") for d in members),
                "totalStock": sum(_number(d, "stock") for d in members),
                "categoryCount": len({d.get("category") for d in members} - {None}),
            })
        return records

    def _overview(self, aggregation: Overview) -> List[Document]:
        if not self.documents:
            return []
        stocks = [_number(d, "stock") for d in self.documents]
        return [{
            "totalProducts": len(self.documents),
            "categoryCount": len({d.get("category") for d in self.documents} - {None, ""}),
            "brandCount": len({d.get("brand") for d in self.documents} - {None, ""}),
            "averagePrice": _mean(d.get("price") for d in self.documents),
            "averageRating": _mean(d.get("rating") for d in self.documents),
            "totalStock": sum(stocks),
            "inventoryValue": sum(_number(d, "price") * _number(d, "stock") for d in self.documents),
            "outOfStock": sum(1 for stock in stocks if stock <= 0),
            "lowStock": sum(1 for stock in stocks if 0 < stock <= aggregation.low_stock_threshold),
        }]

    async def get(self, product_id: ObjectId) -> Optional[Document]:
        for document in self.documents:
            if document["_id"] == product_id:
                return copy.deepcopy(document)
        return None

    async def insert(self, document: Document) -> Document:
        stored = self._add(document)
        document["_id"] = stored["_id"]
        return copy.deepcopy(stored)

    async def insert_many(self, documents: List[Document]) -> int:
        for document in documents:
            await self.insert(document)
        return len(documents)

    async def update(self, product_id: ObjectId, changes: Document) -> Optional[Document]:
        for document in self.documents:
            if document["_id"] == product_id:
                document.update(copy.deepcopy(changes))
                return copy.deepcopy(document)
        return None

    async def delete(self, product_id: ObjectId) -> Optional[Document]:
        for index, document in enumerate(self.documents):
            if document["_id"] == product_id:
                return self.documents.pop(index)
        return None

    async def clear(self) -> int:
        removed = len(self.documents)
        self.documents.clear()
        return removed

    async def ping(self) -> bool:
        return True
