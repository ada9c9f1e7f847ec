"""
Listing query builder.

Turns the flat, optional string parameters of the listing/search endpoints into
a typed ``Filter``, a ``Sort`` and a pagination window. Malformed filter input
never raises: a value that does not parse is treated as absent.
"""
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .predicates import (
    DESCENDING,
    ASCENDING,
    RELEVANCE,
    AnyFieldContains,
    Contains,
    Equals,
    Filter,
    FilterBuilder,
    Membership,
    Range,
    Sort,
    TextSearch,
)

SORT_FIELDS = {
    "price": "price",
    "name": "title",
    "title": "title",
    "rating": "rating",
    "created": "createdAt",
    "createdAt": "createdAt",
    "stock": "stock",
    "brand": "brand",
    "updated": "updatedAt",
    "updatedAt": "updatedAt",
}
DEFAULT_SORT_FIELD = "createdAt"

SEARCH_FIELDS = ("title", "description", "category", "brand", "tags")
SEARCH_MODES = ("both", "text", "substring")

MIN_RATING = 0.0
MAX_RATING = 5.0

# skip is sent to Mongo as a signed 64-bit int
MAX_SKIP = 2 ** 63 - 1


def _first(raw: Any) -> Optional[str]:
    """Single string value of a parameter that may have been repeated."""
    if raw is None:
        return None
    if isinstance(raw, (list, tuple)):
        return _first(raw[0]) if raw else None
    return str(raw)


def _clean(raw: Any) -> Optional[str]:
    value = _first(raw)
    if value is None:
        return None
    value = value.strip()
    return value or None


def parse_int(raw: Any, default: int) -> int:
    value = _clean(raw)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        pass
    try:
        number = float(value)
    except ValueError:
        return default
    return int(number) if math.isfinite(number) else default


def parse_float(raw: Any) -> Optional[float]:
    value = _clean(raw)
    if value is None:
        return None
    try:
        number = float(value)
    except ValueError:
        return None
    return number if math.isfinite(number) else None


def parse_tags(raw: Any) -> Tuple[str, ...]:
    if raw is None:
        return ()
    values = raw if isinstance(raw, (list, tuple)) else [raw]
    tags: List[str] = []
    for value in values:
        for part in str(value).split(","):
            part = part.strip()
            if part and part not in tags:
                tags.append(part)
    return tuple(tags)


@dataclass(frozen=True)
class ListingQuery:
    """Everything a store needs to serve one listing request."""
    filter: Filter
    sort: Sort
    page: int
    limit: int
    filters_applied: Dict[str, Any] = field(default_factory=dict)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class PageInfo:
    """Pagination metadata derived from the full match count."""
    current_page: int
    total_pages: int
    total_products: int
    limit: int
    has_next_page: bool
    has_prev_page: bool
    next_page: Optional[int]
    prev_page: Optional[int]

    @classmethod
    def from_total(cls, page: int, limit: int, total: int) -> "PageInfo":
        total_pages = math.ceil(total / limit) if limit else 0
        has_next = page < total_pages
        has_prev = page > 1
        return cls(
            current_page=page,
            total_pages=total_pages,
            total_products=total,
            limit=limit,
            has_next_page=has_next,
            has_prev_page=has_prev,
            next_page=page + 1 if has_next else None,
            prev_page=page - 1 if has_prev else None,
        )


class QueryBuilder:
    """Builds ``ListingQuery`` objects from raw request parameters.

    ``search_mode`` decides how a free-text ``search`` is expressed:

    - ``both``: text-index predicate AND a substring OR over ``SEARCH_FIELDS``
    - ``text``: text-index predicate only
    - ``substring``: substring OR only (no text index needed)
    """

    def __init__(self, search_mode: str = "both", default_limit: int = 10, max_limit: int = 100):
        if search_mode not in SEARCH_MODES:
            raise ValueError(f"Unknown search mode {search_mode!r}; expected one of {SEARCH_MODES}")
        self.search_mode = search_mode
        self.default_limit = default_limit
        self.max_limit = max_limit

    def build(self, params: Mapping[str, Any], default_sort: str = DEFAULT_SORT_FIELD) -> ListingQuery:
        page = max(1, parse_int(params.get("page"), 1))
        limit = min(self.max_limit, max(1, parse_int(params.get("limit"), self.default_limit)))
        if (page - 1) * limit > MAX_SKIP:
            page = 1

        builder = FilterBuilder()
        applied: Dict[str, Any] = {}

        category = _clean(params.get("category"))
        if category:
            builder.add(Equals("category", category))
            applied["category"] = category

        brand = _clean(params.get("brand"))
        if brand:
            builder.add(Contains("brand", brand))
            applied["brand"] = brand

        price = self._price_range(params.get("minPrice"), params.get("maxPrice"))
        if price is not None:
            builder.add(price)
            applied["price"] = {"min": price.gte, "max": price.lte}

        in_stock = _clean(params.get("inStock"))
        if in_stock == "true":
            builder.add(Range("stock", gt=0))
            applied["inStock"] = True
        elif in_stock == "false":
            builder.add(Range("stock", lte=0))
            applied["inStock"] = False

        rating = parse_float(params.get("rating"))
        if rating is not None and MIN_RATING <= rating <= MAX_RATING:
            builder.add(Range("rating", gte=rating))
            applied["minRating"] = rating

        tags = parse_tags(params.get("tags"))
        if tags:
            builder.add(Membership("tags", tags))
            applied["tags"] = list(tags)

        search = _clean(params.get("search"))
        if search:
            if self.search_mode in ("both", "text"):
                builder.add(TextSearch(search))
            if self.search_mode in ("both", "substring"):
                builder.add(AnyFieldContains(SEARCH_FIELDS, search))
            applied["search"] = search

        predicate = builder.build()
        sort = self._sort(params.get("sort"), params.get("order"), predicate, default_sort)
        return ListingQuery(
            filter=predicate, sort=sort, page=page, limit=limit, filters_applied=applied
        )

    @staticmethod
    def _price_range(raw_min: Any, raw_max: Any) -> Optional[Range]:
        low = parse_float(raw_min)
        high = parse_float(raw_max)
        low = low if low is not None and low >= 0 else None
        high = high if high is not None and high >= 0 else None
        if low is None and high is None:
            return None
        if low is None:
            low = 0.0
        return Range("price", gte=low, lte=high)

    @staticmethod
    def _sort(raw_sort: Any, raw_order: Any, predicate: Filter, default_sort: str) -> Sort:
        requested = _clean(raw_sort) or default_sort
        if requested == RELEVANCE:
            if predicate.has_text_search():
                return Sort(RELEVANCE, DESCENDING)
            requested = DEFAULT_SORT_FIELD
        order = (_clean(raw_order) or "desc").lower()
        direction = ASCENDING if order == "asc" else DESCENDING
        return Sort(SORT_FIELDS.get(requested, DEFAULT_SORT_FIELD), direction)
