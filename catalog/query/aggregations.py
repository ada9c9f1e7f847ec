"""
Aggregation descriptors.

Each descriptor names one grouping computation over the products collection.
Stores return plain records with raw (unrounded) accumulator values; rounding
and percentages are applied by the reporter.

Record shapes:

- ``GroupStats``: ``_id`` (group key), ``count``, ``totalStock``,
  ``inventoryValue``, ``averagePrice``, ``maxPrice``, ``minPrice``,
  ``averageRating``, ``discountedCount``
- ``Buckets``: ``_id`` (lower boundary, or ``default`` label), ``count``,
  ``averagePrice``, ``averageRating``, ``totalStock``, ``categoryCount``
- ``Overview``: one record with ``totalProducts``, ``categoryCount``,
  ``brandCount``, ``averagePrice``, ``averageRating``, ``totalStock``,
  ``inventoryValue``, ``outOfStock``, ``lowStock`` (no record when empty)
"""
from dataclasses import dataclass
from typing import Optional, Tuple, Union

GROUP_SORT_KEYS = (
    "_id",
    "count",
    "totalStock",
    "inventoryValue",
    "averagePrice",
    "maxPrice",
    "minPrice",
    "averageRating",
)

LOW_STOCK_THRESHOLD = 10


@dataclass(frozen=True)
class GroupStats:
    """Group products by ``key`` (empty keys excluded) and accumulate stats."""
    key: str
    sort_by: str = "averagePrice"
    descending: bool = True
    limit: Optional[int] = None

    def __post_init__(self):
        if self.sort_by not in GROUP_SORT_KEYS:
            raise ValueError(f"Cannot sort groups by {self.sort_by!r}")


@dataclass(frozen=True)
class Buckets:
    """Bucket products on a numeric field.

    ``boundaries`` are ascending lower bounds; each bucket is
    ``[boundaries[i], boundaries[i + 1])``. Values outside the boundaries and
    missing values land in the ``default`` bucket. With ``close_last`` the top
    boundary itself is counted in the last bucket (e.g. a 5-star rating).
    """
    field: str
    boundaries: Tuple[float, ...]
    default: str
    close_last: bool = False

    def __post_init__(self):
        if len(self.boundaries) < 2 or list(self.boundaries) != sorted(set(self.boundaries)):
            raise ValueError("Bucket boundaries must be at least two strictly ascending values")


@dataclass(frozen=True)
class Overview:
    """Collection-wide totals."""
    low_stock_threshold: int = LOW_STOCK_THRESHOLD


Aggregation = Union[GroupStats, Buckets, Overview]
