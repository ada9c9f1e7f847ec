"""
Models package for database document structures.
These models represent how data is stored in MongoDB.
"""
from .product import (
    DEFAULT_CATEGORY,
    TEXT_INDEX_WEIGHTS,
    UPDATABLE_FIELDS,
    ProductDocument,
    build_search_keywords,
    utcnow,
)

__all__ = [
    "DEFAULT_CATEGORY",
    "TEXT_INDEX_WEIGHTS",
    "UPDATABLE_FIELDS",
    "ProductDocument",
    "build_search_keywords",
    "utcnow",
]
