"""
Services package: catalog use-cases built on top of a ProductStore.
"""
from .deadline import with_deadline
from .products import ProductPage, ProductService, page_stats, parse_product_id
from .stats import AggregationReporter

__all__ = [
    "with_deadline",
    "ProductPage",
    "ProductService",
    "page_stats",
    "parse_product_id",
    "AggregationReporter",
]
