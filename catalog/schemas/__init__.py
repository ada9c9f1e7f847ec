"""
Schemas package for API request/response validation.
These models define the structure of data sent to and from the API endpoints.
"""

# Product schemas
from .product import (
    CategoriesResponse,
    CategoryCount,
    CreateProductRequest,
    PageStats,
    ProductDetailResponse,
    ProductMutationResponse,
    ProductResponse,
    ProductsListResponse,
    SortInfo,
    UpdateProductRequest,
)

# Statistics schemas
from .stats import (
    BrandStatsResponse,
    CatalogOverview,
    CategoryStatsResponse,
    GroupStatistics,
    PriceBucket,
    RatingBucket,
    StatsReportResponse,
    TopRatedItem,
    TopRatedResponse,
)

# Common schemas
from .common import (
    CamelModel,
    ErrorResponse,
    HealthCheckResponse,
    PaginationMeta,
    RootResponse,
    ValidationErrorDetail,
)

__all__ = [
    # Product schemas
    "CategoriesResponse",
    "CategoryCount",
    "CreateProductRequest",
    "PageStats",
    "ProductDetailResponse",
    "ProductMutationResponse",
    "ProductResponse",
    "ProductsListResponse",
    "SortInfo",
    "UpdateProductRequest",

    # Statistics schemas
    "BrandStatsResponse",
    "CatalogOverview",
    "CategoryStatsResponse",
    "GroupStatistics",
    "PriceBucket",
    "RatingBucket",
    "StatsReportResponse",
    "TopRatedItem",
    "TopRatedResponse",

    # Common schemas
    "CamelModel",
    "ErrorResponse",
    "HealthCheckResponse",
    "PaginationMeta",
    "RootResponse",
    "ValidationErrorDetail",
]
