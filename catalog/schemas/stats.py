"""
Statistics API schemas.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pydantic import Field, field_validator

from .common import CamelModel


class GroupStatistics(CamelModel):
    """Statistics for one category or brand."""
    name: str = Field(..., description="Category or brand name")
    total_products: int
    total_stock: int
    inventory_value: float = Field(..., description="Sum of price x stock")
    average_price: Optional[float] = None
    max_price: Optional[float] = None
    min_price: Optional[float] = None
    price_range: Optional[float] = Field(None, description="maxPrice - minPrice")
    average_rating: Optional[float] = None
    discounted_products: int = Field(0, description="Products with a discount")
    discount_rate: float = Field(0, description="Share of discounted products, in percent")


class PriceBucket(CamelModel):
    range: str = Field(..., description="Price range label, e.g. 100-500")
    count: int
    percentage: float = Field(..., description="Share of the whole catalog, in percent")
    average_rating: Optional[float] = None
    total_stock: int
    category_count: int


class RatingBucket(CamelModel):
    range: str = Field(..., description="Rating range label, e.g. 4-5")
    count: int
    percentage: float = Field(..., description="Share of the whole catalog, in percent")
    average_price: Optional[float] = None
    category_count: int


class CatalogOverview(CamelModel):
    total_products: int = 0
    category_count: int = 0
    brand_count: int = 0
    average_price: Optional[float] = None
    average_rating: Optional[float] = None
    total_stock: int = 0
    inventory_value: float = 0
    out_of_stock: int = 0
    low_stock: int = 0


class StatsReportResponse(CamelModel):
    """Full catalog report."""
    success: bool = True
    message: str = "Statistics retrieved successfully"
    by_category: List[GroupStatistics]
    by_brand: List[GroupStatistics]
    price_distribution: List[PriceBucket]
    rating_distribution: List[RatingBucket]
    overview: CatalogOverview
    generated_at: datetime


class CategoryStatsResponse(CamelModel):
    success: bool = True
    categories: List[GroupStatistics]
    count: int


class BrandStatsResponse(CamelModel):
    success: bool = True
    brands: List[GroupStatistics]
    count: int


class TopRatedItem(CamelModel):
    id: str = Field(..., alias="_id")
    title: str
    price: float
    rating: float
    category: Optional[str] = None
    brand: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v):
        return str(v) if isinstance(v, ObjectId) else v


class TopRatedResponse(CamelModel):
    success: bool = True
    items: List[TopRatedItem]
    count: int
    criteria: Dict[str, Any] = Field(default_factory=dict, description="minPrice, limit and order used")
