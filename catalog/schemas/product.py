"""
Product API schemas for request/response validation.
These models define the structure of data sent to and from the API.
"""
from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pydantic import Field, field_validator

from ..models.product import DEFAULT_CATEGORY
from .common import CamelModel, PaginationMeta


def _normalize_tags(value: Any) -> Any:
    if value is None:
        return value
    if isinstance(value, str):
        value = value.split(",")
    if isinstance(value, list):
        tags: List[str] = []
        for tag in value:
            tag = str(tag).strip()
            if tag and tag not in tags:
                tags.append(tag)
        return tags
    return value


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


# Request Schemas

class CreateProductRequest(CamelModel):
    """Request schema for creating a new product."""
    title: str = Field(..., max_length=300, description="Product title")
    price: float = Field(..., ge=0, description="Product price (must not be negative)")
    description: str = Field(default="", max_length=5000, description="Product description")
    category: str = Field(default=DEFAULT_CATEGORY, max_length=100, description="Product category")
    brand: str = Field(default="", max_length=100, description="Product brand")
    stock: int = Field(default=0, ge=0, description="Available stock quantity")
    rating: Optional[float] = Field(None, ge=0, le=5, description="Rating between 0 and 5")
    discount_percentage: Optional[float] = Field(None, ge=0, le=100, description="Discount percentage")
    tags: List[str] = Field(default_factory=list, description="Product tags")
    image_url: str = Field(default="", description="Main image URL")
    specifications: Dict[str, Any] = Field(default_factory=dict, description="Key-value specifications")

    @field_validator("title", "description", "category", "brand", "image_url", mode="before")
    @classmethod
    def strip_strings(cls, v):
        return _strip(v)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if not v:
            raise ValueError("Title cannot be empty")
        return v

    @field_validator("category")
    @classmethod
    def default_category(cls, v):
        return v or DEFAULT_CATEGORY

    @field_validator("tags", mode="before")
    @classmethod
    def validate_tags(cls, v):
        return _normalize_tags(v)


class UpdateProductRequest(CamelModel):
    """Request schema for a partial product update. Unset fields are left alone."""
    title: Optional[str] = Field(None, max_length=300, description="Product title")
    price: Optional[float] = Field(None, ge=0, description="Product price")
    description: Optional[str] = Field(None, max_length=5000, description="Product description")
    category: Optional[str] = Field(None, max_length=100, description="Product category")
    brand: Optional[str] = Field(None, max_length=100, description="Product brand")
    stock: Optional[int] = Field(None, ge=0, description="Stock quantity")
    rating: Optional[float] = Field(None, ge=0, le=5, description="Rating between 0 and 5")
    discount_percentage: Optional[float] = Field(None, ge=0, le=100, description="Discount percentage")
    tags: Optional[List[str]] = Field(None, description="Product tags")
    image_url: Optional[str] = Field(None, description="Main image URL")
    specifications: Optional[Dict[str, Any]] = Field(None, description="Key-value specifications")

    @field_validator("title", "description", "category", "brand", "image_url", mode="before")
    @classmethod
    def strip_strings(cls, v):
        return _strip(v)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v):
        if v is not None and not v:
            raise ValueError("Title cannot be empty")
        return v

    @field_validator("category")
    @classmethod
    def default_category(cls, v):
        if v is None:
            return v
        return v or DEFAULT_CATEGORY

    @field_validator("tags", mode="before")
    @classmethod
    def validate_tags(cls, v):
        return _normalize_tags(v)

    def changes(self) -> Dict[str, Any]:
        """Explicitly supplied, non-null fields keyed by their stored name."""
        return self.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)


# Response Schemas

class ProductResponse(CamelModel):
    """Response schema for a single product."""
    id: str = Field(..., alias="_id", description="Product ID")
    title: str = Field(..., description="Product title")
    price: float = Field(..., description="Product price")
    description: str = Field(default="", description="Product description")
    category: Optional[str] = Field(None, description="Product category")
    brand: Optional[str] = Field(None, description="Product brand")
    stock: int = Field(default=0, description="Available stock")
    rating: Optional[float] = Field(None, description="Rating between 0 and 5")
    discount_percentage: Optional[float] = Field(None, description="Discount percentage")
    tags: List[str] = Field(default_factory=list, description="Product tags")
    image_url: Optional[str] = Field(None, description="Main image URL")
    thumbnail: Optional[str] = Field(None, description="Thumbnail URL")
    images: List[str] = Field(default_factory=list, description="Additional image URLs")
    specifications: Dict[str, Any] = Field(default_factory=dict, description="Key-value specifications")
    search_keywords: List[str] = Field(default_factory=list, description="Lowercase search keywords")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")
    score: Optional[float] = Field(None, description="Text relevance score (search results only)")

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, v):
        return str(v) if isinstance(v, ObjectId) else v

    @field_validator("stock", mode="before")
    @classmethod
    def default_stock(cls, v):
        return 0 if v is None else v


class PageStats(CamelModel):
    """Statistics over the products returned on the current page."""
    min_price: float
    max_price: float
    avg_price: float
    total_stock: int
    categories: List[str]


class SortInfo(CamelModel):
    by: str = Field(..., description="Field the results are ordered by")
    order: str = Field(..., description="asc or desc")


class ProductsListResponse(CamelModel):
    """Response schema for product list with pagination."""
    success: bool = True
    message: str
    items: List[ProductResponse] = Field(..., description="Products on this page")
    pagination: PaginationMeta
    filters_applied: Dict[str, Any] = Field(default_factory=dict, description="Filters that were applied")
    stats: Optional[PageStats] = Field(None, description="Statistics over this page")
    sort: SortInfo


class ProductDetailResponse(CamelModel):
    """A product together with products from the same category."""
    success: bool = True
    product: ProductResponse
    similar_products: List[ProductResponse] = Field(default_factory=list)


class ProductMutationResponse(CamelModel):
    """Response schema for create, update and delete."""
    success: bool = True
    message: str
    product: ProductResponse
    changes: Optional[List[str]] = Field(None, description="Fields changed by an update")


class CategoryCount(CamelModel):
    name: str
    count: int


class CategoriesResponse(CamelModel):
    success: bool = True
    categories: List[CategoryCount]
    count: int
