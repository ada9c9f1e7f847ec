"""
Product data models for database documents.
These represent the actual structure of documents stored in MongoDB.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DEFAULT_CATEGORY = "uncategorized"

# Weighted full-text index over the product's descriptive fields
TEXT_INDEX_WEIGHTS = {
    "title": 10,
    "brand": 5,
    "category": 3,
    "description": 1,
}

# Fields a partial update is allowed to change
UPDATABLE_FIELDS = (
    "title",
    "description",
    "price",
    "category",
    "stock",
    "brand",
    "imageUrl",
    "tags",
    "rating",
    "discountPercentage",
    "specifications",
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def build_search_keywords(title: str, brand: str = "", category: str = "") -> List[str]:
    """Lowercase keyword list derived from title, brand and category."""
    keywords = []
    for value in (title, brand, category):
        value = (value or "").strip().lower()
        if value and value not in keywords:
            keywords.append(value)
    return keywords


class ProductDocument(BaseModel):
    """
    Product document model representing the MongoDB document structure.
    Field names are snake_case in Python and camelCase in the collection.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        arbitrary_types_allowed=True,
    )

    id: Optional[ObjectId] = Field(None, alias="_id", description="Product ID")
    title: str = Field(..., min_length=1, description="Product title")
    price: float = Field(..., ge=0, description="Product price")

    description: str = Field(default="", description="Product description")
    category: str = Field(default=DEFAULT_CATEGORY, description="Product category")
    brand: str = Field(default="", description="Product brand")
    stock: int = Field(default=0, ge=0, description="Available stock")
    rating: Optional[float] = Field(None, ge=0, le=5, description="Average rating")
    discount_percentage: Optional[float] = Field(None, ge=0, le=100, description="Current discount")
    tags: List[str] = Field(default_factory=list, description="Product tags")
    image_url: str = Field(default="", description="Main image URL")
    thumbnail: Optional[str] = Field(None, description="Thumbnail URL")
    images: List[str] = Field(default_factory=list, description="Additional image URLs")
    specifications: Dict[str, Any] = Field(default_factory=dict, description="Key-value specifications")

    # Derived at write time
    search_keywords: List[str] = Field(default_factory=list, description="Lowercase search keywords")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")
    updated_at: Optional[datetime] = Field(None, description="Last update timestamp")

    def to_document(self) -> Dict[str, Any]:
        """Dictionary ready to be inserted into the collection."""
        return self.model_dump(by_alias=True, exclude={"id"}, exclude_none=True)

    @classmethod
    def new(cls, now: Optional[datetime] = None, **fields: Any) -> "ProductDocument":
        """Build a product for insertion, filling timestamps and search keywords."""
        now = now or utcnow()
        product = cls(**fields)
        product.search_keywords = build_search_keywords(product.title, product.brand, product.category)
        product.created_at = now
        product.updated_at = now
        return product
