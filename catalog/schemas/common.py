"""
Common schemas used across the API.
"""
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys, populated by either name."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class HealthCheckResponse(BaseModel):
    """Response schema for health check endpoint."""
    status: str = Field(..., description="Application health status")
    database: str = Field(..., description="Database connection status")
    timestamp: str = Field(..., description="Health check timestamp")
    version: str = Field(..., description="Application version")


class RootResponse(BaseModel):
    """Response schema for root endpoint."""
    message: str = Field(..., description="Welcome message")
    version: str = Field(..., description="API version")
    docs: str = Field(..., description="Documentation URL")
    health: str = Field(..., description="Health check URL")
    status: str = Field(..., description="Application status")
    timestamp: str = Field(..., description="Response timestamp")


class ValidationErrorDetail(CamelModel):
    """Individual validation error detail."""
    field: str = Field(..., description="Field that failed validation")
    message: str = Field(..., description="Error message")
    input_value: Any = Field(None, description="Value that caused the error")


class ErrorResponse(CamelModel):
    """Generic error response schema."""
    success: bool = Field(False, description="Always false for errors")
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Human-readable error message")
    details: Optional[List[ValidationErrorDetail]] = Field(None, description="Per-field validation errors")
    sub_query: Optional[str] = Field(None, description="Failed report sub-query, if any")


class PaginationMeta(CamelModel):
    """Pagination metadata for list responses."""
    current_page: int = Field(..., description="Current page number")
    total_pages: int = Field(..., description="Total number of pages")
    total_products: int = Field(..., description="Total number of matching products")
    limit: int = Field(..., description="Items per page")
    has_next_page: bool = Field(..., description="Whether a next page exists")
    has_prev_page: bool = Field(..., description="Whether a previous page exists")
    next_page: Optional[int] = Field(None, description="Next page number")
    prev_page: Optional[int] = Field(None, description="Previous page number")
