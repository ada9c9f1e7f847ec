"""
Error taxonomy for the product catalog.
Services raise these; the web layer renders them as JSON error bodies.
"""
from typing import Any, Dict, List, Optional


class CatalogError(Exception):
    """Base class for every error the catalog reports to its callers."""

    status_code = 500
    kind = "CatalogError"

    def __init__(self, message: str, details: Optional[List[Dict[str, Any]]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or []

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {
            "success": False,
            "error": self.kind,
            "message": self.message,
        }
        if self.details:
            body["details"] = self.details
        return body


class InvalidInput(CatalogError):
    """Required field missing or value out of range on a mutation path."""

    status_code = 400
    kind = "InvalidInput"


class NotFound(CatalogError):
    """Referenced product id does not exist."""

    status_code = 404
    kind = "NotFound"

    def __init__(self, resource: str, resource_id: str):
        super().__init__(f"{resource} {resource_id} not found")
        self.resource = resource
        self.resource_id = resource_id


class StoreUnavailable(CatalogError):
    """The backing store cannot be reached or rejected the query."""

    status_code = 503
    kind = "StoreUnavailable"


class DeadlineExceeded(StoreUnavailable):
    """A store query did not finish before its deadline."""

    status_code = 504
    kind = "DeadlineExceeded"


class AggregationFailed(CatalogError):
    """One of the concurrent report sub-queries failed."""

    status_code = 500
    kind = "AggregationFailed"

    def __init__(self, sub_query: str, cause: BaseException):
        super().__init__(f"Aggregation '{sub_query}' failed: {cause}")
        self.sub_query = sub_query
        self.cause = cause

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["subQuery"] = self.sub_query
        return body
