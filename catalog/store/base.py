"""
Abstract product store.

The query builder, the aggregation reporter and the product service only talk
to the collection through this interface.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from bson import ObjectId

from ..query.aggregations import Aggregation
from ..query.predicates import Filter, Sort

Document = Dict[str, Any]


class ProductStore(ABC):
    """Async access to the products collection."""

    @abstractmethod
    async def find(self, predicate: Filter, sort: Sort, skip: int = 0, limit: int = 0) -> List[Document]:
        """Matching documents in ``sort`` order; ``limit=0`` means no limit."""

    @abstractmethod
    async def count(self, predicate: Filter) -> int:
        """Number of documents matching ``predicate``, ignoring any window."""

    @abstractmethod
    async def aggregate(self, aggregation: Aggregation) -> List[Document]:
        """Run one aggregation descriptor over the whole collection."""

    @abstractmethod
    async def get(self, product_id: ObjectId) -> Optional[Document]:
        ...

    @abstractmethod
    async def insert(self, document: Document) -> Document:
        """Store a new document and return it with its assigned ``_id``."""

    @abstractmethod
    async def insert_many(self, documents: List[Document]) -> int:
        ...

    @abstractmethod
    async def update(self, product_id: ObjectId, changes: Document) -> Optional[Document]:
        """Set ``changes`` on a document; returns the updated document or None."""

    @abstractmethod
    async def delete(self, product_id: ObjectId) -> Optional[Document]:
        """Remove a document; returns the removed document or None."""

    @abstractmethod
    async def clear(self) -> int:
        ...

    @abstractmethod
    async def ping(self) -> bool:
        ...

    async def close(self) -> None:
        return None
