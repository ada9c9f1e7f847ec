"""
MongoDB-backed product store (motor).
"""
import logging
from contextlib import asynccontextmanager
from typing import List, Optional

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ReturnDocument
from pymongo.errors import ExecutionTimeout, NetworkTimeout, PyMongoError

from ..errors import DeadlineExceeded, StoreUnavailable
from ..query.aggregations import Aggregation
from ..query.mongo import to_mongo_filter, to_mongo_pipeline, to_mongo_projection, to_mongo_sort
from ..query.predicates import Filter, Sort
from .base import Document, ProductStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def store_errors(operation: str):
    """Translate driver errors into the catalog error taxonomy."""
    try:
        yield
    except (ExecutionTimeout, NetworkTimeout) as e:
        logger.error(f"MongoDB {operation} timed out: {e}")
        raise DeadlineExceeded(f"Product store {operation} timed out") from e
    except PyMongoError as e:
        logger.error(f"MongoDB {operation} failed: {e}")
        raise StoreUnavailable(f"Product store {operation} failed: {e}") from e


class MongoStore(ProductStore):
    """Products collection in MongoDB.

    ``max_time_ms`` is sent with every read so the server abandons queries
    that outlive the request deadline.
    """

    def __init__(self, collection: AsyncIOMotorCollection, max_time_ms: int = 10000):
        self.collection = collection
        self.max_time_ms = max_time_ms

    async def find(self, predicate: Filter, sort: Sort, skip: int = 0, limit: int = 0) -> List[Document]:
        async with store_errors("find"):
            cursor = (
                self.collection.find(to_mongo_filter(predicate), to_mongo_projection(sort))
                .sort(to_mongo_sort(sort))
                .skip(skip)
                .max_time_ms(self.max_time_ms)
            )
            if limit:
                cursor = cursor.limit(limit)
            return await cursor.to_list(length=limit or None)

    async def count(self, predicate: Filter) -> int:
        async with store_errors("count"):
            return await self.collection.count_documents(
                to_mongo_filter(predicate), maxTimeMS=self.max_time_ms
            )

    async def aggregate(self, aggregation: Aggregation) -> List[Document]:
        async with store_errors("aggregate"):
            cursor = self.collection.aggregate(to_mongo_pipeline(aggregation), maxTimeMS=self.max_time_ms)
            return await cursor.to_list(length=None)

    async def get(self, product_id: ObjectId) -> Optional[Document]:
        async with store_errors("find_one"):
            return await self.collection.find_one({"_id": product_id})

    async def insert(self, document: Document) -> Document:
        async with store_errors("insert_one"):
            result = await self.collection.insert_one(document)
        document["_id"] = result.inserted_id
        return document

    async def insert_many(self, documents: List[Document]) -> int:
        if not documents:
            return 0
        async with store_errors("insert_many"):
            result = await self.collection.insert_many(documents)
        return len(result.inserted_ids)

    async def update(self, product_id: ObjectId, changes: Document) -> Optional[Document]:
        async with store_errors("update_one"):
            return await self.collection.find_one_and_update(
                {"_id": product_id},
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )

    async def delete(self, product_id: ObjectId) -> Optional[Document]:
        async with store_errors("delete_one"):
            return await self.collection.find_one_and_delete({"_id": product_id})

    async def clear(self) -> int:
        async with store_errors("delete_many"):
            result = await self.collection.delete_many({})
        return result.deleted_count

    async def ping(self) -> bool:
        try:
            await self.collection.database.command("ping")
            return True
        except PyMongoError as e:
            logger.warning(f"MongoDB ping failed: {e}")
            return False
