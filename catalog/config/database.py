"""
Database configuration and connection management.
Handles the MongoDB connection lifecycle and the product store the app serves from.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING, TEXT
from pymongo.errors import PyMongoError

from ..errors import StoreUnavailable
from ..models.product import TEXT_INDEX_WEIGHTS
from ..store import MemoryStore, MongoStore, ProductStore
from .settings import Settings

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Manages the MongoDB client and the products collection."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self.connected = False

    async def connect(self) -> None:
        """Create the client and check the server answers a ping."""
        settings = self.settings
        logger.info("🚀 Connecting to MongoDB...")

        self.client = AsyncIOMotorClient(
            settings.mongodb_url,
            serverSelectionTimeoutMS=settings.mongodb_server_selection_timeout_ms,
            connectTimeoutMS=settings.mongodb_connect_timeout_ms,
            socketTimeoutMS=settings.mongodb_socket_timeout_ms,
            maxPoolSize=settings.mongodb_max_pool_size,
            minPoolSize=settings.mongodb_min_pool_size,
            retryWrites=settings.mongodb_retry_writes,
            tz_aware=True,
        )
        self.database = self.client[settings.database_name]

        try:
            await self.client.admin.command("ping")
            self.connected = True
            logger.info("✅ Connected to MongoDB successfully")
        except PyMongoError as db_error:
            # Requests will surface StoreUnavailable until the server is reachable
            logger.warning(f"⚠️  MongoDB connection failed: {db_error}")

    async def disconnect(self) -> None:
        if self.client is not None:
            self.client.close()
            self.client = None
            self.database = None
            self.connected = False
            logger.info("🔌 MongoDB connection closed")

    @property
    def collection(self) -> AsyncIOMotorCollection:
        if self.database is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self.database[self.settings.collection_name]

    async def create_indexes(self) -> None:
        """Weighted text index plus single-field indexes used by filters and sorts."""
        if not self.connected:
            logger.warning("Database not connected, skipping index creation")
            return

        products = self.collection
        try:
            await products.create_index(
                [(field, TEXT) for field in TEXT_INDEX_WEIGHTS],
                weights=TEXT_INDEX_WEIGHTS,
                default_language=self.settings.text_search_language,
                name="product_text_search",
            )
            await products.create_index([("category", ASCENDING)])
            await products.create_index([("brand", ASCENDING)])
            await products.create_index([("price", ASCENDING)])
            await products.create_index([("rating", DESCENDING)])
            await products.create_index([("createdAt", DESCENDING)])
            logger.info("✅ Database indexes created successfully")
        except PyMongoError as index_error:
            logger.warning(f"⚠️  Failed to create indexes: {index_error}")

    def create_store(self) -> MongoStore:
        return MongoStore(self.collection, max_time_ms=self.settings.query_timeout_ms)


def build_lifespan(settings: Settings, store: Optional[ProductStore] = None):
    """Lifespan that opens the product store on startup and closes it on shutdown.

    A ``store`` passed in is used as-is; otherwise one is built from
    ``settings.store_backend``.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("🚀 Starting up application...")
        manager: Optional[DatabaseManager] = None

        if store is not None:
            app.state.store = store
        elif settings.store_backend == "memory":
            logger.info("Using in-memory product store")
            app.state.store = MemoryStore()
        else:
            manager = DatabaseManager(settings)
            await manager.connect()
            await manager.create_indexes()
            app.state.store = manager.create_store()
        app.state.db_manager = manager

        yield

        logger.info("Shutting down application...")
        await app.state.store.close()
        if manager is not None:
            await manager.disconnect()

    return lifespan


def get_store(request: Request) -> ProductStore:
    """FastAPI dependency returning the store opened by the lifespan."""
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise StoreUnavailable("Product store is not available")
    return store
