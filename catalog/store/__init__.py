from .base import Document, ProductStore
from .memory import MemoryStore
from .mongo import MongoStore

__all__ = ["Document", "ProductStore", "MemoryStore", "MongoStore"]
