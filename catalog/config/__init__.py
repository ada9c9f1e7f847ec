from .settings import Settings, get_settings
from .database import DatabaseManager, build_lifespan, get_store

__all__ = [
    "Settings",
    "get_settings",
    "DatabaseManager",
    "build_lifespan",
    "get_store",
]
