"""
Application configuration settings.
Handles environment variables and application-wide settings.
"""
from functools import lru_cache
from typing import Literal

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    # Application settings
    app_name: str = Field(default="Product Catalog API")
    app_version: str = Field(default="1.0.0")
    app_description: str = Field(
        default="Product catalog with filtering, search and aggregated statistics"
    )
    debug: bool = Field(default=False)

    # Server settings
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    reload: bool = Field(default=False)

    # Database settings
    store_backend: Literal["mongo", "memory"] = Field(default="mongo")
    mongodb_url: str = Field(default="mongodb://localhost:27017")
    database_name: str = Field(default="catalog_db")
    collection_name: str = Field(default="products")

    # MongoDB connection settings
    mongodb_server_selection_timeout_ms: int = Field(default=10000)
    mongodb_connect_timeout_ms: int = Field(default=10000)
    mongodb_socket_timeout_ms: int = Field(default=45000)
    mongodb_max_pool_size: int = Field(default=50)
    mongodb_min_pool_size: int = Field(default=5)
    mongodb_retry_writes: bool = Field(default=True)

    # Per-query deadline, applied server side (maxTimeMS) and client side
    query_timeout_ms: int = Field(default=10000, gt=0)
    health_check_timeout_ms: int = Field(default=2000, gt=0)

    # Full-text index
    text_search_language: str = Field(default="english")
    search_mode: Literal["both", "text", "substring"] = Field(default="both")

    # Logging settings
    log_level: str = Field(default="INFO")

    # Pagination defaults
    default_page_size: int = Field(default=10, ge=1)
    max_page_size: int = Field(default=100, ge=1)

    # Seeding
    seed_source_url: str = Field(default="https://dummyjson.com/products")
    seed_limit: int = Field(default=100, ge=0)
    seed_timeout_s: float = Field(default=30.0, gt=0)

    @property
    def query_timeout_s(self) -> float:
        return self.query_timeout_ms / 1000

    @property
    def health_check_timeout_s(self) -> float:
        return self.health_check_timeout_ms / 1000


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get application settings."""
    return Settings()
