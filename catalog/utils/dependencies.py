"""
FastAPI dependencies wiring the services to the store opened by the lifespan
"""
from fastapi import Depends, Request

from ..config.database import get_store
from ..config.settings import Settings
from ..query import QueryBuilder
from ..services import AggregationReporter, ProductService
from ..store import ProductStore


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_query_builder(settings: Settings = Depends(get_app_settings)) -> QueryBuilder:
    return QueryBuilder(
        search_mode=settings.search_mode,
        default_limit=settings.default_page_size,
        max_limit=settings.max_page_size,
    )


def get_product_service(
    store: ProductStore = Depends(get_store),
    builder: QueryBuilder = Depends(get_query_builder),
    settings: Settings = Depends(get_app_settings),
) -> ProductService:
    return ProductService(store, builder, timeout_s=settings.query_timeout_s)


def get_reporter(
    store: ProductStore = Depends(get_store),
    settings: Settings = Depends(get_app_settings),
) -> AggregationReporter:
    return AggregationReporter(store, timeout_s=settings.query_timeout_s)
