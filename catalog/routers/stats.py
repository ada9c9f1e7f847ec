"""Aggregated catalog statistics endpoints."""
import logging

from fastapi import APIRouter, Depends, Query

from ..schemas.stats import (
    BrandStatsResponse,
    CategoryStatsResponse,
    StatsReportResponse,
    TopRatedResponse,
)
from ..services import AggregationReporter, ProductService
from ..utils.dependencies import get_product_service, get_reporter

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products/stats", tags=["Statistics"])


@router.get("", response_model=StatsReportResponse, summary="Full catalog statistics report")
async def catalog_report(reporter: AggregationReporter = Depends(get_reporter)):
    """
    Category and brand statistics, price and rating distributions and a
    collection overview, computed concurrently.
    """
    report = await reporter.report()
    return StatsReportResponse(**report)


@router.get("/categories", response_model=CategoryStatsResponse, summary="Statistics per category")
async def category_stats(reporter: AggregationReporter = Depends(get_reporter)):
    categories = await reporter.category_stats()
    return CategoryStatsResponse(categories=categories, count=len(categories))


@router.get("/brands", response_model=BrandStatsResponse, summary="Top brands by inventory value")
async def brand_stats(reporter: AggregationReporter = Depends(get_reporter)):
    brands = await reporter.brand_stats()
    return BrandStatsResponse(brands=brands, count=len(brands))


@router.get("/top-rated", response_model=TopRatedResponse, summary="Best rated products above a price")
async def top_rated(
    min_price: float = Query(500, alias="minPrice", ge=0, description="Only products priced above this"),
    limit: int = Query(5, ge=1, le=100, description="Number of products"),
    order: str = Query("desc", pattern="^(asc|desc)$", description="asc or desc"),
    service: ProductService = Depends(get_product_service),
):
    items = await service.top_rated(min_price=min_price, limit=limit, order=order)
    return TopRatedResponse(
        items=items,
        count=len(items),
        criteria={"minPrice": min_price, "limit": limit, "order": order},
    )
