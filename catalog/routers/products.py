"""Listing, search and CRUD endpoints for the product catalog."""
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query, Request

from ..schemas.common import PaginationMeta
from ..schemas.product import (
    CategoriesResponse,
    CreateProductRequest,
    ProductDetailResponse,
    ProductMutationResponse,
    ProductResponse,
    ProductsListResponse,
    UpdateProductRequest,
)
from ..services import ProductPage, ProductService
from ..utils.dependencies import get_product_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["Products"])


def listing_params(
    request: Request,
    page: Optional[str] = Query(None, description="Page number (1-indexed)"),
    limit: Optional[str] = Query(None, description="Items per page"),
    category: Optional[str] = Query(None, description="Exact category (case-insensitive)"),
    brand: Optional[str] = Query(None, description="Brand (partial match)"),
    min_price: Optional[str] = Query(None, alias="minPrice", description="Minimum price"),
    max_price: Optional[str] = Query(None, alias="maxPrice", description="Maximum price"),
    in_stock: Optional[str] = Query(None, alias="inStock", description="true or false"),
    rating: Optional[str] = Query(None, description="Minimum rating (0-5)"),
    tags: Optional[str] = Query(None, description="Comma separated tags"),
    search: Optional[str] = Query(None, description="Free-text search"),
    sort: Optional[str] = Query(None, description="price, name, rating, created, stock, relevance"),
    order: Optional[str] = Query(None, description="asc or desc"),
) -> Dict[str, Any]:
    """Raw listing parameters; values that do not parse are ignored, never rejected."""
    return {
        "page": page,
        "limit": limit,
        "category": category,
        "brand": brand,
        "minPrice": min_price,
        "maxPrice": max_price,
        "inStock": in_stock,
        "rating": rating,
        "tags": request.query_params.getlist("tags") or tags,
        "search": search,
        "sort": sort,
        "order": order,
    }


def _list_response(result: ProductPage, message: str) -> ProductsListResponse:
    sort = result.query.sort
    return ProductsListResponse(
        message=message,
        items=[ProductResponse.model_validate(item) for item in result.items],
        pagination=PaginationMeta(**vars(result.page)),
        filters_applied=result.query.filters_applied,
        stats=result.stats(),
        sort={"by": sort.field, "order": sort.label},
    )


@router.get("", response_model=ProductsListResponse, summary="List products with filters and pagination")
async def list_products(
    params: Dict[str, Any] = Depends(listing_params),
    service: ProductService = Depends(get_product_service),
):
    result = await service.list_products(params)
    return _list_response(result, f"{result.page.total_products} products found")


@router.get("/search", response_model=ProductsListResponse, summary="Full-text product search")
async def search_products(
    q: Optional[str] = Query(None, description="Search terms"),
    params: Dict[str, Any] = Depends(listing_params),
    service: ProductService = Depends(get_product_service),
):
    """Same contract as the listing, ordered by relevance and 20 per page by default."""
    params = dict(params)
    if q is not None:
        params["q"] = q
    if params.get("limit") is None:
        params.pop("limit")
    result = await service.search(params)
    return _list_response(result, f"{result.page.total_products} products match '{q or ''}'")


@router.get("/categories", response_model=CategoriesResponse, summary="Distinct categories with product counts")
async def list_categories(service: ProductService = Depends(get_product_service)):
    categories = await service.categories()
    return CategoriesResponse(categories=categories, count=len(categories))


@router.get("/{product_id}", response_model=ProductDetailResponse, summary="Get a product and similar products")
async def get_product(product_id: str, service: ProductService = Depends(get_product_service)):
    product = await service.get_product(product_id)
    similar = await service.similar_products(product)
    return ProductDetailResponse(
        product=ProductResponse.model_validate(product),
        similar_products=[ProductResponse.model_validate(item) for item in similar],
    )


@router.post("", status_code=201, response_model=ProductMutationResponse, summary="Create a product")
async def create_product(product: CreateProductRequest, service: ProductService = Depends(get_product_service)):
    created = await service.create_product(product.model_dump())
    return ProductMutationResponse(
        message="Product created successfully",
        product=ProductResponse.model_validate(created),
    )


@router.put("/{product_id}", response_model=ProductMutationResponse, summary="Partially update a product")
async def update_product(
    product_id: str,
    product_update: UpdateProductRequest,
    service: ProductService = Depends(get_product_service),
):
    changes = product_update.changes()
    updated = await service.update_product(product_id, changes)
    return ProductMutationResponse(
        message="Product updated successfully",
        product=ProductResponse.model_validate(updated),
        changes=sorted(changes),
    )


@router.delete("/{product_id}", response_model=ProductMutationResponse, summary="Delete a product")
async def delete_product(product_id: str, service: ProductService = Depends(get_product_service)):
    deleted = await service.delete_product(product_id)
    return ProductMutationResponse(
        message="Product deleted successfully",
        product=ProductResponse.model_validate(deleted),
    )
