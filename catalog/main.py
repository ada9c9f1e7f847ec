"""
FastAPI application factory for the product catalog.
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings, build_lifespan, get_settings
from .errors import CatalogError, DeadlineExceeded, InvalidInput
from .routers import products, stats
from .schemas.common import ErrorResponse, HealthCheckResponse, RootResponse
from .services.deadline import with_deadline
from .store import ProductStore

logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid input"},
    404: {"model": ErrorResponse, "description": "Product not found"},
    500: {"model": ErrorResponse, "description": "Aggregation or internal failure"},
    503: {"model": ErrorResponse, "description": "Product store unavailable"},
    504: {"model": ErrorResponse, "description": "Query deadline exceeded"},
}


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


async def catalog_error_handler(request: Request, exc: CatalogError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"❌ {request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=jsonable_encoder(exc.to_dict()))


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {
            "field": ".".join(str(part) for part in err["loc"] if part != "body"),
            "message": err["msg"],
            "inputValue": err.get("input"),
        }
        for err in exc.errors()
    ]
    error = InvalidInput("Request validation failed", details=details)
    return JSONResponse(status_code=error.status_code, content=jsonable_encoder(error.to_dict()))


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    kind = "NotFound" if exc.status_code == 404 else "HTTPError"
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": kind, "message": str(exc.detail)},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"❌ Unexpected error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": "InternalError", "message": "Internal server error"},
    )


def create_app(settings: Optional[Settings] = None, store: Optional[ProductStore] = None) -> FastAPI:
    """Build the application.

    ``store`` overrides the store selected by ``settings.store_backend``;
    tests pass a ``MemoryStore`` here.
    """
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    app = FastAPI(
        title=settings.app_name,
        description=settings.app_description,
        version=settings.app_version,
        debug=settings.debug,
        lifespan=build_lifespan(settings, store),
    )
    app.state.settings = settings

    app.add_exception_handler(CatalogError, catalog_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    # stats routes first so /products/stats is not taken for a product id
    app.include_router(stats.router, responses=ERROR_RESPONSES)
    app.include_router(products.router, responses=ERROR_RESPONSES)

    @app.get("/", response_model=RootResponse, tags=["Root"])
    async def root():
        """Root endpoint - Always accessible"""
        return RootResponse(
            message=f"Welcome to {settings.app_name}",
            version=settings.app_version,
            docs="/docs",
            health="/health",
            status="running",
            timestamp=_now(),
        )

    @app.get("/health", response_model=HealthCheckResponse, tags=["Health"])
    async def health_check(request: Request):
        """Health check endpoint - Always accessible"""
        store = getattr(request.app.state, "store", None)
        connected = False
        if store is not None:
            try:
                connected = await with_deadline(store.ping(), settings.health_check_timeout_s, "health ping")
            except DeadlineExceeded:
                connected = False
        db_status = "connected" if connected else "disconnected"
        return HealthCheckResponse(
            status="healthy",
            database=db_status,
            timestamp=_now(),
            version=settings.app_version,
        )

    return app
