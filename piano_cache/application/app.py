#!/usr/bin/env python3
"""
FastAPI Application Entry Point

Hosts the cache admin API. The cache itself is a library: application code
imports piano_cache and calls get_cache/set_cache directly; this app exposes
operational visibility over the same process-wide cache service.

Run:
    uvicorn piano_cache.application.app:app --port 8000
"""

import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from piano_cache.application.api.routes.cache_admin import router as cache_admin_router
from piano_cache.core.config.settings import get_settings
from piano_cache.core.exceptions import PianoCacheError, ValidationError
from piano_cache.core.logging.logger import clear_request_id, get_logger, set_request_id, setup_logging
from piano_cache.infrastructure.cache.cache_manager import close_cache, init_cache

logger = get_logger(__name__)

HEADER_REQUEST_ID = "X-Request-ID"


# ============================================================================
# Application Lifespan
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage application lifecycle (startup and shutdown).
    """
    settings = get_settings()

    setup_logging(log_level=settings.logging.LOG_LEVEL, log_format=settings.logging.LOG_FORMAT)

    logger.info(
        "Starting Piano Cache Service",
        environment=settings.app.ENVIRONMENT,
        version=settings.app.APP_VERSION,
    )

    try:
        cache = await init_cache()
        logger.info("Cache initialized", **cache.stats().model_dump())

        yield

    finally:
        logger.info("Shutting down application")
        await close_cache()
        logger.info("Application shutdown complete")


# ============================================================================
# Exception Handlers
# ============================================================================


async def validation_exception_handler(request: Request, exc: ValidationError):
    """Caller errors: bad key, bad TTL, unserializable value."""
    logger.warning(f"Validation error: {exc.message}", error_type=type(exc).__name__, path=request.url.path)
    return JSONResponse(status_code=422, content=exc.to_dict())


async def cache_exception_handler(request: Request, exc: PianoCacheError):
    """Any other cache layer error (e.g. remote-only mode without configuration)."""
    logger.error(f"Cache exception: {exc.message}", error_type=type(exc).__name__, path=request.url.path)
    return JSONResponse(status_code=500, content=exc.to_dict())


# ============================================================================
# Application Factory
# ============================================================================


def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns:
        FastAPI: Configured application instance
    """
    settings = get_settings()

    app = FastAPI(
        title=settings.app.APP_NAME,
        version=settings.app.APP_VERSION,
        description="Distributed cache with in-process fallback: admin and monitoring API",
        lifespan=lifespan,
    )

    # Most specific handler wins: ValidationError before PianoCacheError
    app.add_exception_handler(ValidationError, validation_exception_handler)
    app.add_exception_handler(PianoCacheError, cache_exception_handler)

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        """Inject a request ID into every log line and response."""
        request_id = request.headers.get(HEADER_REQUEST_ID) or str(uuid.uuid4())
        set_request_id(request_id)

        try:
            response = await call_next(request)
            response.headers[HEADER_REQUEST_ID] = request_id
            return response
        finally:
            clear_request_id()

    @app.get("/", tags=["Root"])
    async def root():
        """API information."""
        return {
            "name": settings.app.APP_NAME,
            "version": settings.app.APP_VERSION,
            "environment": settings.app.ENVIRONMENT,
            "docs": "/docs",
            "cache": f"{settings.API_BASE_PATH}/system/cache/stats",
        }

    @app.get("/metrics", tags=["Root"])
    async def prometheus_metrics():
        """Prometheus text exposition of the cache operation counters."""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(cache_admin_router, prefix=settings.API_BASE_PATH)

    return app


# Create application instance
app = create_app()


# ============================================================================
# Main Entry Point
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "piano_cache.application.app:app",
        host="0.0.0.0",
        port=8000,
        reload=get_settings().app.ENVIRONMENT == "development",
        log_level=get_settings().logging.LOG_LEVEL.lower(),
    )
