"""
Cache Admin Routes
==================

Operational endpoints for the cache layer, mounted under
{API_BASE_PATH}/system/cache:

    GET  /stats            connection state + hit/miss summary
    GET  /metrics          percentile stats per metric
    GET  /history?hours=N  metric snapshots (all, or the last N hours)
    GET  /health           200 when connected, 503 when on memory fallback
    POST /clear            empty the memory fallback store
    POST /clear-by-prefix  delete keys by prefix from both stores

SECURITY CONSIDERATIONS:
------------------------
These endpoints mutate and expose cache state. In production they should sit
behind authentication or on an internal-only port.

Errors from the cache layer (ValidationError -> 422, others -> 500) are turned
into JSON by the exception handlers registered in create_app().
"""

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from piano_cache.application.api.dependencies import CacheServiceDep
from piano_cache.application.api.models.cache import (
    CacheStatsResponse,
    CacheSummary,
    ClearByPrefixRequest,
    ClearByPrefixResponse,
    ClearResponse,
    HistoryResponse,
    MetricsResponse,
)
from piano_cache.core.logging.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/system/cache", tags=["Cache Admin"])


# ============================================================================
# STATISTICS ENDPOINTS
# ============================================================================


@router.get("/stats", response_model=CacheStatsResponse)
async def get_cache_statistics(cache: CacheServiceDep):
    """
    Connection state and cache metrics summary.

    Each call also offers a snapshot to the metrics history; the history
    keeps at most one per METRICS_SNAPSHOT_INTERVAL.
    """
    cache.snapshot_metrics()

    stats = cache.stats()
    return CacheStatsResponse(
        **stats.model_dump(),
        metrics=CacheSummary(**cache.metrics.get_cache_summary()),
    )


@router.get("/metrics", response_model=MetricsResponse)
async def get_cache_metrics(cache: CacheServiceDep):
    """Per-metric count/avg/min/max/p50/p95/p99."""
    return MetricsResponse(metrics=cache.metrics.get_metrics_summary())


@router.get("/history", response_model=HistoryResponse)
async def get_cache_history(
    cache: CacheServiceDep,
    hours: float | None = Query(default=None, gt=0, description="Only snapshots from the last N hours"),
):
    """Stored metric snapshots and their aggregate stats."""
    history = cache.history
    snapshots = history.get_recent_history(hours) if hours is not None else history.get_history()
    return HistoryResponse(hours=hours, snapshots=snapshots, stats=history.get_history_stats())


# ============================================================================
# HEALTH ENDPOINT
# ============================================================================


@router.get("/health")
async def get_cache_health(cache: CacheServiceDep):
    """
    Cache health.

    HTTP Status Codes:
        200: Remote store connected
        503: Serving from the memory fallback store
    """
    report = await cache.health_check()
    status_code = status.HTTP_200_OK if report["status"] == "healthy" else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(status_code=status_code, content=report)


# ============================================================================
# MAINTENANCE ENDPOINTS
# ============================================================================


@router.post("/clear", response_model=ClearResponse)
async def clear_cache_entries(cache: CacheServiceDep):
    """Empty the memory fallback store. The remote store is not flushed."""
    entries = cache.memory.size()
    await cache.clear()

    logger.info("cache_clear_requested", entries=entries)
    return ClearResponse(message=f"Memory cache cleared ({entries} entries)")


@router.post("/clear-by-prefix", response_model=ClearByPrefixResponse)
async def clear_cache_by_prefix(body: ClearByPrefixRequest, cache: CacheServiceDep):
    """Delete every key starting with the prefix from both stores."""
    deleted = await cache.delete_by_prefix(body.prefix)

    logger.info("cache_clear_by_prefix_requested", prefix=body.prefix, deleted=deleted)
    return ClearByPrefixResponse(prefix=body.prefix, deleted_count=deleted)
