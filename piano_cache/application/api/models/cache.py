"""
Cache Admin API Models
======================

Request/response models for the cache admin endpoints.

WIRE NAMES:
-----------
Cache stats keep the camelCase wire names existing dashboards read
(isConnected, useMemoryFallback, memoryCacheSize, hasClient,
hasRedisEnvVars). CacheStatsResponse inherits the alias generator from
CacheStats, so FastAPI serializes it by alias.
"""

from typing import Any

from pydantic import BaseModel, Field

from piano_cache.infrastructure.cache.cache_manager import CacheStats
from piano_cache.infrastructure.monitoring.metrics_collector import MetricStats
from piano_cache.infrastructure.monitoring.metrics_history import MetricsSnapshot


class CacheSummary(BaseModel):
    """Hit/miss/set/delete counters for the service's recorder."""

    hits: int = Field(..., ge=0)
    misses: int = Field(..., ge=0)
    sets: int = Field(..., ge=0)
    deletes: int = Field(..., ge=0)
    hit_rate: float = Field(..., ge=0, le=100, description="Hit rate in percent")
    avg_latency: float = Field(..., ge=0, description="Average hit/miss latency in ms")
    total_operations: int = Field(..., ge=0)


class CacheStatsResponse(CacheStats):
    """Connection state plus the cache metrics summary."""

    metrics: CacheSummary


class MetricsResponse(BaseModel):
    """Percentile stats per metric name."""

    metrics: dict[str, MetricStats]


class HistoryResponse(BaseModel):
    """Stored snapshots and their aggregate."""

    hours: float | None = None
    snapshots: list[MetricsSnapshot]
    stats: dict[str, Any] | None = None


class ClearResponse(BaseModel):
    success: bool = True
    message: str


class ClearByPrefixRequest(BaseModel):
    prefix: str = Field(..., min_length=1, description="Key prefix, e.g. 'forecast:'")


class ClearByPrefixResponse(BaseModel):
    success: bool = True
    prefix: str
    deleted_count: int = Field(..., ge=0)
