"""
API Models Package

Pydantic models for API request/response validation.
"""

from piano_cache.application.api.models.cache import (
    CacheStatsResponse,
    CacheSummary,
    ClearByPrefixRequest,
    ClearByPrefixResponse,
    ClearResponse,
    HistoryResponse,
    MetricsResponse,
)

__all__ = [
    "CacheStatsResponse",
    "CacheSummary",
    "ClearByPrefixRequest",
    "ClearByPrefixResponse",
    "ClearResponse",
    "HistoryResponse",
    "MetricsResponse",
]
