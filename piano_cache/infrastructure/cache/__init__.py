"""
Cache Module

Provides the cache facade (remote Redis store + in-process fallback store).
"""

from .cache_manager import (
    CacheService,
    CacheStats,
    TypedCache,
    clear_cache,
    close_cache,
    delete_cache,
    get_cache,
    get_cache_service,
    get_cache_stats,
    init_cache,
    reset_cache_service,
    set_cache,
    with_cache,
)
from .codec import CacheCodec, JsonCodec, ModelCodec
from .memory_store import MemoryFallbackStore
from .redis_client import RemoteCacheAdapter

__all__ = [
    "CacheService",
    "CacheStats",
    "TypedCache",
    "CacheCodec",
    "JsonCodec",
    "ModelCodec",
    "MemoryFallbackStore",
    "RemoteCacheAdapter",
    "get_cache_service",
    "init_cache",
    "close_cache",
    "reset_cache_service",
    "get_cache",
    "set_cache",
    "delete_cache",
    "clear_cache",
    "get_cache_stats",
    "with_cache",
]
