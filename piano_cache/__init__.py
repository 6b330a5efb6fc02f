"""
Piano Cache

Distributed cache with automatic in-process fallback.

Usage:
    from piano_cache import get_cache, set_cache, delete_cache

    await set_cache("forecast:client:42", {"revenue": 10}, ttl_seconds=300)
    forecast = await get_cache("forecast:client:42")
"""

from piano_cache.core.exceptions import (
    AdapterError,
    AdapterTimeoutError,
    CacheError,
    ConfigurationError,
    InvalidKeyError,
    InvalidTTLError,
    PianoCacheError,
    SerializationError,
    UnserializableValueError,
    ValidationError,
)
from piano_cache.infrastructure.cache import (
    CacheCodec,
    CacheService,
    CacheStats,
    JsonCodec,
    ModelCodec,
    TypedCache,
    clear_cache,
    close_cache,
    delete_cache,
    get_cache,
    get_cache_service,
    get_cache_stats,
    init_cache,
    set_cache,
    with_cache,
)

__version__ = "1.0.0"

__all__ = [
    "CacheService",
    "CacheStats",
    "TypedCache",
    "CacheCodec",
    "JsonCodec",
    "ModelCodec",
    "get_cache",
    "set_cache",
    "delete_cache",
    "clear_cache",
    "get_cache_stats",
    "with_cache",
    "get_cache_service",
    "init_cache",
    "close_cache",
    "PianoCacheError",
    "ConfigurationError",
    "CacheError",
    "AdapterError",
    "AdapterTimeoutError",
    "SerializationError",
    "ValidationError",
    "InvalidTTLError",
    "InvalidKeyError",
    "UnserializableValueError",
]
