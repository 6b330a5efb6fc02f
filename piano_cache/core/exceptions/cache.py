"""
Cache-Related Exceptions

Failures of the remote store and of stored data. None of these reach callers
of the cache facade: they are logged and absorbed by the fallback path.
"""

from piano_cache.core.exceptions.base import PianoCacheError


class CacheError(PianoCacheError):
    """Base exception for cache-related errors."""
    pass


class AdapterError(CacheError):
    """
    Raised when a remote store call fails.

    Common causes:
    - Remote store is down or unreachable
    - Authentication failure (bad token)
    - Non-success protocol response
    """
    pass


class AdapterTimeoutError(AdapterError):
    """Raised when a remote store call exceeds its configured timeout."""
    pass


class SerializationError(CacheError):
    """
    Raised when a stored value cannot be decoded.

    Common causes:
    - Corrupted data in the remote store
    - Foreign data written under the same key by another application
    """
    pass
