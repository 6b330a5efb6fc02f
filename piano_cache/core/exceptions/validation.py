"""
Validation Exceptions

Caller-side misuse of the cache facade. These are programming errors at the
call site and are the only cache errors surfaced to callers.
"""

from piano_cache.core.exceptions.base import PianoCacheError


class ValidationError(PianoCacheError):
    """Base class for all validation-related errors."""
    pass


class InvalidTTLError(ValidationError):
    """Raised when a TTL is not a positive integer number of seconds."""
    pass


class InvalidKeyError(ValidationError):
    """Raised when a cache key is not a non-empty string."""
    pass


class UnserializableValueError(ValidationError):
    """
    Raised when a value cannot be encoded by the cache codec.

    Example:
        raise UnserializableValueError(
            "Value of type set is not JSON serializable",
            details={"key": "clients:active", "value_type": "set"}
        )
    """
    pass
