"""
Exception Module

Structured exception hierarchy for the cache layer, organized by theme.

Module Structure:
-----------------
- **base.py**: PianoCacheError base class + ConfigurationError
- **cache.py**: Remote store and stored-data exceptions
- **validation.py**: Caller-side validation exceptions

Usage:
------
```python
from piano_cache.core.exceptions import AdapterError, InvalidTTLError
```
"""

from piano_cache.core.exceptions.base import ConfigurationError, PianoCacheError
from piano_cache.core.exceptions.cache import (
    AdapterError,
    AdapterTimeoutError,
    CacheError,
    SerializationError,
)
from piano_cache.core.exceptions.validation import (
    InvalidKeyError,
    InvalidTTLError,
    UnserializableValueError,
    ValidationError,
)

__all__ = [
    # Base
    "PianoCacheError",
    "ConfigurationError",
    # Cache
    "CacheError",
    "AdapterError",
    "AdapterTimeoutError",
    "SerializationError",
    # Validation
    "ValidationError",
    "InvalidTTLError",
    "InvalidKeyError",
    "UnserializableValueError",
]
