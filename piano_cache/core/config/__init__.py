"""
Configuration Module

Centralized, type-safe configuration for the cache layer.

Components:
-----------
- **settings.py**: Pydantic-based configuration with environment variable loading
- **constants.py**: Enums (Stage, ConnectionState, RecoveryPolicy) and shared constants

Usage:
------
```python
from piano_cache.core.config import get_settings
from piano_cache.core.config.constants import ConnectionState

settings = get_settings()
timeout = settings.cache.CACHE_REMOTE_TIMEOUT
```

Environment Variables:
---------------------
```bash
REDIS_URL=rediss://default@eu1-example.upstash.io:6379
REDIS_TOKEN=...
CACHE_REMOTE_TIMEOUT=2.0
CACHE_RECOVERY_POLICY=probe
LOG_FORMAT=console
```
"""

from piano_cache.core.config.settings import (
    ApplicationSettings,
    CacheSettings,
    LoggingSettings,
    MetricsSettings,
    Settings,
    get_settings,
    reload_settings,
)

__all__ = [
    "ApplicationSettings",
    "CacheSettings",
    "LoggingSettings",
    "MetricsSettings",
    "Settings",
    "get_settings",
    "reload_settings",
]
