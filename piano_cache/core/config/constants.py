"""
System Constants and Enumerations

This module defines constants and enumerations shared across the cache layer.

Architectural Decision: Centralized constants for maintainability
- Single source of truth for magic numbers
- Type-safe enums for state management
"""

from enum import Enum

# ============================================================================
# Stage Identifiers (for structured logging)
# ============================================================================


class Stage(str, Enum):
    """
    Processing stages used as the ``stage`` field of log events.

    Format: {PREFIX}.{STEP}_{DESCRIPTIVE_NAME}
    """

    CACHE_INIT = "CACHE.0_INITIALIZATION"
    CACHE_GET = "CACHE.1_GET"
    CACHE_SET = "CACHE.2_SET"
    CACHE_DELETE = "CACHE.3_DELETE"
    CACHE_CLEAR = "CACHE.4_CLEAR"
    CACHE_COMPUTE = "CACHE.5_COMPUTE"
    CACHE_SHUTDOWN = "CACHE.6_SHUTDOWN"

    REMOTE_CONNECT = "REMOTE.1_CONNECT"
    REMOTE_CALL = "REMOTE.2_CALL"
    REMOTE_CLOSE = "REMOTE.3_CLOSE"

    FALLBACK = "FB_MEMORY_FALLBACK"
    STATE = "ST_CONNECTION_STATE"
    METRICS = "M_METRICS_COLLECTION"


# ============================================================================
# Connection States
# ============================================================================


class ConnectionState(str, Enum):
    """
    Remote store connection states.

    CONNECTED: Remote store validated, operations go remote
    DEGRADED: Operations served from the in-process fallback store
    PROBING_RECOVERY: A health probe against the remote store is in flight
    """

    CONNECTED = "connected"
    DEGRADED = "degraded"
    PROBING_RECOVERY = "probing_recovery"


class RecoveryPolicy(str, Enum):
    """
    What happens after the remote store fails.

    LATCH: Stay degraded for the life of the service
    PROBE: Periodically probe the remote store and reconnect on success
    """

    LATCH = "latch"
    PROBE = "probe"


# ============================================================================
# Cache Keys
# ============================================================================

KEY_PREFIX_SEPARATOR = ":"  # "forecast:clientId:123" -> prefix "forecast"


# ============================================================================
# Metrics
# ============================================================================


class CacheOperation(str, Enum):
    """Cache operations tracked by the metrics recorder."""

    HIT = "hit"
    MISS = "miss"
    SET = "set"
    DELETE = "delete"


METRIC_CACHE_HIT = "cache_hit"
METRIC_CACHE_MISS = "cache_miss"
METRIC_CACHE_SET = "cache_set"
METRIC_CACHE_DELETE = "cache_delete"

PERCENTILES = (0.50, 0.95, 0.99)
