#!/usr/bin/env python3
"""
Cache Facade with Remote Store and In-Process Fallback

Architecture:
    CacheService (Public API)
        ├── ConnectionStateMachine (where does data live right now?)
        ├── RemoteCacheAdapter (Redis, bounded + retried calls)
        ├── MemoryFallbackStore (expiring dict, warm standby)
        ├── CacheCodec (value <-> stored text)
        ├── MetricsRecorder (hit/miss/set/delete samples)
        └── MetricsHistory (periodic snapshots)

Read path:
    1. Fallback mode -> serve from the memory store
    2. Connected -> raw_get on the remote store
    3. Remote failure -> switch to fallback and serve the same key from memory.
       This is a cold fallback: the memory copy only exists if an earlier set
       mirrored it, so a miss here is expected.

Write path:
    Remote store when connected, and ALWAYS mirrored into the memory store so
    that a later failover serves a recent value.

Failure policy:
    Remote failures never reach callers. They flip the service into fallback
    mode ("latch": for the rest of the process; "probe": until a periodic
    ping succeeds). Only validation errors (bad key, bad TTL, value that
    cannot be serialized) are raised, and always before any store is touched.

Date: 2026-09-02
"""

import asyncio
import inspect
import time
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from piano_cache.core.config.constants import CacheOperation, RecoveryPolicy, Stage
from piano_cache.core.config.settings import Settings, get_settings
from piano_cache.core.exceptions import (
    AdapterError,
    ConfigurationError,
    InvalidKeyError,
    SerializationError,
)
from piano_cache.core.interfaces.cache import RemoteStore
from piano_cache.core.logging.logger import get_logger, log_stage
from piano_cache.core.resilience.connection_state import ConnectionStateMachine
from piano_cache.infrastructure.cache.codec import CacheCodec, JsonCodec
from piano_cache.infrastructure.cache.memory_store import MemoryFallbackStore
from piano_cache.infrastructure.cache.redis_client import RemoteCacheAdapter, validate_ttl
from piano_cache.infrastructure.monitoring.metrics_collector import MetricsRecorder
from piano_cache.infrastructure.monitoring.metrics_history import MetricsHistory, MetricsSnapshot

logger = get_logger(__name__)

T = TypeVar("T")


class CacheStats(BaseModel):
    """
    Connection and fallback state.

    Serialized with camelCase wire names (isConnected, useMemoryFallback, ...)
    via model_dump(by_alias=True).
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    is_connected: bool
    use_memory_fallback: bool
    memory_cache_size: int
    has_client: bool
    has_redis_env_vars: bool


def validate_key(key: Any) -> str:
    """
    Raises:
        InvalidKeyError: If the key is not a non-empty string
    """
    if not isinstance(key, str) or not key:
        raise InvalidKeyError(
            "Cache key must be a non-empty string",
            details={"key": repr(key)},
        )
    return key


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 3)


class CacheService:
    """
    Cache facade: one place that knows where a key's data lives.

    Usage:
        cache = CacheService()
        await cache.init()  # optional, every operation initializes lazily

        await cache.set("forecast:client:42", {"revenue": 10}, ttl_seconds=300)
        value = await cache.get("forecast:client:42")
        await cache.delete("forecast:client:42")

        forecasts = cache.typed(ModelCodec(list[Forecast]))
        await forecasts.set("forecast:client:42", [...], ttl_seconds=300)

        cache.stats().model_dump(by_alias=True)
        # {"isConnected": True, "useMemoryFallback": False, ...}
    """

    def __init__(
        self,
        settings: Settings | None = None,
        adapter: RemoteStore | None = None,
        memory: MemoryFallbackStore | None = None,
        metrics: MetricsRecorder | None = None,
        history: MetricsHistory | None = None,
        codec: CacheCodec | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the cache facade. No I/O happens here.

        STAGE-CACHE.0: Facade construction

        Args:
            settings: Settings (defaults to get_settings())
            adapter: Remote store adapter (defaults to RemoteCacheAdapter)
            memory: Fallback store
            metrics: Metrics recorder owned by this service
            history: Snapshot history owned by this service
            codec: Default value codec (JsonCodec)
            clock: Monotonic clock shared by the fallback store and the state machine
        """
        settings = settings or get_settings()
        self._cache_settings = settings.cache
        metrics_settings = settings.metrics

        self._adapter: RemoteStore = adapter if adapter is not None else RemoteCacheAdapter(self._cache_settings)
        self._memory = memory if memory is not None else MemoryFallbackStore(clock=clock)
        self._metrics = metrics if metrics is not None else MetricsRecorder()
        self._history = history if history is not None else MetricsHistory(
            max_snapshots=metrics_settings.METRICS_HISTORY_MAX_SNAPSHOTS,
            snapshot_interval=metrics_settings.METRICS_SNAPSHOT_INTERVAL,
        )
        self._codec: CacheCodec = codec if codec is not None else JsonCodec()
        self._state = ConnectionStateMachine(
            policy=RecoveryPolicy(self._cache_settings.CACHE_RECOVERY_POLICY),
            recovery_interval=self._cache_settings.CACHE_RECOVERY_INTERVAL,
            clock=clock,
        )

        self._default_ttl = self._cache_settings.CACHE_DEFAULT_TTL
        self._initialized = False
        self._init_lock = asyncio.Lock()

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def metrics(self) -> MetricsRecorder:
        return self._metrics

    @property
    def history(self) -> MetricsHistory:
        return self._history

    @property
    def memory(self) -> MemoryFallbackStore:
        return self._memory

    @property
    def state(self) -> ConnectionStateMachine:
        return self._state

    @property
    def initialized(self) -> bool:
        return self._initialized

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def init(self) -> None:
        """
        Connect to the remote store once.

        STAGE-CACHE.0.1: Remote store connection

        Concurrent first callers share a single connection attempt.

        Raises:
            ConfigurationError: Remote-only mode without remote configuration
        """
        if self._initialized:
            return

        async with self._init_lock:
            if self._initialized:
                return

            await self._connect()

            sweep_interval = self._cache_settings.CACHE_SWEEP_INTERVAL
            if sweep_interval > 0:
                self._memory.start_sweeper(sweep_interval)

            self._initialized = True

            log_stage(
                logger, Stage.CACHE_INIT, "Cache service initialized",
                state=self._state.state.value,
                policy=self._state.policy.value,
                has_client=self._adapter.has_client,
            )

    async def _connect(self) -> None:
        if self._cache_settings.CACHE_MEMORY_ONLY:
            self._state.mark_degraded("memory-only mode")
            return

        if not self._adapter.has_config:
            if self._cache_settings.CACHE_REMOTE_ONLY:
                raise ConfigurationError(
                    "Remote-only cache mode requires REDIS_URL and REDIS_TOKEN",
                    details={"has_redis_env_vars": False},
                )
            self._state.mark_degraded("remote store not configured")
            return

        try:
            await self._adapter.connect()
        except ConfigurationError as e:
            if self._cache_settings.CACHE_REMOTE_ONLY:
                raise
            self._state.mark_degraded(e.message)
            return
        except AdapterError as e:
            # Counted as a failure so that the probe policy can retry later
            self._state.record_failure(e.message)
            return

        self._state.mark_connected()

    async def close(self) -> None:
        """
        Stop the sweeper and release the remote client.

        STAGE-CACHE.6: Shutdown
        """
        await self._memory.stop_sweeper()
        await self._adapter.close()
        if self._initialized:
            self._state.mark_degraded("cache service closed")
        self._initialized = False

        log_stage(logger, Stage.CACHE_SHUTDOWN, "Cache service closed")

    # -------------------------------------------------------------------------
    # Mode selection
    # -------------------------------------------------------------------------

    async def _remote_available(self) -> bool:
        """
        Decide whether this operation goes to the remote store.

        The probe is claimed synchronously by begin_probe(), so only one
        caller pings while the others keep using the fallback store.
        """
        if self._state.is_connected:
            return True

        if self._state.begin_probe(self._adapter.has_client):
            if await self._adapter.ping():
                # False when a concurrent remote failure already moved us back to DEGRADED
                return self._state.record_success()
            self._state.record_failure("recovery probe failed")

        return False

    def _remote_failed(self, operation: str, key: str, error: AdapterError) -> None:
        self._state.record_failure(error.message)
        log_stage(
            logger, Stage.FALLBACK, f"Remote {operation} failed, using memory fallback",
            level="warning", key=key, error=error.message,
        )

    # -------------------------------------------------------------------------
    # Core Cache Operations
    # -------------------------------------------------------------------------

    async def get(self, key: str) -> Any | None:
        """
        Get a value.

        STAGE-CACHE.1: Lookup

        Returns:
            The cached value, or None on miss, expiry, or unreadable stored data

        Raises:
            InvalidKeyError: If the key is not a non-empty string
        """
        return await self._get(key, self._codec)

    async def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        """
        Store a value for ttl_seconds.

        STAGE-CACHE.2: Population

        Raises:
            InvalidKeyError: If the key is not a non-empty string
            InvalidTTLError: If ttl_seconds is not an integer > 0
            UnserializableValueError: If the value cannot be encoded
        """
        await self._set(key, value, ttl_seconds, self._codec)

    async def delete(self, key: str) -> None:
        """
        Delete a key from both stores, whatever the current mode.

        STAGE-CACHE.3: Invalidation

        Raises:
            InvalidKeyError: If the key is not a non-empty string
        """
        validate_key(key)
        await self.init()

        start = time.perf_counter()
        self._memory.delete(key)

        if self._adapter.has_client:
            try:
                await self._adapter.raw_delete(key)
            except AdapterError as e:
                if self._state.is_connected:
                    self._remote_failed("delete", key, e)
                else:
                    logger.warning(
                        "Remote delete failed while degraded",
                        stage=Stage.CACHE_DELETE.value, key=key, error=e.message,
                    )

        self._metrics.track_cache_operation(CacheOperation.DELETE, key, _elapsed_ms(start))
        logger.debug("Cache delete", stage=Stage.CACHE_DELETE.value, key=key)

    async def clear(self) -> None:
        """
        Empty the memory store. The remote store is left untouched.

        STAGE-CACHE.4: Clear
        """
        size = self._memory.size()
        self._memory.clear()
        log_stage(logger, Stage.CACHE_CLEAR, "Memory fallback store cleared", entries=size)

    async def delete_by_prefix(self, prefix: str) -> int:
        """
        Delete every key starting with prefix.

        Returns:
            Keys removed from the memory store plus keys removed remotely

        Raises:
            InvalidKeyError: If the prefix is empty
        """
        validate_key(prefix)
        await self.init()

        deleted = self._memory.delete_matching(prefix)

        if await self._remote_available():
            try:
                deleted += await self._adapter.raw_delete_matching(prefix)
            except AdapterError as e:
                self._remote_failed("delete_matching", prefix, e)

        log_stage(logger, Stage.CACHE_CLEAR, "Cache entries deleted by prefix", prefix=prefix, deleted=deleted)
        return deleted

    async def get_or_compute(
        self,
        key: str,
        compute: Callable[[], Any | Awaitable[Any]],
        ttl_seconds: int | None = None,
    ) -> Any:
        """
        Return the cached value, or compute, cache and return it.

        STAGE-CACHE.5: Read-through

        `compute` may be sync or async. A None result is returned but not cached.
        """
        return await self._get_or_compute(key, compute, ttl_seconds, self._codec)

    def typed(self, codec: CacheCodec[T]) -> "TypedCache[T]":
        """View of this cache that encodes and decodes with `codec`."""
        return TypedCache(self, codec)

    # -------------------------------------------------------------------------
    # Codec-parameterized implementations
    # -------------------------------------------------------------------------

    async def _get(self, key: str, codec: CacheCodec[T]) -> T | None:
        validate_key(key)
        await self.init()

        start = time.perf_counter()
        raw = None
        if await self._remote_available():
            try:
                raw = await self._adapter.raw_get(key)
            except SerializationError as e:
                logger.warning(
                    "Remote value could not be read, treating as miss",
                    stage=Stage.CACHE_GET.value, key=key, error=e.message,
                )
            except AdapterError as e:
                self._remote_failed("get", key, e)
                raw = self._memory.get(key)
        else:
            raw = self._memory.get(key)

        value = None
        hit = False
        if raw is not None:
            try:
                value = codec.decode(raw)
                hit = True
            except SerializationError as e:
                logger.warning(
                    "Stored value could not be decoded, treating as miss",
                    stage=Stage.CACHE_GET.value, key=key, error=e.message,
                )

        duration_ms = _elapsed_ms(start)
        self._metrics.track_cache_operation(
            CacheOperation.HIT if hit else CacheOperation.MISS, key, duration_ms
        )
        logger.debug(
            "Cache hit" if hit else "Cache miss",
            stage=Stage.CACHE_GET.value, key=key, duration_ms=duration_ms,
            source="memory" if self._state.use_memory_fallback else "redis",
        )
        return value

    async def _set(self, key: str, value: T, ttl_seconds: int, codec: CacheCodec[T]) -> None:
        validate_key(key)
        ttl_seconds = validate_ttl(ttl_seconds)
        raw = codec.encode(value)

        await self.init()

        start = time.perf_counter()
        if await self._remote_available():
            try:
                await self._adapter.raw_set(key, raw, ttl_seconds)
            except AdapterError as e:
                self._remote_failed("set", key, e)

        # Warm standby copy, written in every mode
        self._memory.set(key, raw, ttl_seconds)

        duration_ms = _elapsed_ms(start)
        self._metrics.track_cache_operation(CacheOperation.SET, key, duration_ms)
        logger.debug("Cache set", stage=Stage.CACHE_SET.value, key=key, ttl_seconds=ttl_seconds, duration_ms=duration_ms)

    async def _get_or_compute(
        self,
        key: str,
        compute: Callable[[], Any],
        ttl_seconds: int | None,
        codec: CacheCodec[T],
    ) -> T:
        cached = await self._get(key, codec)
        if cached is not None:
            return cached

        result = compute()
        if inspect.isawaitable(result):
            result = await result

        if result is not None:
            await self._set(key, result, ttl_seconds if ttl_seconds is not None else self._default_ttl, codec)
        else:
            logger.debug("Computed value is None, not caching", stage=Stage.CACHE_COMPUTE.value, key=key)

        return result

    # -------------------------------------------------------------------------
    # Monitoring
    # -------------------------------------------------------------------------

    def stats(self) -> CacheStats:
        """Current connection and fallback state. Synchronous and side-effect free."""
        return CacheStats(
            is_connected=self._state.is_connected,
            use_memory_fallback=self._state.use_memory_fallback,
            memory_cache_size=self._memory.size(),
            has_client=self._adapter.has_client,
            has_redis_env_vars=self._adapter.has_config,
        )

    async def health_check(self) -> dict[str, Any]:
        """
        Health of the cache service.

        Returns:
            Dict with status ("healthy" when connected, "degraded" otherwise),
            connection state details, memory store size and remote health
        """
        await self.init()

        if self._adapter.has_client:
            remote = await self._adapter.health_check()
        else:
            remote = {"status": "not_connected", "configured": self._adapter.has_config}

        return {
            "status": "healthy" if self._state.is_connected else "degraded",
            **self._state.snapshot(),
            "memory_cache_size": self._memory.size(),
            "remote": remote,
        }

    def snapshot_metrics(self) -> bool:
        """
        Offer the current metrics to the history ring.

        Returns:
            True if a snapshot was stored (the history enforces its interval)
        """
        summary = self._metrics.get_cache_summary()
        stats = self.stats()
        snapshot = MetricsSnapshot(
            **summary,
            memory_cache_size=stats.memory_cache_size,
            mode="memory" if stats.use_memory_fallback else "redis",
            is_connected=stats.is_connected,
        )
        return self._history.save_snapshot(snapshot)


class TypedCache(Generic[T]):
    """
    Typed view over a CacheService.

    Usage:
        users = cache.typed(ModelCodec(User))
        await users.set("user:1", User(name="Test", age=30), ttl_seconds=60)
        user = await users.get("user:1")  # User | None
    """

    def __init__(self, service: CacheService, codec: CacheCodec[T]):
        self._service = service
        self._codec = codec

    async def get(self, key: str) -> T | None:
        return await self._service._get(key, self._codec)

    async def set(self, key: str, value: T, ttl_seconds: int) -> None:
        await self._service._set(key, value, ttl_seconds, self._codec)

    async def delete(self, key: str) -> None:
        await self._service.delete(key)

    async def get_or_compute(
        self,
        key: str,
        compute: Callable[[], T | Awaitable[T]],
        ttl_seconds: int | None = None,
    ) -> T:
        return await self._service._get_or_compute(key, compute, ttl_seconds, self._codec)


# =============================================================================
# GLOBAL INSTANCE (SINGLETON PATTERN)
# =============================================================================

_cache_service: CacheService | None = None


def get_cache_service() -> CacheService:
    """
    Get the global cache service instance (singleton).

    Returns:
        CacheService: Global cache service instance
    """
    global _cache_service

    if _cache_service is None:
        _cache_service = CacheService()

    return _cache_service


async def init_cache(service: CacheService | None = None) -> CacheService:
    """
    Initialize the global cache service.

    Args:
        service: Replaces the global instance when given

    Returns:
        CacheService: Initialized cache service
    """
    global _cache_service

    if service is not None:
        _cache_service = service

    cache = get_cache_service()
    await cache.init()
    return cache


async def close_cache() -> None:
    """Shutdown the global cache service."""
    global _cache_service

    if _cache_service:
        await _cache_service.close()
        _cache_service = None


def reset_cache_service() -> None:
    """Drop the global instance without closing it (useful for testing)."""
    global _cache_service
    _cache_service = None


async def get_cache(key: str) -> Any | None:
    return await get_cache_service().get(key)


async def set_cache(key: str, value: Any, ttl_seconds: int) -> None:
    await get_cache_service().set(key, value, ttl_seconds)


async def delete_cache(key: str) -> None:
    await get_cache_service().delete(key)


async def clear_cache() -> None:
    await get_cache_service().clear()


def get_cache_stats() -> CacheStats:
    return get_cache_service().stats()


def with_cache(
    key: str | Callable[..., str],
    ttl_seconds: int,
    fn: Callable[..., Any],
) -> Callable[..., Awaitable[Any]]:
    """
    Wrap `fn` with read-through caching on the global service.

    Args:
        key: Cache key, or a function building the key from fn's arguments
        ttl_seconds: TTL for computed values
        fn: Sync or async function producing the value

    Usage:
        load_clients = with_cache("clients:all", 300, fetch_clients)
        clients = await load_clients()

        load_forecast = with_cache(lambda client_id: f"forecast:{client_id}", 600, fetch_forecast)
        forecast = await load_forecast(42)
    """

    async def wrapper(*args, **kwargs):
        cache_key = key(*args, **kwargs) if callable(key) else key
        return await get_cache_service().get_or_compute(
            cache_key, lambda: fn(*args, **kwargs), ttl_seconds
        )

    return wrapper
