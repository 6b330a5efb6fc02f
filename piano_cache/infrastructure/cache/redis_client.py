"""
Remote Cache Client Adapter

Architecture:
    RemoteCacheAdapter (Public API)
        ├── configuration check (endpoint + credential present?)
        ├── client lifecycle (connect / close)
        ├── guarded calls (timeout + retry + error translation)
        └── health check

Every remote call is bounded by CACHE_REMOTE_TIMEOUT and retried up to
CACHE_REMOTE_MAX_ATTEMPTS times. Whatever still fails surfaces as AdapterError
(AdapterTimeoutError for timeouts); deciding what to do about it is the
facade's job. The adapter touches neither metrics nor fallback state.

Configuration is read once, at construction. "Not configured" and
"configured but unreachable" are distinct: has_config answers the first,
connect() raising AdapterError answers the second.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import redis.asyncio as redis
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from piano_cache.core.config.constants import Stage
from piano_cache.core.config.settings import CacheSettings
from piano_cache.core.exceptions import (
    AdapterError,
    AdapterTimeoutError,
    ConfigurationError,
    InvalidTTLError,
    SerializationError,
)
from piano_cache.core.logging.logger import get_logger, log_stage
from piano_cache.core.resilience.retry import create_retry_decorator

logger = get_logger(__name__)

R = TypeVar("R")


def validate_ttl(ttl_seconds: Any) -> int:
    """
    Check that a TTL is a positive whole number of seconds.

    Raises:
        InvalidTTLError: For non-integers (bool included) and values <= 0
    """
    if isinstance(ttl_seconds, bool) or not isinstance(ttl_seconds, int):
        raise InvalidTTLError(
            "TTL must be an integer number of seconds",
            details={"ttl_seconds": repr(ttl_seconds)},
        )
    if ttl_seconds <= 0:
        raise InvalidTTLError(
            "TTL must be greater than zero",
            details={"ttl_seconds": ttl_seconds},
        )
    return ttl_seconds


class RemoteCacheAdapter:
    """
    Redis-backed remote store adapter.

    Usage:
        adapter = RemoteCacheAdapter(get_settings().cache)
        if adapter.has_config:
            await adapter.connect()
            await adapter.raw_set("forecast:client:42", '{"revenue": 10}', 300)
            raw = await adapter.raw_get("forecast:client:42")
        await adapter.close()
    """

    def __init__(self, settings: CacheSettings):
        self._url = (settings.REDIS_URL or "").strip()
        self._token = (settings.REDIS_TOKEN or "").strip()
        self._timeout = settings.CACHE_REMOTE_TIMEOUT
        self._client: redis.Redis | None = None
        self._retry = create_retry_decorator(
            max_attempts=settings.CACHE_REMOTE_MAX_ATTEMPTS,
            base_delay=settings.CACHE_RETRY_BASE_DELAY,
            max_delay=settings.CACHE_RETRY_MAX_DELAY,
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @property
    def has_config(self) -> bool:
        return bool(self._url and self._token)

    @property
    def has_client(self) -> bool:
        return self._client is not None

    def _create_client(self) -> redis.Redis:
        """
        Build the client from REDIS_URL.

        Responses stay bytes; raw_get decodes values itself so that foreign
        data surfaces as SerializationError.

        Raises:
            ConfigurationError: If the URL is not a redis://, rediss:// or unix:// URL
        """
        try:
            return redis.from_url(
                self._url,
                password=self._token,
                decode_responses=False,
                socket_timeout=self._timeout,
                socket_connect_timeout=self._timeout,
            )
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid REDIS_URL: {e}",
                details={"url_scheme": self._url.partition(":")[0]},
            ).with_context(suggestion="Use the redis:// or rediss:// endpoint, not the REST URL") from e

    async def connect(self) -> None:
        """
        Create the client and verify it with a ping.

        STAGE-REMOTE.1: Connection establishment

        The client object is kept even when the ping fails, so that a later
        recovery probe can reuse it.

        Raises:
            ConfigurationError: If endpoint or credential is missing or the URL is invalid
            AdapterError: If the ping fails
        """
        if not self.has_config:
            raise ConfigurationError(
                "Remote cache store is not configured",
                details={"has_url": bool(self._url), "has_token": bool(self._token)},
            ).with_context(suggestion="Set REDIS_URL and REDIS_TOKEN")

        if self._client is None:
            self._client = self._create_client()

        await self._guarded("ping", None, self._client.ping)
        log_stage(logger, Stage.REMOTE_CONNECT, "Remote cache store reachable", url=self._url)

    async def close(self) -> None:
        """
        Release the client.

        STAGE-REMOTE.3: Connection cleanup
        """
        if self._client is None:
            return
        try:
            await self._client.aclose()
        except (RedisError, OSError) as e:
            logger.warning("Error closing remote cache client", stage=Stage.REMOTE_CLOSE.value, error=str(e))
        finally:
            self._client = None
        log_stage(logger, Stage.REMOTE_CLOSE, "Remote cache client closed")

    # -------------------------------------------------------------------------
    # Guarded execution
    # -------------------------------------------------------------------------

    async def _guarded(self, operation: str, key: str | None, call: Callable[[], Awaitable[R]]) -> R:
        """
        Run one remote call with timeout, retry and error translation.

        Raises:
            AdapterTimeoutError: Timed out on every attempt
            AdapterError: Any other failure on every attempt
        """

        @self._retry
        async def attempt() -> R:
            try:
                return await asyncio.wait_for(call(), timeout=self._timeout)
            except (asyncio.TimeoutError, RedisTimeoutError) as e:
                raise AdapterTimeoutError(
                    f"Remote {operation} timed out after {self._timeout}s",
                    details={"operation": operation, "key": key, "timeout": self._timeout},
                ) from e
            except (RedisError, OSError) as e:
                raise AdapterError.from_exception(
                    e, message=f"Remote {operation} failed: {e}", operation=operation, key=key
                ) from e

        if self._client is None:
            raise AdapterError(
                f"Remote {operation} attempted without a client",
                details={"operation": operation, "key": key},
            )

        try:
            return await attempt()
        except AdapterError as e:
            logger.error(
                "Remote cache call failed",
                stage=Stage.REMOTE_CALL.value,
                operation=operation,
                key=key,
                error=e.message,
                error_type=type(e).__name__,
            )
            raise

    # -------------------------------------------------------------------------
    # Raw operations
    # -------------------------------------------------------------------------

    async def raw_get(self, key: str) -> str | None:
        """
        Get a serialized value; None if absent or expired server side.

        Raises:
            SerializationError: If the stored bytes are not UTF-8 text
        """
        raw = await self._guarded("get", key, lambda: self._client.get(key))
        if raw is None:
            return None
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise SerializationError(
                "Stored value is not UTF-8 text",
                details={"key": key, "reason": str(e)},
            ) from e

    async def raw_set(self, key: str, value: str, ttl_seconds: int) -> None:
        """
        Store a serialized value with a TTL (SET key value EX ttl).

        Raises:
            InvalidTTLError: If ttl_seconds is not a positive integer
        """
        ttl_seconds = validate_ttl(ttl_seconds)
        await self._guarded("set", key, lambda: self._client.set(key, value, ex=ttl_seconds))

    async def raw_delete(self, key: str) -> None:
        """Delete a key; deleting an absent key is not an error."""
        await self._guarded("delete", key, lambda: self._client.delete(key))

    async def raw_delete_matching(self, prefix: str) -> int:
        """
        Delete every key starting with prefix (SCAN + DEL).

        Returns:
            Number of keys deleted
        """

        async def scan_and_delete() -> int:
            keys = [key async for key in self._client.scan_iter(match=f"{prefix}*", count=500)]
            if not keys:
                return 0
            return await self._client.delete(*keys)

        return await self._guarded("delete_matching", prefix, scan_and_delete)

    async def ping(self) -> bool:
        """
        Check remote store health.

        Returns:
            True if healthy, False otherwise (never raises)
        """
        if self._client is None:
            return False
        try:
            await self._guarded("ping", None, self._client.ping)
            return True
        except AdapterError:
            return False

    async def health_check(self) -> dict[str, Any]:
        """
        Ping the remote store and report latency.

        Returns:
            Dict with status, latency_ms and error (when unhealthy)
        """
        if self._client is None:
            return {"status": "not_connected", "configured": self.has_config}

        start = time.perf_counter()
        try:
            await self._guarded("ping", None, self._client.ping)
        except AdapterError as e:
            return {"status": "unhealthy", "error": e.message}

        return {
            "status": "healthy",
            "latency_ms": round((time.perf_counter() - start) * 1000, 2),
        }
