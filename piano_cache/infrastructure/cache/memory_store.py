"""
In-Process Fallback Store

Emulates a minimal expiring key-value store in process memory. The cache
facade serves from it whenever the remote store is unavailable, and mirrors
every write into it so that a later failover has a warm copy.

Expiry:
    Lazy by default. An expired entry is removed only when a get() touches it,
    so size() is an upper bound on the live entries. An optional sweeper task
    purges expired entries periodically for deployments that write many keys
    that are never read back.

Operations never suspend: the store is plain dict access on the event loop.
"""

import asyncio
import contextlib
import time
from collections.abc import Callable

from piano_cache.core.config.constants import Stage
from piano_cache.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)


class MemoryFallbackStore:
    """
    Expiring in-memory store: key -> (serialized value, expires_at).

    Usage:
        store = MemoryFallbackStore()
        store.set("clients:count", "42", ttl_seconds=60)
        store.get("clients:count")  # "42"
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        """
        Args:
            clock: Monotonic seconds source (injectable for tests)
        """
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}
        self._sweeper: asyncio.Task | None = None

    def get(self, key: str) -> str | None:
        """
        Get a value, treating an entry at or past its expiry as absent.

        Returns:
            Stored value or None if not found or expired
        """
        entry = self._entries.get(key)
        if entry is None:
            return None

        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None

        return value

    def set(self, key: str, value: str, ttl_seconds: float) -> None:
        """Store a value, replacing any previous value and TTL."""
        self._entries[key] = (value, self._clock() + ttl_seconds)

    def delete(self, key: str) -> bool:
        """
        Delete a key.

        Returns:
            True if deleted, False if not found
        """
        return self._entries.pop(key, None) is not None

    def delete_matching(self, prefix: str) -> int:
        """Delete every key starting with prefix; returns the count removed."""
        matching = [key for key in self._entries if key.startswith(prefix)]
        for key in matching:
            del self._entries[key]
        return len(matching)

    def clear(self) -> None:
        self._entries.clear()

    def size(self) -> int:
        """Entry count, including expired entries not yet purged."""
        return len(self._entries)

    def keys(self) -> list[str]:
        return list(self._entries)

    def purge_expired(self) -> int:
        """Remove every expired entry; returns the count removed."""
        now = self._clock()
        expired = [key for key, (_, expires_at) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]
        return len(expired)

    # -------------------------------------------------------------------------
    # Optional background sweeper
    # -------------------------------------------------------------------------

    @property
    def sweeper_running(self) -> bool:
        return self._sweeper is not None and not self._sweeper.done()

    def start_sweeper(self, interval: float) -> None:
        """
        Purge expired entries every `interval` seconds on the running loop.

        Must be called from within a running event loop.
        """
        if self.sweeper_running:
            return
        self._sweeper = asyncio.get_running_loop().create_task(self._sweep_forever(interval))
        log_stage(logger, Stage.FALLBACK, "Fallback sweeper started", interval=interval)

    async def stop_sweeper(self) -> None:
        if self._sweeper is None:
            return
        self._sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._sweeper
        self._sweeper = None
        log_stage(logger, Stage.FALLBACK, "Fallback sweeper stopped")

    async def _sweep_forever(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            purged = self.purge_expired()
            if purged:
                log_stage(
                    logger, Stage.FALLBACK, "Purged expired fallback entries",
                    level="debug", purged=purged, remaining=len(self._entries),
                )
