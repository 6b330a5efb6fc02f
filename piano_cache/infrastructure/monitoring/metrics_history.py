"""
Metrics History

Keeps a bounded, in-memory ring of periodic cache metric snapshots for trend
analysis (default: one week of hourly snapshots). History is lost on restart.

A snapshot offered before METRICS_SNAPSHOT_INTERVAL seconds have passed since
the previous stored one is dropped, so callers may offer snapshots as often as
they like (on every admin request, from a timer, ...).
"""

import time
from collections import deque
from collections.abc import Callable
from typing import Any, Literal

from pydantic import BaseModel

from piano_cache.core.config.constants import Stage
from piano_cache.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)


class MetricsSnapshot(BaseModel):
    """Cache metrics at one point in time. `timestamp` is set when stored."""

    timestamp: float | None = None
    hits: int
    misses: int
    hit_rate: float
    avg_latency: float
    total_operations: int
    sets: int
    deletes: int
    memory_cache_size: int
    mode: Literal["memory", "redis"]
    is_connected: bool


class MetricsHistory:
    """
    Bounded snapshot ring.

    Usage:
        history = MetricsHistory(max_snapshots=168, snapshot_interval=3600)
        history.save_snapshot(snapshot)
        history.get_recent_history(hours=24)
    """

    def __init__(
        self,
        max_snapshots: int = 168,
        snapshot_interval: float = 3600.0,
        clock: Callable[[], float] = time.time,
    ):
        self._snapshots: deque[MetricsSnapshot] = deque(maxlen=max_snapshots)
        self._snapshot_interval = snapshot_interval
        self._clock = clock
        self._last_snapshot_at: float | None = None

    def save_snapshot(self, snapshot: MetricsSnapshot) -> bool:
        """
        Store a snapshot if the minimum interval has elapsed.

        Returns:
            True if stored, False if dropped
        """
        now = self._clock()
        if self._last_snapshot_at is not None and now - self._last_snapshot_at < self._snapshot_interval:
            return False

        self._snapshots.append(snapshot.model_copy(update={"timestamp": now}))
        self._last_snapshot_at = now

        log_stage(logger, Stage.METRICS, "Metrics snapshot saved", snapshots=len(self._snapshots))
        return True

    def get_history(self) -> list[MetricsSnapshot]:
        return list(self._snapshots)

    def get_recent_history(self, hours: float) -> list[MetricsSnapshot]:
        """Snapshots taken within the last `hours` hours."""
        cutoff = self._clock() - hours * 3600
        return [snapshot for snapshot in self._snapshots if snapshot.timestamp >= cutoff]

    def get_history_stats(self) -> dict[str, Any] | None:
        """
        Aggregate the stored snapshots.

        Returns:
            Dict with snapshot_count, oldest/newest timestamps, avg_hit_rate,
            min/max hit rate, avg_latency and total_operations, or None when
            the history is empty
        """
        if not self._snapshots:
            return None

        count = len(self._snapshots)
        hit_rates = [snapshot.hit_rate for snapshot in self._snapshots]

        return {
            "snapshot_count": count,
            "oldest_snapshot": self._snapshots[0].timestamp,
            "newest_snapshot": self._snapshots[-1].timestamp,
            "avg_hit_rate": round(sum(hit_rates) / count, 2),
            "min_hit_rate": min(hit_rates),
            "max_hit_rate": max(hit_rates),
            "avg_latency": round(sum(s.avg_latency for s in self._snapshots) / count, 2),
            "total_operations": sum(s.total_operations for s in self._snapshots),
        }

    def clear(self) -> None:
        self._snapshots.clear()
        self._last_snapshot_at = None
        log_stage(logger, Stage.METRICS, "Metrics history cleared")
