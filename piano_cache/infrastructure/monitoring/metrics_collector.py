"""
Metrics Recorder with Prometheus Integration

This module records named samples for the cache layer and aggregates them on
demand:
- Ordered sample sequences per metric name (no eviction)
- count / avg / min / max / p50 / p95 / p99 per metric
- Cache hit/miss/set/delete summary with hit rate

Every sample is also mirrored into prometheus-client collectors so that a
scrape endpoint or Grafana dashboard sees the same operations.

Percentile rule:
    For a sorted sequence of n samples, percentile p is the element at index
    min(floor(n * p), n - 1). With samples [1..10], p50 = 6 and p95 = p99 = 10.

One recorder belongs to one CacheService. The prometheus collectors are
process-wide, as prometheus-client requires.
"""

import math
import time
from typing import Any, Literal

from prometheus_client import Counter, Histogram
from pydantic import BaseModel, Field

from piano_cache.core.config.constants import (
    KEY_PREFIX_SEPARATOR,
    METRIC_CACHE_DELETE,
    METRIC_CACHE_HIT,
    METRIC_CACHE_MISS,
    METRIC_CACHE_SET,
    CacheOperation,
    Stage,
)
from piano_cache.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)

MetricUnit = Literal["ms", "count", "bytes", "percent"]


# ============================================================================
# Prometheus Metric Definitions
# ============================================================================

METRIC_SAMPLES = Counter(
    'piano_cache_metric_samples_total',
    'Total samples recorded by metric name',
    ['metric']
)

CACHE_OPERATIONS = Counter(
    'piano_cache_operations_total',
    'Total cache operations by operation and key prefix',
    ['operation', 'prefix']
)

CACHE_OPERATION_DURATION = Histogram(
    'piano_cache_operation_duration_seconds',
    'Cache operation latency in seconds',
    ['operation'],
    buckets=(0.0005, 0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5)
)


# ============================================================================
# Models
# ============================================================================


class MetricSample(BaseModel):
    """One recorded sample."""

    name: str
    value: float
    timestamp: float = Field(default_factory=time.time)
    unit: MetricUnit = "count"
    tags: dict[str, str] = Field(default_factory=dict)


class MetricStats(BaseModel):
    """Aggregate statistics for one metric name."""

    count: int
    avg: float
    min: float
    max: float
    p50: float
    p95: float
    p99: float


def key_prefix(key: str) -> str:
    """Segment of the key before the first ':' ("forecast:42" -> "forecast")."""
    return key.split(KEY_PREFIX_SEPARATOR, 1)[0]


def percentile(sorted_values: list[float], p: float) -> float:
    """Nearest-rank-from-below percentile of an already sorted, non-empty list."""
    index = min(math.floor(len(sorted_values) * p), len(sorted_values) - 1)
    return sorted_values[index]


# ============================================================================
# Recorder
# ============================================================================


class MetricsRecorder:
    """
    In-process metrics recorder.

    STAGE-M: Metrics collection

    Usage:
        recorder = MetricsRecorder()
        recorder.track_cache_operation(CacheOperation.HIT, "forecast:42", duration_ms=1.8)
        recorder.get_metric_stats("cache_hit")
    """

    def __init__(self):
        self._samples: dict[str, list[MetricSample]] = {}

    def track_metric(
        self,
        name: str,
        value: float,
        unit: MetricUnit = "count",
        tags: dict[str, str] | None = None,
    ) -> None:
        """Append one sample to the sequence for `name`."""
        sample = MetricSample(name=name, value=value, unit=unit, tags=tags or {})
        self._samples.setdefault(name, []).append(sample)
        METRIC_SAMPLES.labels(metric=name).inc()

        logger.debug("Metric tracked", stage=Stage.METRICS.value, metric=name, value=value, unit=unit, tags=sample.tags)

    def track_cache_operation(
        self,
        operation: CacheOperation | str,
        key: str,
        duration_ms: float | None = None,
    ) -> None:
        """
        Record cache_<operation> tagged with the key prefix.

        The sample value is the duration in ms when known, otherwise 1.
        """
        operation = CacheOperation(operation)
        prefix = key_prefix(key)

        if duration_ms is not None:
            self.track_metric(f"cache_{operation.value}", duration_ms, unit="ms", tags={"key": prefix})
            CACHE_OPERATION_DURATION.labels(operation=operation.value).observe(duration_ms / 1000)
        else:
            self.track_metric(f"cache_{operation.value}", 1, unit="count", tags={"key": prefix})

        CACHE_OPERATIONS.labels(operation=operation.value, prefix=prefix).inc()

    def get_samples(self, name: str) -> list[MetricSample]:
        return list(self._samples.get(name, []))

    def get_metric_stats(self, name: str) -> MetricStats | None:
        """
        Aggregate statistics for one metric.

        Returns:
            MetricStats, or None when the metric has no samples
        """
        samples = self._samples.get(name)
        if not samples:
            return None

        values = sorted(sample.value for sample in samples)
        return MetricStats(
            count=len(values),
            avg=sum(values) / len(values),
            min=values[0],
            max=values[-1],
            p50=percentile(values, 0.50),
            p95=percentile(values, 0.95),
            p99=percentile(values, 0.99),
        )

    def get_metrics_summary(self) -> dict[str, MetricStats]:
        """Stats for every metric that has samples."""
        summary = {}
        for name in self._samples:
            stats = self.get_metric_stats(name)
            if stats is not None:
                summary[name] = stats
        return summary

    def get_cache_summary(self) -> dict[str, Any]:
        """
        Cache-level summary.

        Returns:
            Dict with hits, misses, sets, deletes, hit_rate (percent),
            avg_latency (ms, over hit and miss samples) and total_operations
        """
        hits = self._samples.get(METRIC_CACHE_HIT, [])
        misses = self._samples.get(METRIC_CACHE_MISS, [])
        sets = len(self._samples.get(METRIC_CACHE_SET, []))
        deletes = len(self._samples.get(METRIC_CACHE_DELETE, []))

        lookups = len(hits) + len(misses)
        latencies = [sample.value for sample in (*hits, *misses)]

        return {
            "hits": len(hits),
            "misses": len(misses),
            "sets": sets,
            "deletes": deletes,
            "hit_rate": (len(hits) / lookups * 100) if lookups else 0.0,
            "avg_latency": (sum(latencies) / len(latencies)) if latencies else 0.0,
            "total_operations": lookups + sets + deletes,
        }

    def clear_metrics(self) -> None:
        self._samples.clear()
        log_stage(logger, Stage.METRICS, "Metrics cleared")
