"""
Unit Tests for Monitoring Infrastructure

Tests the metrics recorder (percentiles, cache summary, Prometheus mirroring)
and the metrics snapshot history.
"""

import pytest
from prometheus_client import REGISTRY

from piano_cache.core.config.constants import CacheOperation
from piano_cache.infrastructure.monitoring.metrics_collector import (
    MetricsRecorder,
    key_prefix,
    percentile,
)
from piano_cache.infrastructure.monitoring.metrics_history import MetricsHistory, MetricsSnapshot
from tests.test_fixtures.cache_factory import FakeClock


def make_snapshot(**overrides) -> MetricsSnapshot:
    values = {
        "hits": 8,
        "misses": 2,
        "hit_rate": 80.0,
        "avg_latency": 1.5,
        "total_operations": 12,
        "sets": 2,
        "deletes": 0,
        "memory_cache_size": 2,
        "mode": "redis",
        "is_connected": True,
    }
    values.update(overrides)
    return MetricsSnapshot(**values)


@pytest.mark.unit
class TestMetricsRecorder:
    """Test suite for MetricsRecorder."""

    @pytest.fixture
    def recorder(self):
        """Create an isolated recorder."""
        return MetricsRecorder()

    def test_no_samples_returns_none(self, recorder):
        """Test stats for an unknown metric."""
        assert recorder.get_metric_stats("cache_hit") is None

    def test_percentiles_follow_floor_index_rule(self, recorder):
        """Test p50/p95/p99 on samples 1..10."""
        for value in range(10, 0, -1):
            recorder.track_metric("latency", value, unit="ms")

        stats = recorder.get_metric_stats("latency")

        assert stats.count == 10
        assert stats.avg == 5.5
        assert stats.min == 1
        assert stats.max == 10
        assert stats.p50 == 6
        assert stats.p95 == 10
        assert stats.p99 == 10

    def test_single_sample(self, recorder):
        """Test that every percentile equals the only sample."""
        recorder.track_metric("latency", 7)

        stats = recorder.get_metric_stats("latency")
        assert (stats.p50, stats.p95, stats.p99) == (7, 7, 7)

    def test_track_cache_operation_with_duration(self, recorder):
        """Test that a duration becomes an ms sample tagged with the key prefix."""
        recorder.track_cache_operation(CacheOperation.HIT, "forecast:clientId:123", duration_ms=2.5)

        sample = recorder.get_samples("cache_hit")[0]
        assert sample.value == 2.5
        assert sample.unit == "ms"
        assert sample.tags == {"key": "forecast"}

    def test_track_cache_operation_without_duration(self, recorder):
        """Test that the value defaults to 1."""
        recorder.track_cache_operation("set", "clients", duration_ms=None)

        sample = recorder.get_samples("cache_set")[0]
        assert sample.value == 1
        assert sample.unit == "count"
        assert sample.tags == {"key": "clients"}

    def test_cache_summary(self, recorder):
        """Test hit rate and latency over hit and miss samples."""
        recorder.track_cache_operation("hit", "a:1", duration_ms=1.0)
        recorder.track_cache_operation("hit", "a:2", duration_ms=3.0)
        recorder.track_cache_operation("hit", "a:3", duration_ms=2.0)
        recorder.track_cache_operation("miss", "a:4", duration_ms=6.0)
        recorder.track_cache_operation("set", "a:4", duration_ms=9.0)

        summary = recorder.get_cache_summary()

        assert summary == {
            "hits": 3,
            "misses": 1,
            "sets": 1,
            "deletes": 0,
            "hit_rate": 75.0,
            "avg_latency": 3.0,
            "total_operations": 5,
        }

    def test_empty_cache_summary(self, recorder):
        """Test that an empty recorder reports zeros."""
        summary = recorder.get_cache_summary()
        assert summary["hit_rate"] == 0.0
        assert summary["total_operations"] == 0

    def test_metrics_summary_and_clear(self, recorder):
        """Test the per-metric summary and clear_metrics()."""
        recorder.track_metric("a", 1)
        recorder.track_metric("b", 2)

        assert set(recorder.get_metrics_summary()) == {"a", "b"}

        recorder.clear_metrics()
        assert recorder.get_metrics_summary() == {}

    def test_recorders_are_independent(self):
        """Test that samples are per recorder."""
        first, second = MetricsRecorder(), MetricsRecorder()
        first.track_metric("a", 1)

        assert second.get_metric_stats("a") is None

    def test_prometheus_counter_mirrored(self, recorder):
        """Test that cache operations increment the Prometheus counter."""
        labels = {"operation": "delete", "prefix": "promtest"}
        before = REGISTRY.get_sample_value("piano_cache_operations_total", labels) or 0

        recorder.track_cache_operation("delete", "promtest:1", duration_ms=0.4)

        assert REGISTRY.get_sample_value("piano_cache_operations_total", labels) == before + 1


@pytest.mark.unit
class TestHelpers:
    """Test module helpers."""

    @pytest.mark.parametrize(
        "key,expected",
        [("forecast:clientId:123", "forecast"), ("clients", "clients"), (":x", "")],
    )
    def test_key_prefix(self, key, expected):
        assert key_prefix(key) == expected

    def test_percentile_index_is_clamped(self):
        """Test that p=1.0 selects the last element."""
        assert percentile([1, 2, 3], 1.0) == 3


@pytest.mark.unit
class TestMetricsHistory:
    """Test suite for MetricsHistory."""

    @pytest.fixture
    def clock(self):
        return FakeClock(start=1_700_000_000.0)

    @pytest.fixture
    def history(self, clock):
        return MetricsHistory(max_snapshots=3, snapshot_interval=3600, clock=clock)

    def test_first_snapshot_is_stored_and_stamped(self, history, clock):
        """Test the first snapshot."""
        assert history.save_snapshot(make_snapshot()) is True

        stored = history.get_history()
        assert len(stored) == 1
        assert stored[0].timestamp == clock()

    def test_interval_is_enforced(self, history, clock):
        """Test that snapshots inside the interval are dropped."""
        history.save_snapshot(make_snapshot())

        clock.advance(3599)
        assert history.save_snapshot(make_snapshot()) is False

        clock.advance(1)
        assert history.save_snapshot(make_snapshot()) is True
        assert len(history.get_history()) == 2

    def test_ring_is_bounded(self, history, clock):
        """Test that the oldest snapshot is evicted."""
        for hits in range(5):
            history.save_snapshot(make_snapshot(hits=hits))
            clock.advance(3600)

        assert [s.hits for s in history.get_history()] == [2, 3, 4]

    def test_recent_history(self, history, clock):
        """Test filtering by hours."""
        history.save_snapshot(make_snapshot(hits=1))
        clock.advance(7200)
        history.save_snapshot(make_snapshot(hits=2))

        recent = history.get_recent_history(hours=1)

        assert [s.hits for s in recent] == [2]

    def test_history_stats(self, history, clock):
        """Test aggregate stats."""
        history.save_snapshot(make_snapshot(hit_rate=80.0, avg_latency=1.0, total_operations=10))
        clock.advance(3600)
        history.save_snapshot(make_snapshot(hit_rate=60.0, avg_latency=2.0, total_operations=5))

        stats = history.get_history_stats()

        assert stats["snapshot_count"] == 2
        assert stats["avg_hit_rate"] == 70.0
        assert stats["min_hit_rate"] == 60.0
        assert stats["max_hit_rate"] == 80.0
        assert stats["avg_latency"] == 1.5
        assert stats["total_operations"] == 15
        assert stats["newest_snapshot"] - stats["oldest_snapshot"] == 3600

    def test_empty_history_stats(self, history):
        """Test that an empty history has no stats."""
        assert history.get_history_stats() is None

    def test_clear_resets_interval(self, history):
        """Test that clear() allows an immediate snapshot."""
        history.save_snapshot(make_snapshot())
        history.clear()

        assert history.get_history() == []
        assert history.save_snapshot(make_snapshot()) is True
