"""
Monitoring Module

Metrics recording (with Prometheus mirroring) and snapshot history.
"""

from .metrics_collector import MetricSample, MetricStats, MetricsRecorder
from .metrics_history import MetricsHistory, MetricsSnapshot

__all__ = [
    "MetricSample",
    "MetricStats",
    "MetricsRecorder",
    "MetricsHistory",
    "MetricsSnapshot",
]
