"""Prometheus metrics registry for the storage bucket exporter."""

from __future__ import annotations

from typing import Sequence

from prometheus_client import CONTENT_TYPE_LATEST, CollectorRegistry, Counter, Gauge, Histogram
from prometheus_client import generate_latest

from .constants import (
    BUCKET_LABELS,
    METRIC_BUCKET_FILE_COUNT,
    METRIC_BUCKET_SIZE_BYTES,
    METRIC_LAST_SUCCESS,
    METRIC_POLL_ROUND_DURATION,
    METRIC_POLL_ROUNDS,
    METRIC_REMOTE_ERRORS,
)


class MetricsRegistry:
    """Owns every sample the exporter publishes.

    Gauges are upserted by name and label values. prometheus_client guards
    each child value with its own lock and ``generate_latest`` walks a copy of
    the collector list, so writers and the scrape handler may run concurrently.
    Samples are never removed; a bucket that disappears keeps its last value
    until the process restarts.
    """

    content_type = CONTENT_TYPE_LATEST

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry(auto_describe=True)

        # Bucket metrics
        self.bucket_size_bytes = Gauge(
            METRIC_BUCKET_SIZE_BYTES,
            "Total size in bytes for a bucket",
            list(BUCKET_LABELS),
            registry=self.registry,
        )
        self.bucket_file_count = Gauge(
            METRIC_BUCKET_FILE_COUNT,
            "File count for a bucket",
            list(BUCKET_LABELS),
            registry=self.registry,
        )

        # Poll metrics
        self.poll_rounds_total = Counter(
            METRIC_POLL_ROUNDS,
            "Total number of completed poll rounds",
            registry=self.registry,
        )
        self.poll_round_duration_seconds = Histogram(
            METRIC_POLL_ROUND_DURATION,
            "Duration of poll rounds in seconds",
            buckets=[0.5, 1.0, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0],
            registry=self.registry,
        )
        self.remote_errors_total = Counter(
            METRIC_REMOTE_ERRORS,
            "Total number of failed remote or bucket measurements",
            ["remote", "kind"],
            registry=self.registry,
        )
        self.last_success_timestamp_seconds = Gauge(
            METRIC_LAST_SUCCESS,
            "Unix time of the last round in which the remote was enumerated",
            ["remote"],
            registry=self.registry,
        )

        self._gauges: dict[str, Gauge] = {
            METRIC_BUCKET_SIZE_BYTES: self.bucket_size_bytes,
            METRIC_BUCKET_FILE_COUNT: self.bucket_file_count,
            METRIC_LAST_SUCCESS: self.last_success_timestamp_seconds,
        }

    def set_gauge(self, metric_name: str, label_values: Sequence[str], value: float) -> None:
        """Upsert the sample for ``metric_name`` with the given label values."""
        self._gauges[metric_name].labels(*label_values).set(value)

    def get_sample(self, metric_name: str, labels: dict[str, str]) -> float | None:
        """Current value of one sample, or None if it was never set."""
        return self.registry.get_sample_value(metric_name, labels)

    def render(self) -> bytes:
        """Render all samples in the Prometheus text exposition format."""
        return generate_latest(self.registry)
