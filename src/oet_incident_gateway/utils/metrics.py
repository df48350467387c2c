"""Metrics collection for observability.

This module provides in-process metrics for the incident pipeline:
- Incident counters by outcome code
- Chat platform fetch errors and attachment counts
- Image materialization counters
- SOAP request and end-to-end duration histograms

Metrics follow Prometheus naming and are exposed by the ``/metrics`` endpoint.
"""

from __future__ import annotations

import time
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from threading import Lock
from typing import Any

import structlog

log = structlog.get_logger()

LabelKey = tuple[tuple[str, str], ...]


def _label_key(labels: dict[str, str] | None) -> LabelKey:
    return tuple(sorted(labels.items())) if labels else ()


def _format_labels(labels: dict[str, str]) -> str:
    if not labels:
        return ""
    return "{" + ",".join(f'{k}="{v}"' for k, v in labels.items()) + "}"


class MetricType(StrEnum):
    """Types of metrics."""

    COUNTER = "counter"
    GAUGE = "gauge"
    HISTOGRAM = "histogram"


@dataclass
class MetricValue:
    """One sample of a metric for a given label set."""

    name: str
    type: MetricType
    value: float
    labels: dict[str, str] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    help_text: str = ""


class _LabelledMetric:
    """Thread-safe float storage keyed by label set."""

    metric_type: MetricType

    def __init__(self, name: str, help_text: str = "") -> None:
        self.name = name
        self.help_text = help_text
        self._values: dict[LabelKey, float] = defaultdict(float)
        self._lock = Lock()

    def _add(self, value: float, labels: dict[str, str] | None) -> None:
        with self._lock:
            self._values[_label_key(labels)] += value

    def get(self, labels: dict[str, str] | None = None) -> float:
        with self._lock:
            return self._values.get(_label_key(labels), 0)

    def get_all(self) -> list[MetricValue]:
        with self._lock:
            items = list(self._values.items())
        return [
            MetricValue(self.name, self.metric_type, value, dict(key), help_text=self.help_text)
            for key, value in items
        ]


class Counter(_LabelledMetric):
    """A monotonically increasing counter.

    Example:
        counter = Counter("incidents_received_total", "Incidents received")
        counter.inc()
        counter.inc(labels={"code": "OET_AUTH_ERROR"})
    """

    metric_type = MetricType.COUNTER

    def inc(self, value: float = 1, labels: dict[str, str] | None = None) -> None:
        if value < 0:
            raise ValueError("Counter can only increase")
        self._add(value, labels)

    def total(self) -> float:
        """Sum across all label sets."""
        with self._lock:
            return sum(self._values.values())


class Gauge(_LabelledMetric):
    metric_type = MetricType.GAUGE

    def set(self, value: float, labels: dict[str, str] | None = None) -> None:
        with self._lock:
            self._values[_label_key(labels)] = value

    def inc(self, value: float = 1, labels: dict[str, str] | None = None) -> None:
        self._add(value, labels)

    def dec(self, value: float = 1, labels: dict[str, str] | None = None) -> None:
        self._add(-value, labels)


class Histogram:
    """A histogram metric for tracking value distributions.

    Example:
        histogram = Histogram("soap_request_duration_seconds", "SOAP call duration")
        histogram.observe(0.5)
    """

    # Default buckets for timing (in seconds); SOAP calls may take up to 15 s
    DEFAULT_BUCKETS = (0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 15.0, 30.0, float("inf"))

    def __init__(
        self,
        name: str,
        help_text: str = "",
        buckets: tuple[float, ...] | None = None,
    ) -> None:
        self.name = name
        self.help_text = help_text
        self._buckets = buckets or self.DEFAULT_BUCKETS
        self._observations: dict[LabelKey, list[float]] = defaultdict(list)
        self._lock = Lock()

    def observe(self, value: float, labels: dict[str, str] | None = None) -> None:
        """Record an observation."""
        with self._lock:
            self._observations[_label_key(labels)].append(value)

    def get_stats(self, labels: dict[str, str] | None = None) -> dict[str, float]:
        """Get count, sum, min, max and mean for one label set."""
        with self._lock:
            values = list(self._observations.get(_label_key(labels), []))

        if not values:
            return {"count": 0, "sum": 0, "min": 0, "max": 0, "mean": 0}

        return {
            "count": len(values),
            "sum": sum(values),
            "min": min(values),
            "max": max(values),
            "mean": sum(values) / len(values),
        }

    def get_buckets(self, labels: dict[str, str] | None = None) -> dict[float, int]:
        """Get cumulative bucket counts (Prometheus ``le`` semantics)."""
        with self._lock:
            values = list(self._observations.get(_label_key(labels), []))

        return {bucket: sum(1 for v in values if v <= bucket) for bucket in self._buckets}


class MetricsRegistry:
    """Registry for all gateway metrics.

    This is a singleton that holds all metrics and provides
    methods for exporting them.

    Example:
        registry = MetricsRegistry.get_instance()
        registry.incidents_received.inc()
        metrics = registry.get_all_metrics()
    """

    _instance: MetricsRegistry | None = None
    _lock = Lock()

    def __init__(self) -> None:
        # Incident pipeline
        self.incidents_received = Counter(
            "oet_gateway_incidents_received_total",
            "Total incident requests received",
        )
        self.incidents_by_outcome = Counter(
            "oet_gateway_incidents_total",
            "Incident requests by outcome code",
        )
        self.validation_failures = Counter(
            "oet_gateway_validation_failures_total",
            "Incident requests rejected by validation",
        )

        # Chat platform
        self.chat_fetch_errors = Counter(
            "oet_gateway_chat_fetch_errors_total",
            "Conversation attachment fetches that failed",
        )
        self.attachments_found = Counter(
            "oet_gateway_attachments_found_total",
            "Image attachment URLs found in conversations",
        )

        # Images
        self.images_materialized = Counter(
            "oet_gateway_images_materialized_total",
            "Images downloaded and encoded",
        )
        self.images_failed = Counter(
            "oet_gateway_images_failed_total",
            "Images dropped during materialization",
        )

        # Durations
        self.soap_request_duration = Histogram(
            "oet_gateway_soap_request_duration_seconds",
            "Ticketing backend request duration in seconds",
        )
        self.incident_duration = Histogram(
            "oet_gateway_incident_duration_seconds",
            "End-to-end incident processing duration in seconds",
        )

        self.active_requests = Gauge(
            "oet_gateway_active_requests",
            "Number of incidents currently being processed",
        )

        self._start_time = time.time()

    @classmethod
    def get_instance(cls) -> MetricsRegistry:
        """Get the singleton metrics registry instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Drop the singleton so the next access starts from zero."""
        with cls._lock:
            cls._instance = None

    def get_uptime_seconds(self) -> float:
        return time.time() - self._start_time

    def get_all_metrics(self) -> dict[str, Any]:
        """Get all metrics as a dictionary.

        Returns:
            Dictionary of all metrics
        """
        return {
            "uptime_seconds": self.get_uptime_seconds(),
            "incidents": {
                "received": self.incidents_received.get(),
                "validation_failures": self.validation_failures.get(),
                "by_outcome": {
                    m.labels.get("code", ""): m.value for m in self.incidents_by_outcome.get_all()
                },
            },
            "chat": {
                "fetch_errors": self.chat_fetch_errors.total(),
                "attachments_found": self.attachments_found.get(),
            },
            "images": {
                "materialized": self.images_materialized.get(),
                "failed": self.images_failed.get(),
            },
            "processing": {
                "active_requests": self.active_requests.get(),
                "incident_duration": self.incident_duration.get_stats(),
                "soap_request_duration": self.soap_request_duration.get_stats(),
            },
        }

    def _counters(self) -> list[Counter]:
        return [
            self.incidents_received,
            self.incidents_by_outcome,
            self.validation_failures,
            self.chat_fetch_errors,
            self.attachments_found,
            self.images_materialized,
            self.images_failed,
        ]

    def to_prometheus_format(self) -> str:
        """Export metrics in Prometheus text format.

        Returns:
            Prometheus-compatible metrics string
        """
        lines: list[str] = []

        for metric in [*self._counters(), self.active_requests]:
            if metric.help_text:
                lines.append(f"# HELP {metric.name} {metric.help_text}")
            lines.append(f"# TYPE {metric.name} {metric.metric_type}")
            for value in metric.get_all():
                lines.append(f"{metric.name}{_format_labels(value.labels)} {value.value}")

        for histogram in [self.soap_request_duration, self.incident_duration]:
            if histogram.help_text:
                lines.append(f"# HELP {histogram.name} {histogram.help_text}")
            lines.append(f"# TYPE {histogram.name} histogram")
            for bucket, count in histogram.get_buckets().items():
                le = "+Inf" if bucket == float("inf") else str(bucket)
                lines.append(f'{histogram.name}_bucket{{le="{le}"}} {count}')
            stats = histogram.get_stats()
            lines.append(f"{histogram.name}_sum {stats['sum']}")
            lines.append(f"{histogram.name}_count {stats['count']}")

        lines.append("# HELP oet_gateway_uptime_seconds Gateway uptime in seconds")
        lines.append("# TYPE oet_gateway_uptime_seconds gauge")
        lines.append(f"oet_gateway_uptime_seconds {self.get_uptime_seconds()}")

        return "\n".join(lines) + "\n"


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry."""
    return MetricsRegistry.get_instance()


class Timer:
    """Context manager for timing operations.

    Example:
        with Timer(metrics.soap_request_duration):
            response = await client.post(...)
    """

    def __init__(
        self,
        histogram: Histogram,
        labels: dict[str, str] | None = None,
    ) -> None:
        self._histogram = histogram
        self._labels = labels
        self._start: float | None = None
        self.elapsed: float = 0.0

    def __enter__(self) -> Timer:
        self._start = time.perf_counter()
        return self

    def __exit__(self, *args: Any) -> None:
        if self._start is not None:
            self.elapsed = time.perf_counter() - self._start
            self._histogram.observe(self.elapsed, labels=self._labels)
