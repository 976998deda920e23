"""Prometheus metrics for smite connections."""

from __future__ import annotations

import threading

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    Info,
    start_http_server,
)


class MetricsRegistry:
    """Registry of all smite metrics."""

    def __init__(self, registry: CollectorRegistry | None = None) -> None:
        """Initialize metrics registry."""
        self._registry = registry or REGISTRY

        self.connections_open = Gauge(
            "smite_connections_open",
            "Number of open connections",
            registry=self._registry,
        )

        self.statements_total = Counter(
            "smite_statements_total",
            "Total number of statements executed",
            ["status"],  # ok, or the failing error class
            registry=self._registry,
        )

        self.statement_latency_seconds = Histogram(
            "smite_statement_latency_seconds",
            "Statement latency in seconds, including time queued behind other work",
            buckets=(0.0001, 0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0),
            registry=self._registry,
        )

        self.rows_returned_total = Counter(
            "smite_rows_returned_total",
            "Total number of result rows returned to callers",
            registry=self._registry,
        )

        self.info = Info(
            "smite_engine",
            "Embedded engine information",
            registry=self._registry,
        )


# Global metrics registry
_metrics: MetricsRegistry | None = None
_metrics_lock = threading.Lock()


def setup_metrics(port: int = 8001, registry: CollectorRegistry | None = None) -> MetricsRegistry:
    """
    Set up the Prometheus metrics server.

    Args:
        port: Port for the metrics HTTP server
        registry: Optional custom registry

    Returns:
        The metrics registry
    """
    global _metrics
    # the default registry accepts each metric name only once
    with _metrics_lock:
        if _metrics is None or registry is not None:
            _metrics = MetricsRegistry(registry)
        metrics = _metrics

    start_http_server(port, registry=registry or REGISTRY)

    return metrics


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry."""
    global _metrics
    if _metrics is None:
        with _metrics_lock:
            if _metrics is None:
                _metrics = MetricsRegistry()
    return _metrics
