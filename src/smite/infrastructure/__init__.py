"""Infrastructure layer - cross-cutting concerns."""

from smite.infrastructure.config import SmiteConfig, get_config
from smite.infrastructure.logging import get_logger, setup_logging, setup_logging_from_config
from smite.infrastructure.metrics import MetricsRegistry, get_metrics, setup_metrics
from smite.infrastructure.tracing import (
    get_tracer,
    setup_tracing,
    setup_tracing_from_config,
    trace_span,
)

__all__ = [
    "SmiteConfig",
    "get_config",
    "setup_logging",
    "setup_logging_from_config",
    "get_logger",
    "setup_metrics",
    "get_metrics",
    "MetricsRegistry",
    "setup_tracing",
    "setup_tracing_from_config",
    "get_tracer",
    "trace_span",
]
