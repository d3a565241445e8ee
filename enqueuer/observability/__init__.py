"""
Observability module.
Contains logging, metrics, and tracing setup.
"""

from enqueuer.observability.logging import bind_context, setup_logging
from enqueuer.observability.metrics import (
    MetricsCollector,
    get_metrics,
    setup_metrics,
)
from enqueuer.observability.tracing import get_tracer, instrument_redis, setup_tracing

__all__ = [
    "setup_logging",
    "bind_context",
    "setup_metrics",
    "get_metrics",
    "MetricsCollector",
    "setup_tracing",
    "get_tracer",
    "instrument_redis",
]
