"""Observability module for Prometheus metrics and OpenTelemetry tracing."""

from strata.observability.metrics import get_metrics_registry, get_sample_value
from strata.observability.tracing import (
    add_span_attributes,
    get_tracer,
    setup_telemetry,
    shutdown_telemetry,
    trace_operation,
)

__all__ = [
    "add_span_attributes",
    "get_metrics_registry",
    "get_sample_value",
    "get_tracer",
    "setup_telemetry",
    "shutdown_telemetry",
    "trace_operation",
]
