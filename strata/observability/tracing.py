"""OpenTelemetry tracing setup for Strata.

Spans are created around each chat turn and each tier read. Until
``setup_telemetry`` installs an SDK tracer provider, the OpenTelemetry API
hands out non-recording spans, so instrumented code runs unchanged.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter
from opentelemetry.sdk.trace.sampling import TraceIdRatioBased

logger = logging.getLogger(__name__)

_provider: TracerProvider | None = None


def setup_telemetry(
    service_name: str = "strata",
    environment: str = "development",
    otlp_endpoint: str | None = None,
    enable_console_export: bool = False,
    sample_rate: float = 1.0,
) -> trace.Tracer:
    """Install an SDK tracer provider.

    Args:
        service_name: Name of the service
        environment: Environment (development, production)
        otlp_endpoint: OTLP collector endpoint (e.g., http://localhost:4317)
        enable_console_export: Export spans to console for debugging
        sample_rate: Sampling rate (0.0 to 1.0, 1.0 = all traces)

    Returns:
        Tracer for Strata spans
    """
    global _provider

    resource = Resource.create({
        "service.name": service_name,
        "service.namespace": "strata",
        "deployment.environment": environment,
    })
    provider = TracerProvider(resource=resource, sampler=TraceIdRatioBased(sample_rate))

    if otlp_endpoint:
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter

        provider.add_span_processor(
            BatchSpanProcessor(OTLPSpanExporter(endpoint=otlp_endpoint, insecure=True))
        )
        logger.info(f"OTLP tracing enabled: {otlp_endpoint}")

    if enable_console_export:
        provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter()))
        logger.info("Console span export enabled")

    trace.set_tracer_provider(provider)
    _provider = provider

    logger.info(f"Telemetry initialized: {service_name} ({environment}, sampling {sample_rate:.0%})")
    return get_tracer()


def get_tracer() -> trace.Tracer:
    """Tracer for Strata spans (non-recording until telemetry is set up)."""
    return trace.get_tracer("strata")


@contextmanager
def trace_operation(
    operation_name: str,
    attributes: dict[str, str | int | float | bool] | None = None,
) -> Iterator[trace.Span]:
    """Context manager for tracing an operation.

    Example:
        with trace_operation("tier.read", {"tier": "warm"}):
            results = await warm.search(query)
    """
    with get_tracer().start_as_current_span(
        operation_name,
        attributes=attributes or {},
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        try:
            yield span
        except Exception as e:
            span.record_exception(e)
            span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
            raise


def add_span_attributes(attributes: dict[str, str | int | float | bool]) -> None:
    """Add attributes to the current span."""
    current_span = trace.get_current_span()
    if current_span.is_recording():
        current_span.set_attributes(attributes)


def shutdown_telemetry() -> None:
    """Flush and shut down the tracer provider installed by ``setup_telemetry``."""
    global _provider

    if _provider is not None:
        _provider.shutdown()
        _provider = None
        logger.info("Telemetry shut down")
