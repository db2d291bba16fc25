"""Prometheus metrics for Strata.

All metrics live on a dedicated singleton ``CollectorRegistry`` so tests and
embedding applications never collide with the default global registry.

Example usage:

    ```python
    from prometheus_client import generate_latest

    from strata.observability.metrics import get_metrics_registry, record_route_decision

    record_route_decision("fast")

    print(generate_latest(get_metrics_registry()).decode())
    ```

Metrics exposed:
    - strata_tier_read_failures_total: Failed or timed-out tier reads by tier
    - strata_classifier_fallbacks_total: Classifier fallbacks by reason
    - strata_route_decisions_total: Routing decisions by model tier
    - strata_archival_writes_total: Background writes by tier and status
    - strata_archival_writes_dropped_total: Writes dropped after retries by tier
    - strata_cache_operations_total: World-cache lookups by result
    - strata_summarizations_total: Hot-buffer summarization cycles by status
    - strata_turn_duration_seconds: End-to-end turn latency by model tier
"""

from __future__ import annotations

import logging
from threading import Lock
from typing import Literal

from prometheus_client import CollectorRegistry, Counter, Histogram

logger = logging.getLogger(__name__)

# Singleton registry for all Strata metrics
_registry: CollectorRegistry | None = None
_registry_lock = Lock()


def get_metrics_registry() -> CollectorRegistry:
    """Get or create the singleton Prometheus metrics registry."""
    global _registry

    if _registry is None:
        with _registry_lock:
            if _registry is None:
                _registry = CollectorRegistry()
                logger.info("Created Prometheus metrics registry")

    return _registry


# ============================================================================
# Memory tiers
# ============================================================================

tier_read_failures_total: Counter = Counter(
    name="strata_tier_read_failures_total",
    documentation="Tier reads that failed or timed out and degraded to empty",
    labelnames=["tier"],
    registry=get_metrics_registry(),
)

archival_writes_total: Counter = Counter(
    name="strata_archival_writes_total",
    documentation="Background archival writes by tier and final status",
    labelnames=["tier", "status"],
    registry=get_metrics_registry(),
)

archival_writes_dropped_total: Counter = Counter(
    name="strata_archival_writes_dropped_total",
    documentation="Archival writes dropped after exhausting retries",
    labelnames=["tier"],
    registry=get_metrics_registry(),
)

summarizations_total: Counter = Counter(
    name="strata_summarizations_total",
    documentation="Hot buffer summarization cycles by status",
    labelnames=["status"],
    registry=get_metrics_registry(),
)


def record_tier_read_failure(tier: str) -> None:
    tier_read_failures_total.labels(tier=tier).inc()


def record_archival_write(tier: str, status: Literal["success", "error"]) -> None:
    archival_writes_total.labels(tier=tier, status=status).inc()


def record_archival_drop(tier: str) -> None:
    archival_writes_dropped_total.labels(tier=tier).inc()


def record_summarization(status: Literal["success", "error"]) -> None:
    summarizations_total.labels(status=status).inc()


# ============================================================================
# Classification and routing
# ============================================================================

classifier_fallbacks_total: Counter = Counter(
    name="strata_classifier_fallbacks_total",
    documentation="Classifier calls that fell back to the default analysis",
    labelnames=["reason"],
    registry=get_metrics_registry(),
)

route_decisions_total: Counter = Counter(
    name="strata_route_decisions_total",
    documentation="Routing decisions by model tier",
    labelnames=["tier"],
    registry=get_metrics_registry(),
)

turn_duration_seconds: Histogram = Histogram(
    name="strata_turn_duration_seconds",
    documentation="End-to-end chat turn latency in seconds",
    labelnames=["tier"],
    buckets=(0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0),
    registry=get_metrics_registry(),
)


def record_classifier_fallback(reason: Literal["backend_error", "invalid_output"]) -> None:
    classifier_fallbacks_total.labels(reason=reason).inc()


def record_route_decision(tier: str) -> None:
    route_decisions_total.labels(tier=tier).inc()


def record_turn_latency(tier: str, seconds: float) -> None:
    turn_duration_seconds.labels(tier=tier).observe(seconds)


# ============================================================================
# World cache
# ============================================================================

cache_operations_total: Counter = Counter(
    name="strata_cache_operations_total",
    documentation="World cache lookups by result",
    labelnames=["result"],
    registry=get_metrics_registry(),
)


def record_cache_lookup(result: Literal["hit", "miss", "expired"]) -> None:
    cache_operations_total.labels(result=result).inc()


def get_sample_value(name: str, labels: dict[str, str] | None = None) -> float:
    """Read a metric sample from the Strata registry (0.0 when absent)."""
    value = get_metrics_registry().get_sample_value(name, labels or {})
    return value or 0.0
