"""Resilience module for circuit breakers and retry logic."""

from strata.resilience.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitBreakerError,
    CircuitState,
)
from strata.resilience.retry import RetryExhaustedError, RetryPolicy, retry_async

__all__ = [
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitBreakerError",
    "CircuitState",
    "RetryExhaustedError",
    "RetryPolicy",
    "retry_async",
]
