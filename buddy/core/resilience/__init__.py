"""
Resilience primitives for outbound provider calls.

Exports:
  - CircuitBreaker, CircuitState: Fail-fast state machine per operation
  - RetryPolicy, with_retry(), make_retryable(): Exponential backoff retries
  - calculate_delay(), is_retryable_error(): Backoff math and default policy
"""

from buddy.core.resilience.circuit_breaker import CircuitBreaker, CircuitState
from buddy.core.resilience.retry import (
    RetryPolicy,
    calculate_delay,
    is_retryable_error,
    make_retryable,
    with_retry,
)

__all__ = [
    "CircuitBreaker",
    "CircuitState",
    "RetryPolicy",
    "calculate_delay",
    "is_retryable_error",
    "make_retryable",
    "with_retry",
]
