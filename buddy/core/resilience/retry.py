"""
Retry with exponential backoff for transient provider failures.

Built on tenacity's AsyncRetrying: bounded attempts, jittered exponential wait,
a pluggable retryability predicate and an on_retry observer. Each attempt is
raced against a per-attempt timeout; a timeout counts as a retryable failure.
When attempts are exhausted the last error is re-raised unchanged.

Dependencies: tenacity, buddy.core.exceptions
System role: Transient-failure absorption beneath the circuit breaker
"""

import asyncio
import functools
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from tenacity import AsyncRetrying, RetryCallState, stop_after_attempt
from tenacity.wait import wait_base

from buddy.core.exceptions import ProviderTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")

RetryPredicate = Callable[[BaseException, int], bool]
RetryCallback = Callable[[BaseException, int, float], None]

JITTER_RATIO = 0.25

_RETRYABLE_NETWORK_CODES = {"ETIMEDOUT", "ECONNRESET", "ECONNREFUSED", "ENOTFOUND"}


def calculate_delay(
    attempt: int,
    initial_delay_ms: float,
    max_delay_ms: float,
    multiplier: float,
    rng: Callable[[], float] = random.random,
) -> float:
    """
    Compute the wait before the next attempt.

    Delay is min(initial * multiplier^(attempt-1), max) jittered uniformly by
    +/-25%, floored at 0 and never above max_delay_ms.

    Args:
        attempt: 1-based number of the attempt that just failed
        initial_delay_ms: Delay after the first failure
        max_delay_ms: Upper bound for any delay
        multiplier: Exponential growth factor
        rng: Uniform [0, 1) source (injectable for tests)

    Returns:
        float: Delay in milliseconds
    """
    exponential = initial_delay_ms * multiplier ** (attempt - 1)
    capped = min(exponential, max_delay_ms)
    jitter = capped * JITTER_RATIO * (rng() * 2 - 1)
    return min(max_delay_ms, max(0.0, capped + jitter))


def _status_of(error: BaseException) -> int | None:
    for candidate in (error, getattr(error, "response", None)):
        if candidate is None:
            continue
        for attr in ("status_code", "status"):
            value = getattr(candidate, attr, None)
            if isinstance(value, int):
                return value
    return None


def is_retryable_error(error: BaseException | None, attempt: int = 1) -> bool:
    """
    Default retry policy.

    Retries rate limits (429), connection reset/refused/timeouts and 5xx
    responses. Other 4xx client errors are not retried. Errors that already
    carry a `retryable` flag (normalized provider errors) decide for
    themselves. Anything unrecognized defaults to retryable.

    Args:
        error: Exception raised by the attempt
        attempt: 1-based attempt number (unused by the default policy)

    Returns:
        bool: True if another attempt should be made
    """
    if error is None:
        return False

    retryable = getattr(error, "retryable", None)
    if isinstance(retryable, bool):
        return retryable

    if getattr(error, "code", None) == "rate_limit_exceeded":
        return True
    if isinstance(error, (ConnectionResetError, ConnectionRefusedError, TimeoutError)):
        return True
    if getattr(error, "code", None) in _RETRYABLE_NETWORK_CODES:
        return True

    status = _status_of(error)
    if status is not None:
        if status == 429 or 500 <= status < 600:
            return True
        if 400 <= status < 500:
            return False

    return True


@dataclass
class RetryPolicy:
    """
    Retry configuration for one logical operation.

    Attributes:
        max_attempts: Total tries including the first
        initial_delay_ms: Delay after the first failure
        max_delay_ms: Cap for any single delay
        backoff_multiplier: Exponential growth factor
        timeout_ms: Per-attempt timeout (None disables it)
        should_retry: Predicate (error, attempt) -> bool
        on_retry: Observer (error, attempt, delay_ms) fired before each wait
    """

    max_attempts: int = 3
    initial_delay_ms: float = 1000
    max_delay_ms: float = 10000
    backoff_multiplier: float = 2.0
    timeout_ms: float | None = 30000
    should_retry: RetryPredicate = is_retryable_error
    on_retry: RetryCallback | None = None


class wait_jittered_exponential(wait_base):
    """Tenacity wait strategy delegating to calculate_delay (returns seconds)."""

    def __init__(
        self,
        initial_delay_ms: float,
        max_delay_ms: float,
        multiplier: float,
        rng: Callable[[], float] = random.random,
    ) -> None:
        self.initial_delay_ms = initial_delay_ms
        self.max_delay_ms = max_delay_ms
        self.multiplier = multiplier
        self.rng = rng

    def __call__(self, retry_state: RetryCallState) -> float:
        delay_ms = calculate_delay(
            retry_state.attempt_number,
            self.initial_delay_ms,
            self.max_delay_ms,
            self.multiplier,
            self.rng,
        )
        return delay_ms / 1000


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    rng: Callable[[], float] = random.random,
) -> T:
    """
    Call fn until it succeeds, the policy declines a retry, or attempts run out.

    Args:
        fn: Zero-argument coroutine function performing one attempt
        policy: Retry configuration (defaults to RetryPolicy())
        sleep: Cooperative sleep used between attempts
        rng: Jitter source

    Returns:
        The first successful result of fn

    Raises:
        Exception: The last error raised by fn, unchanged
    """
    policy = policy or RetryPolicy()

    async def attempt() -> T:
        if policy.timeout_ms is None:
            return await fn()
        try:
            return await asyncio.wait_for(fn(), timeout=policy.timeout_ms / 1000)
        except asyncio.TimeoutError as exc:
            raise ProviderTimeoutError(
                f"Request timeout after {int(policy.timeout_ms)}ms"
            ) from exc

    def should_retry(retry_state: RetryCallState) -> bool:
        outcome = retry_state.outcome
        if outcome is None or not outcome.failed:
            return False
        return policy.should_retry(outcome.exception(), retry_state.attempt_number)

    def before_sleep(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception()
        delay_ms = retry_state.next_action.sleep * 1000
        if policy.on_retry is not None:
            policy.on_retry(error, retry_state.attempt_number, delay_ms)
        logger.debug(
            f"Retry attempt {retry_state.attempt_number}/{policy.max_attempts} failed, "
            f"retrying in {round(delay_ms)}ms",
            extra={
                "attempt": retry_state.attempt_number,
                "max_attempts": policy.max_attempts,
                "delay_ms": round(delay_ms),
                "error_msg": str(error),
            },
        )

    retrying = AsyncRetrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=wait_jittered_exponential(
            policy.initial_delay_ms,
            policy.max_delay_ms,
            policy.backoff_multiplier,
            rng,
        ),
        retry=should_retry,
        before_sleep=before_sleep,
        sleep=sleep,
        reraise=True,
    )
    return await retrying(attempt)


def make_retryable(
    fn: Callable[..., Awaitable[T]],
    policy: RetryPolicy | None = None,
) -> Callable[..., Awaitable[T]]:
    """
    Wrap an async function so every call goes through with_retry.

    Args:
        fn: Async function to wrap
        policy: Retry configuration shared by all calls

    Returns:
        Async function with the same signature
    """

    @functools.wraps(fn)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        return await with_retry(lambda: fn(*args, **kwargs), policy)

    return wrapper
