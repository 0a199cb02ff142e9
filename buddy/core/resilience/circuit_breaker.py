"""
Circuit breaker for outbound provider calls.

Fails fast while a dependency is unhealthy instead of compounding the outage
with more traffic. One breaker guards one (provider, operation) pair.

States:
    CLOSED: calls pass through, consecutive failures are counted
    OPEN: calls are rejected with CircuitOpenError until the timeout elapses
    HALF_OPEN: a single trial call at a time; success_threshold consecutive
        successes close the circuit, any failure reopens it

The OPEN -> HALF_OPEN transition is evaluated lazily on the next call.

Dependencies: buddy.core.exceptions
System role: Failure isolation for LLM provider operations
"""

import asyncio
import logging
import threading
import time
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, TypeVar

from buddy.core.exceptions import CircuitOpenError

logger = logging.getLogger(__name__)

T = TypeVar("T")

StateChangeCallback = Callable[["CircuitState", "CircuitState"], None]


class CircuitState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


class CircuitBreaker:
    """
    Circuit breaker state machine wrapping async callables.

    Counter updates and transitions happen under a lock and never across an
    await, so concurrent callers cannot lose updates. While HALF_OPEN only one
    trial call is admitted; concurrent callers are rejected until it settles.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        success_threshold: int = 2,
        timeout_ms: int = 60000,
        on_state_change: StateChangeCallback | None = None,
        name: str = "circuit",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Initialize breaker in CLOSED state.

        Args:
            failure_threshold: Consecutive failures that open the circuit
            success_threshold: Consecutive half-open successes that close it
            timeout_ms: Time the circuit stays open before a trial call
            on_state_change: Observer invoked with (from_state, to_state);
                runs under the breaker lock and must not call back into it
            name: Label used in logs and error messages
            clock: Monotonic time source in seconds (injectable for tests)
        """
        self.failure_threshold = failure_threshold
        self.success_threshold = success_threshold
        self.timeout_ms = timeout_ms
        self.name = name
        self._on_state_change = on_state_change
        self._clock = clock
        self._lock = threading.Lock()

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._success_count = 0
        self._next_attempt_time = clock()
        self._trial_in_flight = False

    def get_state(self) -> CircuitState:
        """Return the current state without evaluating the open timeout."""
        return self._state

    def get_stats(self) -> dict[str, Any]:
        """
        Snapshot breaker counters for health checks.

        Returns:
            dict: state, failure/success counts and seconds until next attempt
        """
        with self._lock:
            retry_in = max(0.0, self._next_attempt_time - self._clock())
            return {
                "name": self.name,
                "state": self._state.value,
                "failure_count": self._failure_count,
                "success_count": self._success_count,
                "retry_in_seconds": round(retry_in, 3) if self._state == CircuitState.OPEN else 0.0,
            }

    def _set_state(self, new_state: CircuitState) -> None:
        # Caller holds the lock.
        if self._state == new_state:
            return
        old_state = self._state
        self._state = new_state
        logger.info(
            f"Circuit breaker '{self.name}' state changed: {old_state.value} -> {new_state.value}",
            extra={
                "breaker": self.name,
                "from_state": old_state.value,
                "to_state": new_state.value,
                "failure_count": self._failure_count,
            },
        )
        if self._on_state_change is not None:
            self._on_state_change(old_state, new_state)

    def _acquire_attempt(self) -> bool:
        with self._lock:
            if self._state == CircuitState.CLOSED:
                return True

            if self._state == CircuitState.OPEN:
                if self._clock() < self._next_attempt_time:
                    return False
                self._set_state(CircuitState.HALF_OPEN)

            # HALF_OPEN: admit one trial at a time
            if self._trial_in_flight:
                return False
            self._trial_in_flight = True
            return True

    def _record_success(self) -> None:
        with self._lock:
            self._failure_count = 0
            if self._state == CircuitState.HALF_OPEN:
                self._trial_in_flight = False
                self._success_count += 1
                if self._success_count >= self.success_threshold:
                    self._success_count = 0
                    self._set_state(CircuitState.CLOSED)

    def _release_trial(self) -> None:
        with self._lock:
            self._trial_in_flight = False

    def _record_failure(self) -> None:
        with self._lock:
            self._failure_count += 1
            self._success_count = 0
            self._trial_in_flight = False

            if (
                self._state == CircuitState.HALF_OPEN
                or self._failure_count >= self.failure_threshold
            ):
                self._next_attempt_time = self._clock() + self.timeout_ms / 1000
                self._set_state(CircuitState.OPEN)

    async def execute(self, fn: Callable[[], Awaitable[T]]) -> T:
        """
        Run fn under breaker protection.

        Args:
            fn: Zero-argument coroutine function performing one logical call

        Returns:
            Whatever fn returns

        Raises:
            CircuitOpenError: If the circuit rejects the call (fn is not invoked)
            Exception: Any error raised by fn, unchanged, after being counted
        """
        if not self._acquire_attempt():
            retry_in = max(0.0, self._next_attempt_time - self._clock())
            raise CircuitOpenError(
                f"Circuit breaker '{self.name}' is OPEN. Service unavailable, "
                f"retry in {retry_in:.1f}s",
                retry_in_seconds=retry_in,
            )

        try:
            result = await fn()
        except asyncio.CancelledError:
            # The caller went away; not evidence about the dependency.
            self._release_trial()
            raise
        except Exception:
            self._record_failure()
            raise

        self._record_success()
        return result

    def reset(self) -> None:
        """Force the breaker back to CLOSED and clear counters."""
        with self._lock:
            self._failure_count = 0
            self._success_count = 0
            self._trial_in_flight = False
            self._next_attempt_time = self._clock()
            self._set_state(CircuitState.CLOSED)
        logger.info(f"Circuit breaker '{self.name}' manually reset to CLOSED")
