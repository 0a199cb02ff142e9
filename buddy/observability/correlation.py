"""
Correlation IDs for request tracing.

The ID lives in a ContextVar so it follows the request through awaits and
into tasks spawned while handling it (the streaming producer included).
Log records pick it up through CorrelationIdFilter.

Dependencies: contextvars
System role: Request tracing across service boundaries
"""

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

correlation_id_ctx: ContextVar[str] = ContextVar("correlation_id", default="")

MAX_CORRELATION_ID_CHARS = 128


def new_correlation_id() -> str:
    return uuid.uuid4().hex


def set_correlation_id(correlation_id: str | None = None) -> str:
    """
    Bind a correlation ID to the current context.

    Incoming IDs are trimmed and capped; a blank or missing one is replaced
    with a fresh ID.

    Args:
        correlation_id: ID received from the caller, if any

    Returns:
        str: The ID now bound
    """
    value = (correlation_id or "").strip()[:MAX_CORRELATION_ID_CHARS] or new_correlation_id()
    correlation_id_ctx.set(value)
    return value


def get_correlation_id() -> str:
    """Current correlation ID ('' outside a request)."""
    return correlation_id_ctx.get()


def clear_correlation_id() -> None:
    correlation_id_ctx.set("")


@contextmanager
def correlation_scope(correlation_id: str | None = None) -> Iterator[str]:
    """Bind an ID for the duration of the block, then restore the previous one."""
    token = correlation_id_ctx.set("")
    try:
        yield set_correlation_id(correlation_id)
    finally:
        correlation_id_ctx.reset(token)
