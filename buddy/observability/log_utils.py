"""
Structured logging helpers.

Turns arbitrary context values into short strings for log `extra` fields
(embedding vectors and long texts would otherwise flood the log) and logs
domain errors with their code and retryability.

Dependencies: logging (stdlib), buddy.core.exceptions
System role: Logging helper functions
"""

import logging
from typing import Any

from buddy.core.exceptions import BuddyException, ProviderError

MAX_LOG_VALUE_CHARS = 500


def safe_log_value(value: Any, max_length: int = MAX_LOG_VALUE_CHARS) -> str:
    """
    Render a value for a log field.

    Float sequences are shown as vectors by dimension, other collections by
    size, and long strings are cut at max_length.

    Args:
        value: Value to render
        max_length: Longest string kept before truncation

    Returns:
        str: Printable summary
    """
    if value is None:
        return "None"
    if isinstance(value, str):
        rendered = value
    elif isinstance(value, (list, tuple)):
        if value and all(isinstance(v, float) for v in value):
            return f"vector({len(value)} dims)"
        rendered = f"{type(value).__name__}({len(value)} items)"
    elif isinstance(value, dict):
        rendered = f"dict({len(value)} keys)"
    else:
        try:
            rendered = str(value)
        except Exception as e:
            return f"<unprintable {type(value).__name__}: {type(e).__name__}>"

    if len(rendered) > max_length:
        return rendered[:max_length] + f"... (truncated, {len(rendered)} total)"
    return rendered


def log_exception_with_context(
    logger: logging.Logger,
    message: str,
    exc: BaseException,
    **context: Any,
) -> None:
    """
    Log an error with its type, message and context fields.

    Domain errors also record their code; provider errors record whether a
    retry could succeed. Unexpected errors carry the traceback.

    Args:
        logger: Logger to write to
        message: Log message
        exc: Exception being reported
        **context: Extra fields, rendered with safe_log_value
    """
    fields = {key: safe_log_value(val) for key, val in context.items()}
    fields["error_type"] = type(exc).__name__
    fields["error_msg"] = safe_log_value(str(exc))

    if isinstance(exc, BuddyException):
        fields["error_code"] = type(exc).__name__
    if isinstance(exc, ProviderError):
        fields["provider"] = exc.provider
        fields["retryable"] = exc.retryable

    exc_info = None if isinstance(exc, BuddyException) else exc
    logger.error(message, exc_info=exc_info, extra=fields)
