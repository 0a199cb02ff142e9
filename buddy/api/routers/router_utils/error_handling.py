"""
API error handling utilities.

Provides a decorator for consistent translation of domain and provider
exceptions into HTTPExceptions across API endpoints.
"""

import functools
import logging
from typing import Any, Callable, TypeVar

from fastapi import HTTPException, status

from buddy.core.exceptions import (
    BuddyException,
    CircuitOpenError,
    ProviderAuthError,
    ProviderConnectionError,
    ProviderError,
    ProviderModelNotFoundError,
    ProviderRateLimitError,
    ProviderTimeoutError,
    ResourceNotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

# Type for the decorated function
F = TypeVar("F", bound=Callable[..., Any])

TRANSIENT_PROVIDER_ERRORS = (
    ProviderRateLimitError,
    ProviderConnectionError,
    ProviderTimeoutError,
    CircuitOpenError,
)


def provider_error_detail(e: ProviderError) -> dict[str, Any]:
    """Client-facing error body for a provider failure."""
    detail: dict[str, Any] = {
        "error": e.user_message,
        "code": type(e).__name__,
        "retryable": isinstance(e, TRANSIENT_PROVIDER_ERRORS),
    }
    if isinstance(e, CircuitOpenError):
        detail["retry_in_seconds"] = e.retry_in_seconds
    return detail


def exception_to_http(e: Exception) -> HTTPException:
    """
    Map an exception to the HTTPException the API answers with.

    Mapping:
    - ResourceNotFoundError -> 404
    - ValidationError, ValueError -> 400
    - rate limit, connection, timeout, circuit open -> 503 (retryable)
    - auth, model not found, other provider errors -> 502 (or 400 for
      rejected requests)
    - anything else -> 500
    """
    if isinstance(e, ResourceNotFoundError):
        logger.warning("Resource not found", extra={"resource": e.resource, "error": str(e)})
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)

    if isinstance(e, (ValidationError, ValueError)):
        message = e.message if isinstance(e, BuddyException) else str(e)
        logger.warning("Invalid request", extra={"error": str(e)})
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)

    if isinstance(e, TRANSIENT_PROVIDER_ERRORS):
        logger.warning(
            "LLM provider temporarily unavailable",
            extra={"error_type": type(e).__name__, "error": str(e)},
        )
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=provider_error_detail(e),
        )

    if isinstance(e, (ProviderAuthError, ProviderModelNotFoundError)):
        logger.error(
            "LLM provider misconfigured",
            extra={"error_type": type(e).__name__, "error": str(e)},
        )
        return HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={**provider_error_detail(e), "error": e.message},
        )

    if isinstance(e, ProviderError):
        logger.error(
            "LLM provider error",
            extra={"error_type": type(e).__name__, "error": str(e)},
        )
        return HTTPException(status_code=e.http_status, detail=provider_error_detail(e))

    logger.exception("Unexpected failure in API operation", extra={"error": str(e)})
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="An internal error occurred",
    )


def handle_api_errors(func: F) -> F:
    """
    Decorator to handle service errors and transform them into HTTPExceptions.

    This centralizes:
    - Logging of errors with context
    - Mapping specific exceptions to HTTP status codes
    - Ensuring uniform error response formats
    """

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return await func(*args, **kwargs)
        except HTTPException:
            raise
        except Exception as e:
            raise exception_to_http(e) from e

    return wrapper  # type: ignore
