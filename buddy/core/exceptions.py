"""
Exception hierarchy for the knowledge-base assistant.

Provides layered exception structure for domain-specific errors and a shared
taxonomy for LLM provider failures. Provider implementations normalize their
transport/SDK errors into these kinds, keeping the original as __cause__.

Dependencies: None (pure domain layer)
System role: Centralized exception handling across the application
"""

from typing import Any


class BuddyException(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        """
        Initialize base exception with message and optional context.

        Args:
            message: Human-readable error message
            details: Optional dictionary of additional context for debugging
        """
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        """Return string representation including details."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(BuddyException):
    """Raised when input validation fails."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
            details: Additional context
        """
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class ResourceNotFoundError(BuddyException):
    """Raised when a conversation, document or other resource does not exist."""

    def __init__(
        self,
        resource: str,
        resource_id: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize not found error.

        Args:
            resource: Resource kind (e.g. "Conversation")
            resource_id: Identifier that was looked up
            details: Additional context
        """
        details = details or {}
        if resource_id is not None:
            details["id"] = str(resource_id)
        self.resource = resource
        super().__init__(f"{resource} not found", details)


class IngestionError(BuddyException):
    """Raised when a document cannot be chunked, embedded or stored."""

    def __init__(
        self,
        message: str,
        document_id: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if document_id:
            details["document_id"] = document_id
        super().__init__(message, details)


class RetrievalError(BuddyException):
    """Raised when similarity search against the chunk store fails."""

    pass


class ProviderError(BuddyException):
    """
    Base class for LLM provider failures.

    Attributes:
        provider: Provider name ("openai", "ollama") or None when unknown
        status_code: Upstream HTTP status if one was received
        retryable: Whether the retry layer should attempt the call again
        user_message: Message safe to show to end users
        http_status: Status code the API layer should answer with
    """

    retryable: bool = True
    user_message: str = "The assistant is temporarily unavailable. Please try again shortly."
    http_status: int = 502

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if provider:
            details["provider"] = provider
        if status_code is not None:
            details["status_code"] = status_code
        self.provider = provider
        self.status_code = status_code
        super().__init__(message, details)


class ProviderConnectionError(ProviderError):
    """Provider transport is unreachable (refused, reset, DNS failure)."""

    retryable = True
    http_status = 503


class ProviderTimeoutError(ProviderError):
    """Provider did not answer within the per-attempt timeout."""

    retryable = True
    http_status = 503


class ProviderRateLimitError(ProviderError):
    """Provider rejected the call with a rate limit (429)."""

    retryable = True
    http_status = 503
    user_message = "The assistant is receiving too many requests. Please try again shortly."


class ProviderAuthError(ProviderError):
    """Provider rejected the credentials; retrying cannot help."""

    retryable = False
    user_message = "LLM provider credentials are invalid. Contact an administrator."


class ProviderInvalidRequestError(ProviderError):
    """Provider rejected the request as malformed (4xx other than 429)."""

    retryable = False
    http_status = 400
    user_message = "The request could not be processed by the LLM provider."


class ProviderModelNotFoundError(ProviderError):
    """Configured model is not available on the provider."""

    retryable = False
    user_message = "The configured model is not available. Contact an administrator."


class CircuitOpenError(ProviderError):
    """Raised by a circuit breaker without attempting the call."""

    retryable = False
    http_status = 503

    def __init__(
        self,
        message: str,
        retry_in_seconds: float | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        details = details or {}
        if retry_in_seconds is not None:
            details["retry_in_seconds"] = round(retry_in_seconds, 1)
        self.retry_in_seconds = retry_in_seconds
        super().__init__(message, details=details)


class ProviderAPIError(ProviderError):
    """Catch-all provider failure; retryable for 5xx or unknown status."""

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, provider, status_code, details)
        self.retryable = status_code is None or status_code >= 500
