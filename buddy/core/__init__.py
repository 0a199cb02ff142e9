"""
Core business logic module.

Contains the exception hierarchy and the pure retrieval, provider and
resilience components. Nothing here touches the database session directly.
"""

from buddy.core.exceptions import (
    BuddyException,
    CircuitOpenError,
    IngestionError,
    ProviderAPIError,
    ProviderAuthError,
    ProviderConnectionError,
    ProviderError,
    ProviderInvalidRequestError,
    ProviderModelNotFoundError,
    ProviderRateLimitError,
    ProviderTimeoutError,
    ResourceNotFoundError,
    RetrievalError,
    ValidationError,
)

__all__ = [
    "BuddyException",
    "CircuitOpenError",
    "IngestionError",
    "ProviderAPIError",
    "ProviderAuthError",
    "ProviderConnectionError",
    "ProviderError",
    "ProviderInvalidRequestError",
    "ProviderModelNotFoundError",
    "ProviderRateLimitError",
    "ProviderTimeoutError",
    "ResourceNotFoundError",
    "RetrievalError",
    "ValidationError",
]
