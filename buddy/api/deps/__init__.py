"""API-specific dependencies."""

# Re-export common dependencies
from .dependencies import (
    ServiceContainer,
    get_analytics_service,
    get_chat_service,
    get_container,
    get_conversation_service,
    get_document_service,
    get_health_service,
    get_retrieval_service,
    get_settings_dependency,
    get_settings_service,
    set_container,
)

__all__ = [
    "ServiceContainer",
    "get_analytics_service",
    "get_chat_service",
    "get_container",
    "get_conversation_service",
    "get_document_service",
    "get_health_service",
    "get_retrieval_service",
    "get_settings_dependency",
    "get_settings_service",
    "set_container",
]
