"""Service orchestrators."""

from .analytics_service import AnalyticsService
from .chat_service import ChatService
from .conversation_service import ConversationService
from .document_service import DocumentService
from .health_service import HealthService
from .retrieval_service import RetrievalService
from .settings_service import SettingsService

__all__ = [
    "AnalyticsService",
    "ChatService",
    "ConversationService",
    "DocumentService",
    "HealthService",
    "RetrievalService",
    "SettingsService",
]
