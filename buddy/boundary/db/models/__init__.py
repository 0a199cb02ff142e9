"""ORM models."""

from buddy.boundary.db.models.chunk_model import ChunkModel
from buddy.boundary.db.models.conversation_model import ConversationModel
from buddy.boundary.db.models.document_model import DocumentModel
from buddy.boundary.db.models.message_model import MessageModel, MessageRole
from buddy.boundary.db.models.settings_model import SettingsModel

__all__ = [
    "ChunkModel",
    "ConversationModel",
    "DocumentModel",
    "MessageModel",
    "MessageRole",
    "SettingsModel",
]
