"""
Database boundary layer: ORM models, CRUD operations, and connection management.

Exports:
  - Base, UUIDMixin, TimestampMixin: Model building blocks
  - get_async_engine(), get_async_session_factory(), get_async_db(): Async connection management
  - DocumentModel, ChunkModel, ConversationModel, MessageModel, SettingsModel: Entities
  - MessageRole: Enum of message authors
  - document_crud, chunk_crud, conversation_crud, message_crud, settings_crud: CRUD singletons

Dependencies: sqlalchemy, pgvector, buddy.configs
System role: Database adapter providing persistent storage for documents,
chunk embeddings, conversations and chat settings.
"""

from buddy.boundary.db.base import Base, TimestampMixin, UUIDMixin
from buddy.boundary.db.connection import (
    dispose_engine,
    get_async_db,
    get_async_engine,
    get_async_session_factory,
)
from buddy.boundary.db.models import (
    ChunkModel,
    ConversationModel,
    DocumentModel,
    MessageModel,
    MessageRole,
    SettingsModel,
)
from buddy.boundary.db.CRUD import (
    BaseCRUD,
    ChunkCRUD,
    ConversationCRUD,
    DocumentCRUD,
    MessageCRUD,
    SettingsCRUD,
    chunk_crud,
    conversation_crud,
    document_crud,
    message_crud,
    settings_crud,
)

__all__ = [
    # Base classes
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    # Connection
    "dispose_engine",
    "get_async_db",
    "get_async_engine",
    "get_async_session_factory",
    # Models
    "ChunkModel",
    "ConversationModel",
    "DocumentModel",
    "MessageModel",
    "MessageRole",
    "SettingsModel",
    # CRUD classes
    "BaseCRUD",
    "ChunkCRUD",
    "ConversationCRUD",
    "DocumentCRUD",
    "MessageCRUD",
    "SettingsCRUD",
    # CRUD singletons
    "chunk_crud",
    "conversation_crud",
    "document_crud",
    "message_crud",
    "settings_crud",
]
