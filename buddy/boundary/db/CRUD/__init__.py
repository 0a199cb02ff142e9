"""
CRUD operations for database models.

Exports base CRUD class and model-specific CRUD implementations
with pre-instantiated singletons for direct use.

Usage:
    from buddy.boundary.db.CRUD import conversation_crud, message_crud

    conversation = await conversation_crud.get_by_id(db, conversation_id)
"""

from buddy.boundary.db.CRUD.base_crud import BaseCRUD
from buddy.boundary.db.CRUD.chunk_crud import ChunkCRUD, chunk_crud
from buddy.boundary.db.CRUD.conversation_crud import ConversationCRUD, conversation_crud
from buddy.boundary.db.CRUD.document_crud import DocumentCRUD, document_crud
from buddy.boundary.db.CRUD.message_crud import MessageCRUD, message_crud
from buddy.boundary.db.CRUD.settings_crud import SettingsCRUD, settings_crud

__all__ = [
    "BaseCRUD",
    "ChunkCRUD",
    "chunk_crud",
    "ConversationCRUD",
    "conversation_crud",
    "DocumentCRUD",
    "document_crud",
    "MessageCRUD",
    "message_crud",
    "SettingsCRUD",
    "settings_crud",
]
