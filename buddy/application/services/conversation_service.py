"""
Conversation service.

Create, list, inspect, rename and delete conversations.

Dependencies: buddy.boundary.db
System role: Conversation management orchestration
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from buddy.boundary.db.CRUD.conversation_crud import conversation_crud
from buddy.boundary.db.models.conversation_model import ConversationModel
from buddy.core.exceptions import ResourceNotFoundError
from buddy.models.conversation import (
    ConversationDetailResponse,
    ConversationListResponse,
    ConversationResponse,
)

logger = logging.getLogger(__name__)


class ConversationService:
    """Conversation lifecycle operations."""

    def __init__(self, db: AsyncSession) -> None:
        """
        Initialize conversation service.

        Args:
            db: AsyncSession for database operations
        """
        self.db = db

    async def _get_or_raise(self, conversation_id: UUID) -> ConversationModel:
        conversation = await conversation_crud.get_by_id(self.db, conversation_id)
        if conversation is None:
            raise ResourceNotFoundError("Conversation", conversation_id)
        return conversation

    async def create_conversation(self, title: str | None = None) -> ConversationResponse:
        """
        Create an empty conversation.

        The title stays empty until set explicitly or by the first message.
        """
        conversation = await conversation_crud.create(self.db, title=title)
        await self.db.commit()
        logger.info(
            f"{__name__}:create_conversation - Created conversation",
            extra={"conversation_id": str(conversation.id)},
        )
        return ConversationResponse.model_validate(conversation)

    async def list_conversations(
        self,
        limit: int | None = 50,
        offset: int = 0,
    ) -> ConversationListResponse:
        """List conversations by most recent activity."""
        conversations = await conversation_crud.list_recent(self.db, limit=limit, offset=offset)
        total = await conversation_crud.count(self.db)
        return ConversationListResponse(
            conversations=[ConversationResponse.model_validate(c) for c in conversations],
            total=total,
        )

    async def get_conversation(self, conversation_id: UUID) -> ConversationDetailResponse:
        """
        Get a conversation with its messages oldest first.

        Raises:
            ResourceNotFoundError: If the conversation does not exist
        """
        conversation = await conversation_crud.get_with_messages(self.db, conversation_id)
        if conversation is None:
            raise ResourceNotFoundError("Conversation", conversation_id)
        return ConversationDetailResponse.model_validate(conversation)

    async def rename_conversation(self, conversation_id: UUID, title: str) -> ConversationResponse:
        """
        Set a conversation's title.

        Raises:
            ResourceNotFoundError: If the conversation does not exist
        """
        conversation = await self._get_or_raise(conversation_id)
        conversation.title = title
        await self.db.flush()
        await self.db.commit()
        await self.db.refresh(conversation)
        return ConversationResponse.model_validate(conversation)

    async def delete_conversation(self, conversation_id: UUID) -> None:
        """
        Delete a conversation and its messages.

        Raises:
            ResourceNotFoundError: If the conversation does not exist
        """
        deleted = await conversation_crud.delete_with_messages(self.db, conversation_id)
        if not deleted:
            await self.db.rollback()
            raise ResourceNotFoundError("Conversation", conversation_id)
        await self.db.commit()
