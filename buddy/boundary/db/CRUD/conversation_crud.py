"""
Conversation CRUD operations.

Dependencies: sqlalchemy, buddy.boundary.db.models
System role: Conversation persistence operations
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from buddy.boundary.db.base import utcnow
from buddy.boundary.db.CRUD.base_crud import BaseCRUD
from buddy.boundary.db.CRUD.message_crud import message_crud
from buddy.boundary.db.models.conversation_model import ConversationModel
from buddy.boundary.db.models.message_model import MessageModel


class ConversationCRUD(BaseCRUD[ConversationModel]):
    """CRUD operations for ConversationModel."""

    def __init__(self) -> None:
        """Initialize ConversationCRUD with ConversationModel."""
        super().__init__(ConversationModel)

    async def list_recent(
        self,
        session: AsyncSession,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[ConversationModel]:
        """
        List conversations by most recent activity.

        Args:
            session: Async database session
            limit: Maximum number of conversations to return
            offset: Number of conversations to skip

        Returns:
            Sequence of ConversationModels
        """
        return await self.get_all(
            session,
            limit=limit,
            offset=offset,
            order_by=ConversationModel.updated_at.desc(),
        )

    async def get_with_messages(
        self,
        session: AsyncSession,
        id: UUID,
    ) -> ConversationModel | None:
        """
        Retrieve a conversation with its messages eagerly loaded.

        Args:
            session: Async database session
            id: Conversation UUID

        Returns:
            ConversationModel with messages loaded, None if not found
        """
        stmt = (
            select(ConversationModel)
            .where(ConversationModel.id == id)
            .options(selectinload(ConversationModel.messages))
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def touch(self, session: AsyncSession, id: UUID) -> None:
        """Bump updated_at to now."""
        await session.execute(
            update(ConversationModel)
            .where(ConversationModel.id == id)
            .values(updated_at=utcnow())
        )

    async def delete_with_messages(self, session: AsyncSession, id: UUID) -> bool:
        """
        Delete a conversation and its messages.

        Args:
            session: Async database session
            id: Conversation UUID

        Returns:
            True if the conversation existed
        """
        await message_crud.delete_where(session, MessageModel.conversation_id == id)
        return await self.delete_by_id(session, id)


conversation_crud = ConversationCRUD()
