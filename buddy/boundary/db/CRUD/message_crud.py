"""
Message CRUD operations.

Provides chat history queries: full conversation transcript and the most
recent turns used as prompt history.

Dependencies: sqlalchemy, buddy.boundary.db.models
System role: Chat history persistence operations
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from buddy.boundary.db.CRUD.base_crud import BaseCRUD
from buddy.boundary.db.models.message_model import MessageModel, MessageRole


class MessageCRUD(BaseCRUD[MessageModel]):
    """CRUD operations for MessageModel."""

    def __init__(self) -> None:
        """Initialize MessageCRUD with MessageModel."""
        super().__init__(MessageModel)

    async def add_message(
        self,
        session: AsyncSession,
        conversation_id: UUID,
        role: MessageRole,
        content: str,
    ) -> MessageModel:
        """Append a message to a conversation."""
        return await self.create(
            session,
            conversation_id=conversation_id,
            role=role,
            content=content,
        )

    async def get_by_conversation_id(
        self,
        session: AsyncSession,
        conversation_id: UUID,
    ) -> Sequence[MessageModel]:
        """
        Retrieve a conversation's messages oldest first.

        Args:
            session: Async database session
            conversation_id: Parent conversation UUID

        Returns:
            Sequence of MessageModels in chronological order
        """
        stmt = (
            select(MessageModel)
            .where(MessageModel.conversation_id == conversation_id)
            .order_by(MessageModel.created_at.asc())
        )
        result = await session.execute(stmt)
        return result.scalars().all()

    async def get_recent(
        self,
        session: AsyncSession,
        conversation_id: UUID,
        limit: int,
        exclude_id: UUID | None = None,
    ) -> list[MessageModel]:
        """
        Retrieve the last `limit` messages in chronological order.

        Args:
            session: Async database session
            conversation_id: Parent conversation UUID
            limit: Number of most recent messages
            exclude_id: Message to leave out (the turn being answered)

        Returns:
            list[MessageModel]: Oldest first
        """
        stmt = select(MessageModel).where(MessageModel.conversation_id == conversation_id)
        if exclude_id is not None:
            stmt = stmt.where(MessageModel.id != exclude_id)
        stmt = stmt.order_by(MessageModel.created_at.desc()).limit(limit)

        result = await session.execute(stmt)
        return list(reversed(result.scalars().all()))


message_crud = MessageCRUD()
