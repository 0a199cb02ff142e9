"""
Message ORM model.

One user, assistant or system turn within a conversation.

Dependencies: sqlalchemy, buddy.boundary.db.base
System role: Chat history persistence
"""

import enum
from uuid import UUID

from sqlalchemy import Enum, ForeignKey, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from buddy.boundary.db.base import Base, TimestampMixin, UUIDMixin


class MessageRole(str, enum.Enum):
    """Author of a message."""

    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class MessageModel(Base, UUIDMixin, TimestampMixin):
    """
    Message ORM model.

    Attributes:
        id: UUID primary key (auto-generated)
        conversation_id: Parent conversation (cascade delete)
        role: MessageRole
        content: Message text
        created_at: Message timestamp (UTC), defines history order

    Relationships:
        conversation: Parent ConversationModel (back_populates=messages)
    """

    __tablename__ = "messages"

    conversation_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    role: Mapped[MessageRole] = mapped_column(
        Enum(MessageRole, native_enum=False),
        nullable=False,
    )

    content: Mapped[str] = mapped_column(Text, nullable=False)

    # Relationships
    conversation = relationship("ConversationModel", back_populates="messages")
