"""
Conversation ORM model.

A chat thread grouping user and assistant messages.

Dependencies: sqlalchemy, buddy.boundary.db.base
System role: Conversation persistence
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from buddy.boundary.db.base import Base, TimestampMixin, UUIDMixin


class ConversationModel(Base, UUIDMixin, TimestampMixin):
    """
    Conversation ORM model.

    updated_at is touched on every chat turn so lists can sort by activity.

    Attributes:
        id: UUID primary key (auto-generated)
        title: Display title; set from the first user message when empty
        created_at: Creation timestamp (UTC)
        updated_at: Last activity timestamp (UTC)

    Relationships:
        messages: MessageModel rows in this thread (cascade delete)
    """

    __tablename__ = "conversations"

    title: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        default=None,
    )

    # Relationships
    messages = relationship(
        "MessageModel",
        back_populates="conversation",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="MessageModel.created_at",
    )
