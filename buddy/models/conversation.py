"""
Conversation schemas.

Dependencies: pydantic
System role: Conversation API contracts
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from buddy.models.chat import MessageResponse


class ConversationCreate(BaseModel):
    """Request schema for creating a conversation."""

    title: str | None = Field(default=None, max_length=200)

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: str | None) -> str | None:
        if value is None:
            return None
        return value.strip() or None


class ConversationUpdate(BaseModel):
    """Request schema for renaming a conversation."""

    title: str = Field(min_length=1, max_length=200)

    @field_validator("title")
    @classmethod
    def strip_title(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Title cannot be empty")
        return value


class ConversationResponse(BaseModel):
    """Conversation summary."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str | None
    created_at: datetime
    updated_at: datetime


class ConversationDetailResponse(ConversationResponse):
    """Conversation with its full transcript."""

    messages: list[MessageResponse] = Field(default_factory=list)


class ConversationListResponse(BaseModel):
    """Paginated conversation list."""

    conversations: list[ConversationResponse]
    total: int
