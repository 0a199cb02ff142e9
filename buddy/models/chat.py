"""
Chat domain models and schemas.

Request/response schemas for chat operations.

Dependencies: pydantic
System role: Chat API contracts
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from buddy.models.retrieval import ChunkSearchResult

MAX_MESSAGE_LENGTH = 10000


class ChatRequest(BaseModel):
    """Request schema for a chat turn."""

    conversation_id: UUID = Field(description="Conversation to post into")
    message: str = Field(
        min_length=1,
        max_length=MAX_MESSAGE_LENGTH,
        description="User question or message",
    )

    @field_validator("message")
    @classmethod
    def strip_message(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Message cannot be empty")
        return value


class MessageResponse(BaseModel):
    """Single stored chat message."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    conversation_id: UUID
    role: str = Field(description="Message role: 'user', 'assistant' or 'system'")
    content: str
    created_at: datetime

    @field_validator("role", mode="before")
    @classmethod
    def role_value(cls, value):
        return getattr(value, "value", value)


class ChatResponse(BaseModel):
    """Response schema for a blocking chat turn."""

    message: MessageResponse
    sources: list[ChunkSearchResult] = Field(default_factory=list)
