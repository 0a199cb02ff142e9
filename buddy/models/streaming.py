"""
Server-sent event schemas for streamed chat.

A streamed turn emits one `context` event with the sources, `token` events
as text arrives, and a final `complete` event carrying the stored message id.
Failures after the stream has started are reported as an `error` event.

Dependencies: pydantic
System role: Streaming protocol schemas
"""

import json
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from buddy.models.retrieval import ChunkSearchResult


class StreamEventType(str, Enum):
    """Event names written on the SSE `event:` line."""

    CONTEXT = "context"
    TOKEN = "token"
    COMPLETE = "complete"
    ERROR = "error"


class StreamEvent(BaseModel):
    """One SSE frame: event type plus JSON payload."""

    event: StreamEventType
    data: dict[str, Any]

    @classmethod
    def context(cls, sources: list[ChunkSearchResult]) -> "StreamEvent":
        return cls(
            event=StreamEventType.CONTEXT,
            data={"sources": [source.model_dump() for source in sources]},
        )

    @classmethod
    def token(cls, content: str, done: bool) -> "StreamEvent":
        return cls(event=StreamEventType.TOKEN, data={"content": content, "done": done})

    @classmethod
    def complete(cls, message_id: UUID) -> "StreamEvent":
        return cls(
            event=StreamEventType.COMPLETE,
            data={"messageId": str(message_id), "done": True},
        )

    @classmethod
    def error(cls, message: str, code: str) -> "StreamEvent":
        return cls(event=StreamEventType.ERROR, data={"error": message, "code": code})

    def to_sse(self) -> str:
        return f"event: {self.event.value}\ndata: {json.dumps(self.data, default=str)}\n\n"
