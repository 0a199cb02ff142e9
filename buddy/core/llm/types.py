"""
LLM provider types.

Message, option and chunk schemas shared by every provider, plus the
abstract provider interface the rest of the application depends on.

Dependencies: pydantic
System role: Provider-agnostic contract for chat and embedding backends
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from buddy.core.resilience import CircuitBreaker

LLMMessageRole = Literal["system", "user", "assistant"]


class ProviderType(str, Enum):
    """Supported model backends."""

    OLLAMA = "ollama"
    OPENAI = "openai"


class LLMMessage(BaseModel):
    """Single chat message sent to a provider."""

    role: LLMMessageRole = Field(description="Author of the message")
    content: str = Field(description="Message text")


class ChatOptions(BaseModel):
    """Per-call generation options; unset fields fall back to provider config."""

    model: str | None = Field(default=None, description="Model name override")
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    max_tokens: int | None = Field(default=None, gt=0)


class StreamOptions(ChatOptions):
    """Chat options plus a cooperative cancellation signal."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    cancel_event: asyncio.Event | None = Field(
        default=None,
        description="Set to stop the stream between chunks",
    )


class StreamChunk(BaseModel):
    """Incremental piece of a streamed completion."""

    content: str = ""
    done: bool = False


class LLMProvider(ABC):
    """
    Interface implemented by every model backend.

    Implementations wrap their transport with a circuit breaker and retries
    and raise only ProviderError subclasses.
    """

    provider_type: ProviderType
    chat_breaker: CircuitBreaker
    embedding_breaker: CircuitBreaker

    @abstractmethod
    async def embed(self, texts: list[str]) -> list[list[float]]:
        """
        Embed a batch of texts.

        Args:
            texts: Texts to embed

        Returns:
            list[list[float]]: One vector per input, in input order
        """

    @abstractmethod
    async def chat(
        self,
        messages: list[LLMMessage],
        options: ChatOptions | None = None,
    ) -> str:
        """
        Generate a complete assistant reply.

        Args:
            messages: Conversation in prompt order
            options: Generation overrides

        Returns:
            str: Non-empty assistant text
        """

    @abstractmethod
    def chat_stream(
        self,
        messages: list[LLMMessage],
        options: StreamOptions | None = None,
    ) -> AsyncIterator[StreamChunk]:
        """
        Stream an assistant reply chunk by chunk.

        The iterator ends after a chunk with done=True or, without raising,
        when options.cancel_event is set.
        """

    async def aclose(self) -> None:
        """Release transport resources."""
        return None
