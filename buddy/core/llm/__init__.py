"""
LLM provider abstraction.

Exports:
  - LLMProvider, LLMMessage, ChatOptions, StreamOptions, StreamChunk, ProviderType
  - OllamaProvider, OpenAIProvider: Concrete backends
  - create_provider(), ProviderRegistry: Construction and lifecycle
  - channel_stream(): Bounded, cancellable stream channel
"""

from buddy.core.llm.factory import ProviderRegistry, create_provider
from buddy.core.llm.ollama_provider import OllamaProvider
from buddy.core.llm.openai_provider import OpenAIProvider
from buddy.core.llm.streaming import channel_stream
from buddy.core.llm.types import (
    ChatOptions,
    LLMMessage,
    LLMProvider,
    ProviderType,
    StreamChunk,
    StreamOptions,
)

__all__ = [
    "ChatOptions",
    "LLMMessage",
    "LLMProvider",
    "OllamaProvider",
    "OpenAIProvider",
    "ProviderRegistry",
    "ProviderType",
    "StreamChunk",
    "StreamOptions",
    "channel_stream",
    "create_provider",
]
