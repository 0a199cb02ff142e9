"""
Prompt builder for retrieval-augmented chat.

Assembles the message list sent to the provider: one system message holding
the configured persona plus either source-attributed context blocks or a
no-context notice, then prior user/assistant turns in order, then the latest
user message.

Dependencies: pydantic, buddy.core.llm
System role: Prompt construction for chat turns
"""

from collections.abc import Sequence
from typing import Any, Protocol

from pydantic import BaseModel

from buddy.core.llm.types import LLMMessage
from buddy.models.retrieval import ChunkSearchResult

DEFAULT_SYSTEM_PROMPT = (
    "You are VS Buddy, an internal assistant. Your primary job is to answer "
    "questions using the knowledge base provided to you. Be helpful, concise, "
    "and practical. Always check the provided context first before answering."
)

DEFAULT_MODEL_NAME = "gpt-4o-mini"
DEFAULT_TEMPERATURE = 0.7

RAG_INSTRUCTIONS = """
IMPORTANT INSTRUCTIONS:
- Use ONLY the provided context for specific facts and information.
- Each context chunk shows its source document and relevance score.
- Prefer higher relevance chunks when information conflicts.
- If the answer is not in the context, clearly say "I don't have that information in my knowledge base."
- Be concise and practical. No corporate fluff.
- If you're unsure, say so rather than making things up.
"""

NO_CONTEXT_INSTRUCTIONS = """
NOTE: No relevant information was found in the knowledge base for this query.
- If this is a general question you can answer from your training, do so.
- If it requires specific company/internal knowledge, clearly state that you don't have that information.
"""

CONTEXT_SEPARATOR = "\n\n---\n\n"


class HistoryMessage(Protocol):
    role: Any
    content: str


class ResolvedChatSettings(BaseModel):
    """Chat settings with defaults applied."""

    system_prompt: str
    model_name: str | None
    temperature: float
    max_tokens: int | None


def format_context_with_sources(chunks: Sequence[ChunkSearchResult]) -> str:
    """
    Render context blocks with source title and relevance.

    Args:
        chunks: Retrieved chunks, best first

    Returns:
        str: Blocks like '[1. Title | 82% match]\\ncontent' joined by separators
    """
    blocks = []
    for i, chunk in enumerate(chunks, start=1):
        relevance = int(chunk.similarity * 100 + 0.5)
        blocks.append(f"[{i}. {chunk.document_title} | {relevance}% match]\n{chunk.content}")
    return CONTEXT_SEPARATOR.join(blocks)


def _role_value(role: Any) -> str:
    return getattr(role, "value", role)


def build_prompt(
    system_prompt: str | None,
    context_chunks: Sequence[ChunkSearchResult],
    messages: Sequence[HistoryMessage],
    latest_user_message: str,
) -> list[LLMMessage]:
    """
    Build the provider message list for one chat turn.

    Args:
        system_prompt: Configured persona (default used when empty)
        context_chunks: Retrieved context, may be empty
        messages: Prior turns in chronological order; system turns are skipped
        latest_user_message: The message being answered

    Returns:
        list[LLMMessage]: system, history..., user
    """
    system_content = system_prompt or DEFAULT_SYSTEM_PROMPT

    if context_chunks:
        context_section = format_context_with_sources(context_chunks)
        system_content += (
            f"\n\n{RAG_INSTRUCTIONS}\n\nCONTEXT FROM KNOWLEDGE BASE:\n---\n{context_section}\n---"
        )
    else:
        system_content += f"\n\n{NO_CONTEXT_INSTRUCTIONS}"

    prompt = [LLMMessage(role="system", content=system_content)]
    for message in messages:
        role = _role_value(message.role)
        if role in ("user", "assistant"):
            prompt.append(LLMMessage(role=role, content=message.content))
    prompt.append(LLMMessage(role="user", content=latest_user_message))
    return prompt


def get_settings_or_defaults(
    settings: Any | None,
    default_model_name: str | None = DEFAULT_MODEL_NAME,
    default_temperature: float = DEFAULT_TEMPERATURE,
) -> ResolvedChatSettings:
    """
    Resolve stored chat settings, filling gaps with defaults.

    Args:
        settings: Settings row (or None when none stored)
        default_model_name: Model used when the row names none
        default_temperature: Temperature used when the row sets none

    Returns:
        ResolvedChatSettings: Effective settings for the turn
    """
    system_prompt = getattr(settings, "system_prompt", None)
    model_name = getattr(settings, "model_name", None)
    temperature = getattr(settings, "temperature", None)
    max_tokens = getattr(settings, "max_tokens", None)

    return ResolvedChatSettings(
        system_prompt=system_prompt or DEFAULT_SYSTEM_PROMPT,
        model_name=model_name or default_model_name,
        temperature=temperature if temperature is not None else default_temperature,
        max_tokens=max_tokens,
    )
