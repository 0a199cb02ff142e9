"""
Chat service for conversational Q&A with RAG.

Orchestrates the full chat turn: conversation validation, user message
persistence, context retrieval, history assembly, prompt building, the
provider call and assistant message persistence. Supports streaming via
stream_chat() for SSE delivery.

Dependencies: buddy.core.llm, buddy.core.rag, buddy.boundary.db
System role: Chat service orchestration layer
"""

import asyncio
import logging
from collections.abc import AsyncGenerator
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from buddy.boundary.db.CRUD.conversation_crud import conversation_crud
from buddy.boundary.db.CRUD.message_crud import message_crud
from buddy.boundary.db.CRUD.settings_crud import settings_crud
from buddy.boundary.db.models.message_model import MessageRole
from buddy.configs.rag import RAGSettings
from buddy.core.exceptions import ResourceNotFoundError, ValidationError
from buddy.core.llm.types import ChatOptions, LLMMessage, LLMProvider, StreamOptions
from buddy.core.rag.embedder import Embedder
from buddy.core.rag.prompt_builder import (
    ResolvedChatSettings,
    build_prompt,
    get_settings_or_defaults,
)
from buddy.core.rag.retriever import Retriever, SearchOptions, get_retrieval_stats
from buddy.models.chat import ChatResponse, MessageResponse
from buddy.models.retrieval import ChunkSearchResult
from buddy.models.streaming import StreamEvent
from buddy.observability.log_utils import log_exception_with_context
from buddy.observability.metrics import MetricsStore

logger = logging.getLogger(__name__)

TITLE_MAX_CHARS = 50


def title_from_message(message: str) -> str:
    """First 50 characters of the opening message, with '...' when cut."""
    title = message[:TITLE_MAX_CHARS]
    return title + "..." if len(message) > TITLE_MAX_CHARS else title


@dataclass
class PreparedTurn:
    """Everything needed to ask the provider for the assistant reply."""

    conversation_id: UUID
    user_message_id: UUID
    settings: ResolvedChatSettings
    sources: list[ChunkSearchResult]
    prompt: list[LLMMessage]


class ChatService:
    """
    Chat service for conversational Q&A.

    Coordinates conversation validation, retrieval, prompt construction,
    the provider call and message persistence for multi-turn conversations.
    """

    def __init__(
        self,
        db: AsyncSession,
        provider: LLMProvider,
        retriever: Retriever,
        embedder: Embedder,
        rag_settings: RAGSettings,
        default_model_name: str | None = None,
        metrics: MetricsStore | None = None,
    ) -> None:
        """
        Initialize chat service.

        Args:
            db: AsyncSession for database operations
            provider: Active LLM provider
            retriever: Shared retriever (holds the similarity cache)
            embedder: Query embedder
            rag_settings: Retrieval and history configuration
            default_model_name: Model used when no settings row names one
            metrics: Timing store for embedding, search and chat calls
        """
        self.db = db
        self.provider = provider
        self.retriever = retriever
        self.embedder = embedder
        self.rag_settings = rag_settings
        self.default_model_name = default_model_name
        self.metrics = metrics or MetricsStore()

    async def _retrieve_context(self, message: str) -> list[ChunkSearchResult]:
        """Embed and search; any failure leaves the turn without context."""
        try:
            if not await self.retriever.has_any_chunks(self.db):
                return []

            with self.metrics.timer("llm.embedding"):
                query_embedding = await self.embedder.embed_text(message)
            with self.metrics.timer("rag.search"):
                chunks = await self.retriever.search_relevant_chunks(
                    self.db,
                    query_embedding,
                    SearchOptions(top_k=self.rag_settings.default_top_k),
                )
        except Exception as e:
            log_exception_with_context(
                logger,
                f"{__name__}:_retrieve_context - Retrieval failed, continuing without context",
                e,
            )
            return []

        stats = get_retrieval_stats(chunks)
        logger.info(
            f"{__name__}:_retrieve_context - RAG retrieved {stats.count} chunks",
            extra={
                "count": stats.count,
                "avg_similarity": round(stats.avg_similarity, 3),
                "sources": ", ".join(stats.documents) or "none",
            },
        )
        return chunks

    async def _prepare_turn(self, conversation_id: UUID, message: str) -> PreparedTurn:
        """
        Persist the user message and build the prompt for the reply.

        Raises:
            ValidationError: If the message is blank
            ResourceNotFoundError: If the conversation does not exist
        """
        message = message.strip()
        if not message:
            raise ValidationError("Message cannot be empty", field="message")

        conversation = await conversation_crud.get_by_id(self.db, conversation_id)
        if conversation is None:
            raise ResourceNotFoundError("Conversation", conversation_id)

        settings_row = await settings_crud.get_current(self.db)
        settings = get_settings_or_defaults(settings_row, default_model_name=self.default_model_name)

        user_message = await message_crud.add_message(
            self.db, conversation_id, MessageRole.USER, message
        )

        if not conversation.title:
            conversation.title = title_from_message(message)
            await self.db.flush()

        sources = await self._retrieve_context(message)

        history = await message_crud.get_recent(
            self.db,
            conversation_id,
            limit=self.rag_settings.max_conversation_history,
            exclude_id=user_message.id,
        )

        prompt = build_prompt(
            system_prompt=settings.system_prompt,
            context_chunks=sources,
            messages=history,
            latest_user_message=message,
        )
        return PreparedTurn(
            conversation_id=conversation_id,
            user_message_id=user_message.id,
            settings=settings,
            sources=sources,
            prompt=prompt,
        )

    async def _save_assistant_message(self, conversation_id: UUID, content: str):
        assistant_message = await message_crud.add_message(
            self.db, conversation_id, MessageRole.ASSISTANT, content
        )
        await conversation_crud.touch(self.db, conversation_id)
        await self.db.commit()
        return assistant_message

    async def process_chat(self, conversation_id: UUID, message: str) -> ChatResponse:
        """
        Process a chat message through the full conversation flow.

        Flow:
        1. Validate conversation and read chat settings
        2. Store user message (and title the conversation on its first turn),
           committed before the provider is called
        3. Retrieve context when the knowledge base has chunks
        4. Build prompt from settings, context and recent history
        5. Call the provider, store the reply, bump the conversation

        Args:
            conversation_id: Conversation UUID
            message: User's message

        Returns:
            ChatResponse: Stored assistant message plus the sources used

        Raises:
            ResourceNotFoundError: If the conversation does not exist
            ValidationError: If the message is blank
            ProviderError: If the provider call fails
        """
        turn = await self._prepare_turn(conversation_id, message)
        # User message is durable even if the provider call fails.
        await self.db.commit()

        with self.metrics.timer("llm.chat", model=turn.settings.model_name):
            answer = await self.provider.chat(
                turn.prompt,
                ChatOptions(
                    model=turn.settings.model_name,
                    temperature=turn.settings.temperature,
                    max_tokens=turn.settings.max_tokens,
                ),
            )

        assistant_message = await self._save_assistant_message(conversation_id, answer)
        logger.info(
            f"{__name__}:process_chat - Answered conversation {conversation_id}",
            extra={"answer_len": len(answer), "sources": len(turn.sources)},
        )
        return ChatResponse(
            message=MessageResponse.model_validate(assistant_message),
            sources=turn.sources,
        )

    async def stream_chat(
        self,
        conversation_id: UUID,
        message: str,
        cancel_event: asyncio.Event | None = None,
    ) -> AsyncGenerator[StreamEvent, None]:
        """
        Stream the assistant reply for real-time SSE delivery.

        Yields a CONTEXT event with the sources, one TOKEN event per provider
        chunk, and a COMPLETE event once the reply is stored. Setting the
        cancel event ends the stream without storing a partial reply.

        Args:
            conversation_id: Conversation UUID
            message: User's message
            cancel_event: Set when the client disconnects

        Yields:
            StreamEvent: Context, token and complete events

        Raises:
            ResourceNotFoundError: If the conversation does not exist
            ProviderError: If the provider fails before or during the stream
        """
        cancel_event = cancel_event or asyncio.Event()
        turn = await self._prepare_turn(conversation_id, message)
        # User message is durable even if the stream later fails.
        await self.db.commit()

        yield StreamEvent.context(turn.sources)

        full_answer = ""
        finished = False
        options = StreamOptions(
            model=turn.settings.model_name,
            temperature=turn.settings.temperature,
            max_tokens=turn.settings.max_tokens,
            cancel_event=cancel_event,
        )
        async for chunk in self.provider.chat_stream(turn.prompt, options):
            full_answer += chunk.content
            yield StreamEvent.token(chunk.content, chunk.done)
            if chunk.done:
                finished = True
                break

        if cancel_event.is_set() and not finished:
            logger.info(
                f"{__name__}:stream_chat - Cancelled, partial answer discarded",
                extra={"conversation_id": str(conversation_id), "answer_len": len(full_answer)},
            )
            return

        assistant_message = await self._save_assistant_message(conversation_id, full_answer)
        logger.info(
            f"{__name__}:stream_chat - Stored streamed answer",
            extra={"conversation_id": str(conversation_id), "answer_len": len(full_answer)},
        )
        yield StreamEvent.complete(assistant_message.id)
