"""
Test suite for ChatService.

Tests the full chat turn against an in-memory database: message persistence,
conversation titling, context retrieval, prompt assembly, the provider call
and SSE event sequencing for streamed replies. The retriever is mocked; the
provider is an in-process fake.

System role: Verification of chat service orchestration layer
"""

import asyncio
import uuid
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from buddy.application.services.chat_service import ChatService, title_from_message
from buddy.boundary.db.CRUD.conversation_crud import conversation_crud
from buddy.boundary.db.CRUD.message_crud import message_crud
from buddy.boundary.db.CRUD.settings_crud import settings_crud
from buddy.boundary.db.models.message_model import MessageModel, MessageRole
from buddy.configs.rag import RAGSettings
from buddy.core.exceptions import ProviderRateLimitError, ResourceNotFoundError, ValidationError
from buddy.core.llm.types import StreamChunk
from buddy.core.rag.embedder import Embedder
from buddy.models.streaming import StreamEventType


@pytest.fixture
def mock_retriever(sample_chunks) -> MagicMock:
    """Retriever reporting a non-empty knowledge base and returning sample chunks."""
    retriever = MagicMock()
    retriever.has_any_chunks = AsyncMock(return_value=True)
    retriever.search_relevant_chunks = AsyncMock(return_value=list(sample_chunks))
    return retriever


@pytest.fixture
def chat_service(test_async_db, fake_provider, mock_retriever) -> ChatService:
    return ChatService(
        db=test_async_db,
        provider=fake_provider,
        retriever=mock_retriever,
        embedder=Embedder(fake_provider),
        rag_settings=RAGSettings(default_top_k=4, max_conversation_history=2),
        default_model_name="gpt-4o-mini",
    )


@pytest.fixture
async def conversation(test_async_db):
    conversation = await conversation_crud.create(test_async_db)
    await test_async_db.commit()
    return conversation


async def collect(stream) -> list:
    return [event async for event in stream]


class TestTitleFromMessage:
    """Test suite for conversation titling."""

    def test_short_message_should_be_used_verbatim(self) -> None:
        assert title_from_message("How do I reset my password?") == "How do I reset my password?"

    def test_long_message_should_be_cut_at_50_chars(self) -> None:
        # Arrange
        message = "a" * 60

        # Act
        title = title_from_message(message)

        # Assert
        assert title == "a" * 50 + "..."


class TestProcessChat:
    """Test suite for ChatService.process_chat."""

    @pytest.mark.asyncio
    async def test_process_chat_should_store_both_messages(
        self, chat_service, conversation, test_async_db
    ) -> None:
        # Act
        response = await chat_service.process_chat(conversation.id, "  How many vacation days?  ")

        # Assert
        assert response.message.role == "assistant"
        assert response.message.content == "Here is the answer."
        assert len(response.sources) == 3

        messages = await message_crud.get_by_conversation_id(test_async_db, conversation.id)
        assert [(m.role, m.content) for m in messages] == [
            (MessageRole.USER, "How many vacation days?"),
            (MessageRole.ASSISTANT, "Here is the answer."),
        ]

    @pytest.mark.asyncio
    async def test_first_message_should_title_conversation(
        self, chat_service, conversation, test_async_db
    ) -> None:
        # Arrange
        message = "Please explain the travel reimbursement policy for international trips"

        # Act
        await chat_service.process_chat(conversation.id, message)

        # Assert
        refreshed = await conversation_crud.get_by_id(test_async_db, conversation.id)
        assert refreshed.title == message[:50] + "..."

    @pytest.mark.asyncio
    async def test_existing_title_should_be_kept(
        self, chat_service, test_async_db
    ) -> None:
        # Arrange
        conversation = await conversation_crud.create(test_async_db, title="Onboarding")
        await test_async_db.commit()

        # Act
        await chat_service.process_chat(conversation.id, "Where is the handbook?")

        # Assert
        refreshed = await conversation_crud.get_by_id(test_async_db, conversation.id)
        assert refreshed.title == "Onboarding"

    @pytest.mark.asyncio
    async def test_prompt_should_include_context_and_recent_history(
        self, chat_service, conversation, test_async_db, fake_provider
    ) -> None:
        # Arrange
        base = datetime.now(timezone.utc) - timedelta(minutes=10)
        for i, (role, content) in enumerate(
            [
                (MessageRole.USER, "oldest question"),
                (MessageRole.ASSISTANT, "oldest answer"),
                (MessageRole.USER, "recent question"),
                (MessageRole.ASSISTANT, "recent answer"),
            ]
        ):
            test_async_db.add(
                MessageModel(
                    conversation_id=conversation.id,
                    role=role,
                    content=content,
                    created_at=base + timedelta(minutes=i),
                )
            )
        await test_async_db.commit()

        # Act
        await chat_service.process_chat(conversation.id, "new question")

        # Assert
        _, prompt = next(call for call in fake_provider.calls if call[0] == "chat")
        assert prompt[0].role == "system"
        assert "[1. Vacation Policy | 91% match]" in prompt[0].content
        assert [(m.role, m.content) for m in prompt[1:]] == [
            ("user", "recent question"),
            ("assistant", "recent answer"),
            ("user", "new question"),
        ]

    @pytest.mark.asyncio
    async def test_stored_settings_should_drive_prompt(
        self, chat_service, conversation, test_async_db, fake_provider
    ) -> None:
        # Arrange
        await settings_crud.upsert(test_async_db, system_prompt="You are terse.")
        await test_async_db.commit()

        # Act
        await chat_service.process_chat(conversation.id, "hello")

        # Assert
        _, prompt = next(call for call in fake_provider.calls if call[0] == "chat")
        assert prompt[0].content.startswith("You are terse.")

    @pytest.mark.asyncio
    async def test_empty_knowledge_base_should_skip_retrieval(
        self, chat_service, conversation, mock_retriever, fake_provider
    ) -> None:
        # Arrange
        mock_retriever.has_any_chunks.return_value = False

        # Act
        response = await chat_service.process_chat(conversation.id, "hello")

        # Assert
        assert response.sources == []
        mock_retriever.search_relevant_chunks.assert_not_awaited()
        assert not any(call[0] == "embed" for call in fake_provider.calls)

    @pytest.mark.asyncio
    async def test_retrieval_failure_should_continue_without_context(
        self, chat_service, conversation, mock_retriever
    ) -> None:
        # Arrange
        mock_retriever.search_relevant_chunks.side_effect = RuntimeError("index unavailable")

        # Act
        response = await chat_service.process_chat(conversation.id, "hello")

        # Assert
        assert response.sources == []
        assert response.message.content == "Here is the answer."

    @pytest.mark.asyncio
    async def test_unknown_conversation_should_raise_not_found(self, chat_service) -> None:
        # Act & Assert
        with pytest.raises(ResourceNotFoundError):
            await chat_service.process_chat(uuid.uuid4(), "hello")

    @pytest.mark.asyncio
    async def test_blank_message_should_raise_validation_error(
        self, chat_service, conversation
    ) -> None:
        # Act & Assert
        with pytest.raises(ValidationError):
            await chat_service.process_chat(conversation.id, "   ")

    @pytest.mark.asyncio
    async def test_provider_error_should_propagate(
        self, chat_service, conversation, fake_provider
    ) -> None:
        # Arrange
        fake_provider.chat = AsyncMock(side_effect=ProviderRateLimitError("limited"))

        # Act & Assert
        with pytest.raises(ProviderRateLimitError):
            await chat_service.process_chat(conversation.id, "hello")

    @pytest.mark.asyncio
    async def test_user_message_should_persist_when_provider_fails(
        self, chat_service, conversation, test_async_db, fake_provider
    ) -> None:
        # Arrange
        conversation_id = conversation.id
        fake_provider.chat = AsyncMock(side_effect=ProviderRateLimitError("limited"))

        # Act
        with pytest.raises(ProviderRateLimitError):
            await chat_service.process_chat(conversation_id, "hello there")
        await test_async_db.rollback()

        # Assert
        messages = await message_crud.get_by_conversation_id(test_async_db, conversation_id)
        assert [(m.role, m.content) for m in messages] == [(MessageRole.USER, "hello there")]
        refreshed = await conversation_crud.get_by_id(test_async_db, conversation_id)
        assert refreshed.title == "hello there"

    @pytest.mark.asyncio
    async def test_turn_should_record_embedding_search_and_chat_timings(
        self, chat_service, conversation
    ) -> None:
        # Act
        await chat_service.process_chat(conversation.id, "hello")

        # Assert
        assert chat_service.metrics.metric_names() == ["llm.chat", "llm.embedding", "rag.search"]
        [chat_sample] = chat_service.metrics.get_samples("llm.chat")
        assert chat_sample.tags == {"model": "gpt-4o-mini"}

    @pytest.mark.asyncio
    async def test_failed_chat_call_should_still_be_timed(
        self, chat_service, conversation, fake_provider
    ) -> None:
        # Arrange
        fake_provider.chat = AsyncMock(side_effect=ProviderRateLimitError("limited"))

        # Act
        with pytest.raises(ProviderRateLimitError):
            await chat_service.process_chat(conversation.id, "hello")

        # Assert
        assert chat_service.metrics.summary("llm.chat")["count"] == 1



class TestStreamChat:
    """Test suite for ChatService.stream_chat."""

    @pytest.mark.asyncio
    async def test_stream_should_emit_context_tokens_then_complete(
        self, chat_service, conversation, test_async_db
    ) -> None:
        # Act
        events = await collect(chat_service.stream_chat(conversation.id, "hello"))

        # Assert
        types = [e.event for e in events]
        assert types == [
            StreamEventType.CONTEXT,
            StreamEventType.TOKEN,
            StreamEventType.TOKEN,
            StreamEventType.TOKEN,
            StreamEventType.COMPLETE,
        ]
        assert len(events[0].data["sources"]) == 3
        assert events[1].data == {"content": "Hello", "done": False}
        assert events[3].data == {"content": "", "done": True}

        messages = await message_crud.get_by_conversation_id(test_async_db, conversation.id)
        assistant = messages[-1]
        assert assistant.role == MessageRole.ASSISTANT
        assert assistant.content == "Hello world"
        assert events[-1].data == {"messageId": str(assistant.id), "done": True}

    @pytest.mark.asyncio
    async def test_cancelled_stream_should_not_store_reply(
        self, chat_service, conversation, test_async_db
    ) -> None:
        # Arrange
        cancel_event = asyncio.Event()
        events = []

        # Act
        async for event in chat_service.stream_chat(conversation.id, "hello", cancel_event):
            events.append(event)
            if event.event is StreamEventType.TOKEN:
                cancel_event.set()

        # Assert
        assert events[-1].event is StreamEventType.TOKEN
        messages = await message_crud.get_by_conversation_id(test_async_db, conversation.id)
        assert [m.role for m in messages] == [MessageRole.USER]

    @pytest.mark.asyncio
    async def test_stream_without_done_chunk_should_still_complete(
        self, chat_service, conversation, fake_provider
    ) -> None:
        # Arrange
        fake_provider.stream_chunks = [StreamChunk(content="partial")]

        # Act
        events = await collect(chat_service.stream_chat(conversation.id, "hello"))

        # Assert
        assert events[-1].event is StreamEventType.COMPLETE

    @pytest.mark.asyncio
    async def test_user_message_should_persist_when_stream_fails(
        self, chat_service, conversation, test_async_db, fake_provider
    ) -> None:
        # Arrange
        async def failing_stream(*args, **kwargs):
            raise ProviderRateLimitError("limited")
            yield  # pragma: no cover

        fake_provider.chat_stream = failing_stream
        conversation_id = conversation.id

        # Act
        with pytest.raises(ProviderRateLimitError):
            await collect(chat_service.stream_chat(conversation_id, "hello"))

        # Assert
        await test_async_db.rollback()
        messages = await message_crud.get_by_conversation_id(test_async_db, conversation_id)
        assert [(m.role, m.content) for m in messages] == [(MessageRole.USER, "hello")]
