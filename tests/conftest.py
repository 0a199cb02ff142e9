"""
Shared test fixtures and configuration for entire test suite.

Provides: In-memory database session, fake LLM provider, chunk store fakes,
sample search results
Dependencies: pytest, sqlalchemy, aiosqlite
System role: Test infrastructure and fixture management
"""

import uuid
from collections.abc import AsyncIterator
from unittest.mock import AsyncMock

import pytest

from buddy.core.llm.types import (
    ChatOptions,
    LLMMessage,
    LLMProvider,
    ProviderType,
    StreamChunk,
    StreamOptions,
)
from buddy.core.resilience import CircuitBreaker
from buddy.models.retrieval import ChunkSearchResult

STORED_EMBEDDING_DIMENSIONS = 1536


class FakeProvider(LLMProvider):
    """
    In-process provider returning canned embeddings and replies.

    Attributes:
        embedding: Vector returned for every text
        reply: Text returned by chat()
        stream_chunks: Chunks yielded by chat_stream()
        calls: Recorded (method, payload) tuples
    """

    provider_type = ProviderType.OPENAI

    def __init__(
        self,
        embedding: list[float] | None = None,
        reply: str = "Here is the answer.",
        stream_chunks: list[StreamChunk] | None = None,
    ) -> None:
        self.embedding = embedding or [0.1] * 16
        self.reply = reply
        self.stream_chunks = stream_chunks or [
            StreamChunk(content="Hello", done=False),
            StreamChunk(content=" world", done=False),
            StreamChunk(content="", done=True),
        ]
        self.chat_breaker = CircuitBreaker(name="fake-chat")
        self.embedding_breaker = CircuitBreaker(name="fake-embeddings")
        self.calls: list[tuple[str, object]] = []

    async def embed(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(("embed", list(texts)))
        return [list(self.embedding) for _ in texts]

    async def chat(
        self,
        messages: list[LLMMessage],
        options: ChatOptions | None = None,
    ) -> str:
        self.calls.append(("chat", messages))
        return self.reply

    def chat_stream(
        self,
        messages: list[LLMMessage],
        options: StreamOptions | None = None,
    ) -> AsyncIterator[StreamChunk]:
        self.calls.append(("chat_stream", messages))
        return self._stream(options)

    async def _stream(self, options: StreamOptions | None) -> AsyncIterator[StreamChunk]:
        cancel_event = options.cancel_event if options else None
        for chunk in self.stream_chunks:
            if cancel_event is not None and cancel_event.is_set():
                return
            yield chunk


@pytest.fixture
def fake_provider() -> FakeProvider:
    """Provide a fake LLM provider."""
    return FakeProvider()


@pytest.fixture
def full_width_provider() -> FakeProvider:
    """Provide a fake provider whose embeddings fit the chunk vector column."""
    return FakeProvider(embedding=[0.01] * STORED_EMBEDDING_DIMENSIONS)


@pytest.fixture
def sample_chunks() -> list[ChunkSearchResult]:
    """Provide ranked search results from two documents."""
    doc_a, doc_b = str(uuid.uuid4()), str(uuid.uuid4())
    return [
        ChunkSearchResult(
            id=str(uuid.uuid4()),
            content="Employees accrue 20 vacation days per year.",
            similarity=0.91,
            document_id=doc_a,
            document_title="Vacation Policy",
        ),
        ChunkSearchResult(
            id=str(uuid.uuid4()),
            content="Unused vacation days roll over up to 5 days.",
            similarity=0.84,
            document_id=doc_a,
            document_title="Vacation Policy",
        ),
        ChunkSearchResult(
            id=str(uuid.uuid4()),
            content="Expense reports are due by the 5th of each month.",
            similarity=0.76,
            document_id=doc_b,
            document_title="Expenses",
        ),
    ]


@pytest.fixture
def mock_chunk_store(sample_chunks: list[ChunkSearchResult]) -> AsyncMock:
    """
    Create mock chunk store for retriever tests.

    Returns:
        AsyncMock: similarity_search/hybrid_search return sample_chunks, count returns 3
    """
    store = AsyncMock()
    store.similarity_search = AsyncMock(return_value=list(sample_chunks))
    store.hybrid_search = AsyncMock(return_value=list(sample_chunks))
    store.count = AsyncMock(return_value=len(sample_chunks))
    return store


@pytest.fixture
async def test_async_db():
    """
    Create in-memory SQLite async database for testing.

    Yields:
        AsyncSession: Test database session with cleanup (lazy imported to avoid settings issues)
    """
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
    from sqlalchemy.pool import StaticPool

    from buddy.boundary.db.base import Base

    # Registers every model on Base.metadata
    import buddy.boundary.db.models  # noqa: F401

    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()
