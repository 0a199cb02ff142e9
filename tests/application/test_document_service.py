"""
Test suite for DocumentService.

Tests ingestion (chunking, embedding, storage), listing, preview, metadata
updates and deletion against an in-memory database. Verifies the similarity
cache is cleared after every knowledge base change.

System role: Verification of knowledge base management orchestration
"""

import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

from buddy.application.services.document_service import DocumentService
from buddy.boundary.db.CRUD.chunk_crud import chunk_crud
from buddy.boundary.db.CRUD.document_crud import document_crud
from buddy.configs.rag import RAGSettings
from buddy.core.exceptions import (
    IngestionError,
    ProviderConnectionError,
    ResourceNotFoundError,
    ValidationError,
)
from buddy.core.rag.embedder import Embedder


@pytest.fixture
def mock_retriever() -> MagicMock:
    return MagicMock()


@pytest.fixture
def document_service(test_async_db, full_width_provider, mock_retriever) -> DocumentService:
    return DocumentService(
        db=test_async_db,
        embedder=Embedder(full_width_provider),
        retriever=mock_retriever,
        rag_settings=RAGSettings(chunk_size=500, chunk_overlap=50),
    )


class TestIngestDocument:
    """Test suite for DocumentService.ingest_document."""

    @pytest.mark.asyncio
    async def test_ingest_should_store_document_and_chunks(
        self, document_service, test_async_db, full_width_provider, mock_retriever
    ) -> None:
        # Act
        result = await document_service.ingest_document(
            "Handbook", "a" * 1200, tags=["hr", "policy"]
        )

        # Assert
        assert result.chunks_created == 3
        assert result.document.title == "Handbook"
        assert result.document.tags == ["hr", "policy"]
        assert result.document.chunk_count == 3

        chunks = await chunk_crud.get_by_document_id(test_async_db, result.document.id)
        assert [c.chunk_index for c in chunks] == [0, 1, 2]
        assert [len(c.content) for c in chunks] == [500, 500, 300]

        embed_calls = [payload for name, payload in full_width_provider.calls if name == "embed"]
        assert len(embed_calls) == 1
        assert len(embed_calls[0]) == 3
        mock_retriever.clear_cache.assert_called_once()

    @pytest.mark.asyncio
    async def test_short_text_should_give_single_chunk(self, document_service) -> None:
        # Act
        result = await document_service.ingest_document("Note", "  Short policy text.  ")

        # Assert
        assert result.chunks_created == 1

    @pytest.mark.asyncio
    async def test_blank_title_should_raise_validation_error(self, document_service) -> None:
        # Act & Assert
        with pytest.raises(ValidationError):
            await document_service.ingest_document("   ", "text")

    @pytest.mark.asyncio
    async def test_blank_text_should_raise_validation_error(self, document_service) -> None:
        # Act & Assert
        with pytest.raises(ValidationError):
            await document_service.ingest_document("Title", "\n\n  ")

    @pytest.mark.asyncio
    async def test_embedding_failure_should_roll_back(
        self, document_service, test_async_db, full_width_provider, mock_retriever
    ) -> None:
        # Arrange
        full_width_provider.embed = AsyncMock(side_effect=ProviderConnectionError("down"))

        # Act & Assert
        with pytest.raises(ProviderConnectionError):
            await document_service.ingest_document("Handbook", "Some text")
        assert await document_crud.count(test_async_db) == 0
        mock_retriever.clear_cache.assert_not_called()

    @pytest.mark.asyncio
    async def test_embedding_count_mismatch_should_raise_ingestion_error(
        self, document_service, test_async_db, full_width_provider
    ) -> None:
        # Arrange
        full_width_provider.embed = AsyncMock(return_value=[])

        # Act & Assert
        with pytest.raises(IngestionError):
            await document_service.ingest_document("Handbook", "Some text")
        assert await document_crud.count(test_async_db) == 0


class TestDocumentQueries:
    """Test suite for listing, detail and preview."""

    @pytest.mark.asyncio
    async def test_list_should_include_chunk_counts(self, document_service) -> None:
        # Arrange
        await document_service.ingest_document("Long", "b" * 1200)
        await document_service.ingest_document("Short", "tiny")

        # Act
        listing = await document_service.list_documents()

        # Assert
        assert listing.total == 2
        counts = {d.title: d.chunk_count for d in listing.documents}
        assert counts == {"Long": 3, "Short": 1}

    @pytest.mark.asyncio
    async def test_get_document_should_return_raw_text(self, document_service) -> None:
        # Arrange
        ingested = await document_service.ingest_document("Doc", "Full body text.")

        # Act
        detail = await document_service.get_document(ingested.document.id)

        # Assert
        assert detail.raw_text == "Full body text."
        assert detail.chunk_count == 1

    @pytest.mark.asyncio
    async def test_get_unknown_document_should_raise_not_found(self, document_service) -> None:
        # Act & Assert
        with pytest.raises(ResourceNotFoundError):
            await document_service.get_document(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_preview_should_list_chunks_in_order(self, document_service) -> None:
        # Arrange
        ingested = await document_service.ingest_document("Doc", "c" * 1200)

        # Act
        preview = await document_service.get_document_chunks(ingested.document.id, limit=2)

        # Assert
        assert [c.chunk_index for c in preview.chunks] == [0, 1]
        assert preview.document.chunk_count == 3
        assert preview.raw_text == "c" * 1200


class TestDocumentMutations:
    """Test suite for updates and deletes."""

    @pytest.mark.asyncio
    async def test_update_should_change_title_and_tags(
        self, document_service, mock_retriever
    ) -> None:
        # Arrange
        ingested = await document_service.ingest_document("Old", "text", tags=["a"])
        mock_retriever.clear_cache.reset_mock()

        # Act
        updated = await document_service.update_document(
            ingested.document.id, title=" New ", tags=["b", "c"]
        )

        # Assert
        assert updated.title == "New"
        assert updated.tags == ["b", "c"]
        mock_retriever.clear_cache.assert_called_once()

    @pytest.mark.asyncio
    async def test_update_with_blank_title_should_raise(self, document_service) -> None:
        # Arrange
        ingested = await document_service.ingest_document("Old", "text")

        # Act & Assert
        with pytest.raises(ValidationError):
            await document_service.update_document(ingested.document.id, title="  ")

    @pytest.mark.asyncio
    async def test_delete_should_remove_document_and_chunks(
        self, document_service, test_async_db, mock_retriever
    ) -> None:
        # Arrange
        ingested = await document_service.ingest_document("Doc", "d" * 1200)
        mock_retriever.clear_cache.reset_mock()

        # Act
        await document_service.delete_document(ingested.document.id)

        # Assert
        assert await document_crud.count(test_async_db) == 0
        assert await chunk_crud.count(test_async_db) == 0
        mock_retriever.clear_cache.assert_called_once()

    @pytest.mark.asyncio
    async def test_delete_unknown_should_raise_not_found(self, document_service) -> None:
        # Act & Assert
        with pytest.raises(ResourceNotFoundError):
            await document_service.delete_document(uuid.uuid4())

    @pytest.mark.asyncio
    async def test_bulk_delete_should_ignore_unknown_ids(
        self, document_service, test_async_db
    ) -> None:
        # Arrange
        first = await document_service.ingest_document("One", "text one")
        second = await document_service.ingest_document("Two", "text two")
        await document_service.ingest_document("Three", "text three")

        # Act
        deleted = await document_service.bulk_delete_documents(
            [first.document.id, second.document.id, uuid.uuid4()]
        )

        # Assert
        assert deleted == 2
        assert await document_crud.count(test_async_db) == 1
