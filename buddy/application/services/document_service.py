"""
Document service orchestrator.

Coordinates document ingestion (chunk, embed, store), listing, preview,
metadata updates and deletion. Every path that changes the knowledge base
clears the similarity cache afterwards.

Dependencies: buddy.core.rag, buddy.boundary.db
System role: Knowledge base management orchestration
"""

import logging
from collections.abc import Sequence
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from buddy.boundary.db.CRUD.chunk_crud import chunk_crud
from buddy.boundary.db.CRUD.document_crud import document_crud
from buddy.boundary.db.models.document_model import DocumentModel
from buddy.configs.rag import RAGSettings
from buddy.core.exceptions import (
    BuddyException,
    IngestionError,
    ResourceNotFoundError,
    ValidationError,
)
from buddy.core.rag.chunker import split_text_into_chunks
from buddy.core.rag.embedder import Embedder
from buddy.core.rag.retriever import Retriever
from buddy.models.document import (
    ChunkPreview,
    DocumentDetailResponse,
    DocumentListResponse,
    DocumentPreviewResponse,
    DocumentResponse,
    IngestResponse,
)

logger = logging.getLogger(__name__)


def _to_response(document: DocumentModel, chunk_count: int) -> DocumentResponse:
    return DocumentResponse(
        id=document.id,
        title=document.title,
        tags=list(document.tags or []),
        chunk_count=chunk_count,
        created_at=document.created_at,
        updated_at=document.updated_at,
    )


class DocumentService:
    """
    Document service orchestrator.

    Handles the knowledge base lifecycle: ingestion, inspection, metadata
    edits and deletion.
    """

    def __init__(
        self,
        db: AsyncSession,
        embedder: Embedder,
        retriever: Retriever,
        rag_settings: RAGSettings,
    ) -> None:
        """
        Initialize document service.

        Args:
            db: AsyncSession for document and chunk persistence
            embedder: Chunk embedder
            retriever: Shared retriever whose cache is cleared on changes
            rag_settings: Chunk size and overlap
        """
        self.db = db
        self.embedder = embedder
        self.retriever = retriever
        self.rag_settings = rag_settings

    async def _get_or_raise(self, document_id: UUID) -> DocumentModel:
        document = await document_crud.get_by_id(self.db, document_id)
        if document is None:
            raise ResourceNotFoundError("Document", document_id)
        return document

    async def ingest_document(
        self,
        title: str,
        text: str,
        tags: Sequence[str] | None = None,
    ) -> IngestResponse:
        """
        Store a document and its embedded chunks.

        Steps:
        1. Create document record
        2. Split text into overlapping chunks
        3. Embed all chunks in one provider call
        4. Insert chunks, commit, clear the similarity cache

        Args:
            title: Document title
            text: Raw document text
            tags: Optional tags used for filtered retrieval

        Returns:
            IngestResponse: Stored document and number of chunks created

        Raises:
            ValidationError: If title or text is blank
            ProviderError: If embedding fails
            IngestionError: If storing the chunks fails
        """
        title = title.strip()
        text = text.strip()
        if not title:
            raise ValidationError("Title is required", field="title")
        if not text:
            raise ValidationError("Text is required", field="text")

        try:
            document = await document_crud.create(
                self.db,
                title=title,
                raw_text=text,
                tags=list(tags or []),
            )

            chunks = split_text_into_chunks(
                text,
                chunk_size=self.rag_settings.chunk_size,
                chunk_overlap=self.rag_settings.chunk_overlap,
            )
            embeddings = await self.embedder.embed_texts(chunks)
            await chunk_crud.bulk_create(self.db, document.id, chunks, embeddings)
            await self.db.commit()
        except BuddyException:
            await self.db.rollback()
            raise
        except (SQLAlchemyError, ValueError) as e:
            await self.db.rollback()
            raise IngestionError(
                "Failed to ingest document", details={"title": title, "error": str(e)}
            ) from e

        self.retriever.clear_cache()
        logger.info(
            f"{__name__}:ingest_document - Ingested '{title}'",
            extra={"document_id": str(document.id), "chunks": len(chunks)},
        )
        return IngestResponse(
            document=_to_response(document, len(chunks)),
            chunks_created=len(chunks),
        )

    async def list_documents(
        self,
        limit: int | None = None,
        offset: int = 0,
    ) -> DocumentListResponse:
        """List documents newest first with their chunk counts."""
        rows = await document_crud.list_with_chunk_counts(self.db, limit=limit, offset=offset)
        total = await document_crud.count(self.db)
        return DocumentListResponse(
            documents=[_to_response(document, count) for document, count in rows],
            total=total,
        )

    async def get_document(self, document_id: UUID) -> DocumentDetailResponse:
        """
        Get a document with its full text and chunk count.

        Raises:
            ResourceNotFoundError: If the document does not exist
        """
        document = await self._get_or_raise(document_id)
        chunk_count = await chunk_crud.count(self.db, document_id=document_id)
        return DocumentDetailResponse(
            **_to_response(document, chunk_count).model_dump(),
            raw_text=document.raw_text,
        )

    async def get_document_chunks(
        self,
        document_id: UUID,
        limit: int | None = None,
    ) -> DocumentPreviewResponse:
        """
        Preview how a document was chunked.

        Args:
            document_id: Document UUID
            limit: Maximum number of chunks to include

        Returns:
            DocumentPreviewResponse: Document, raw text and ordered chunks

        Raises:
            ResourceNotFoundError: If the document does not exist
        """
        document = await self._get_or_raise(document_id)
        chunks = await chunk_crud.get_by_document_id(self.db, document_id, limit=limit)
        chunk_count = await chunk_crud.count(self.db, document_id=document_id)
        return DocumentPreviewResponse(
            document=_to_response(document, chunk_count),
            raw_text=document.raw_text,
            chunks=[ChunkPreview.model_validate(chunk) for chunk in chunks],
        )

    async def update_document(
        self,
        document_id: UUID,
        title: str | None = None,
        tags: Sequence[str] | None = None,
    ) -> DocumentResponse:
        """
        Rename and/or re-tag a document.

        Args:
            document_id: Document UUID
            title: New title (unchanged when None)
            tags: New tags (unchanged when None)

        Returns:
            DocumentResponse: Updated document

        Raises:
            ResourceNotFoundError: If the document does not exist
            ValidationError: If the new title is blank
        """
        document = await self._get_or_raise(document_id)

        if title is not None:
            if not title.strip():
                raise ValidationError("Title must be a non-empty string", field="title")
            document.title = title.strip()
        if tags is not None:
            document.tags = list(tags)

        await self.db.flush()
        await self.db.commit()
        await self.db.refresh(document)
        # Tag filters and source titles live in cached results.
        self.retriever.clear_cache()

        chunk_count = await chunk_crud.count(self.db, document_id=document_id)
        return _to_response(document, chunk_count)

    async def delete_document(self, document_id: UUID) -> None:
        """
        Delete a document and its chunks.

        Raises:
            ResourceNotFoundError: If the document does not exist
        """
        deleted = await document_crud.delete_with_chunks(self.db, document_id)
        if not deleted:
            await self.db.rollback()
            raise ResourceNotFoundError("Document", document_id)

        await self.db.commit()
        self.retriever.clear_cache()
        logger.info(
            f"{__name__}:delete_document - Deleted document",
            extra={"document_id": str(document_id)},
        )

    async def bulk_delete_documents(self, document_ids: Sequence[UUID]) -> int:
        """
        Delete several documents; unknown ids are ignored.

        Returns:
            int: Number of documents deleted
        """
        deleted = await document_crud.bulk_delete(self.db, list(document_ids))
        await self.db.commit()
        self.retriever.clear_cache()
        logger.info(
            f"{__name__}:bulk_delete_documents - Deleted {deleted} documents",
            extra={"requested": len(document_ids), "deleted": deleted},
        )
        return deleted
