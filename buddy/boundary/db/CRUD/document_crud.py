"""
Document CRUD operations.

Provides Create, Read, Update, Delete operations for DocumentModel with
chunk-aware listing and deletion.

Dependencies: sqlalchemy, buddy.boundary.db.models
System role: Document persistence operations
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from buddy.boundary.db.CRUD.base_crud import BaseCRUD, paginate
from buddy.boundary.db.CRUD.chunk_crud import chunk_crud
from buddy.boundary.db.models.chunk_model import ChunkModel
from buddy.boundary.db.models.document_model import DocumentModel


class DocumentCRUD(BaseCRUD[DocumentModel]):
    """
    CRUD operations for DocumentModel.

    Deletes remove chunk rows explicitly before the document so behaviour does
    not depend on the backend enforcing ON DELETE CASCADE.
    """

    def __init__(self) -> None:
        """Initialize DocumentCRUD with DocumentModel."""
        super().__init__(DocumentModel)

    async def list_with_chunk_counts(
        self,
        session: AsyncSession,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[tuple[DocumentModel, int]]:
        """
        List documents newest first, each with its number of chunks.

        Args:
            session: Async database session
            limit: Maximum number of documents to return
            offset: Number of documents to skip

        Returns:
            list of (DocumentModel, chunk_count) tuples
        """
        stmt = (
            select(DocumentModel, func.count(ChunkModel.id))
            .outerjoin(ChunkModel, ChunkModel.document_id == DocumentModel.id)
            .group_by(DocumentModel.id)
            .order_by(DocumentModel.created_at.desc())
        )
        result = await session.execute(paginate(stmt, limit, offset))
        return [(document, int(count)) for document, count in result.all()]

    async def delete_with_chunks(self, session: AsyncSession, id: UUID) -> bool:
        """
        Delete a document and all its chunks.

        Args:
            session: Async database session
            id: Document UUID

        Returns:
            True if the document existed
        """
        await chunk_crud.delete_where(session, ChunkModel.document_id == id)
        return await self.delete_by_id(session, id)

    async def bulk_delete(self, session: AsyncSession, ids: Sequence[UUID]) -> int:
        """
        Delete several documents and their chunks.

        Args:
            session: Async database session
            ids: Document UUIDs (unknown ids are ignored)

        Returns:
            Number of documents deleted
        """
        if not ids:
            return 0
        await chunk_crud.delete_where(session, ChunkModel.document_id.in_(ids))
        return await self.delete_many(session, ids)


document_crud = DocumentCRUD()
