"""
Chunk CRUD operations.

Bulk insertion of embedded chunks, per-document listing, and the two
retrieval queries: cosine-distance vector search through the pgvector
comparator, and hybrid vector + full-text ranking in raw SQL.

Dependencies: sqlalchemy, pgvector, buddy.boundary.db.models
System role: Vector search backing store
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy import select, text
from sqlalchemy.ext.asyncio import AsyncSession

from buddy.boundary.db.CRUD.base_crud import BaseCRUD, paginate
from buddy.boundary.db.models.chunk_model import ChunkModel
from buddy.boundary.db.models.document_model import DocumentModel
from buddy.core.rag.embedder import format_embedding_for_pg
from buddy.models.retrieval import ChunkSearchResult


class ChunkCRUD(BaseCRUD[ChunkModel]):
    """CRUD and similarity queries for ChunkModel."""

    def __init__(self) -> None:
        """Initialize ChunkCRUD with ChunkModel."""
        super().__init__(ChunkModel)

    async def bulk_create(
        self,
        session: AsyncSession,
        document_id: UUID,
        contents: Sequence[str],
        embeddings: Sequence[Sequence[float]],
    ) -> list[ChunkModel]:
        """
        Insert a document's chunks in order.

        Args:
            session: Async database session
            document_id: Parent document UUID
            contents: Chunk texts in document order
            embeddings: One embedding per chunk

        Returns:
            list[ChunkModel]: Inserted rows

        Raises:
            ValueError: If contents and embeddings differ in length
        """
        if len(contents) != len(embeddings):
            raise ValueError(
                f"Got {len(contents)} chunks but {len(embeddings)} embeddings"
            )

        chunks = [
            ChunkModel(
                document_id=document_id,
                chunk_index=index,
                content=content,
                embedding=list(embedding),
            )
            for index, (content, embedding) in enumerate(zip(contents, embeddings))
        ]
        session.add_all(chunks)
        await session.flush()
        return chunks

    async def count(self, session: AsyncSession, document_id: UUID | None = None) -> int:
        """
        Count chunks, optionally for a single document.

        Args:
            session: Async database session
            document_id: Restrict to this document

        Returns:
            int: Number of chunks
        """
        if document_id is None:
            return await super().count(session)
        return await super().count(session, ChunkModel.document_id == document_id)

    async def get_by_document_id(
        self,
        session: AsyncSession,
        document_id: UUID,
        limit: int | None = None,
        offset: int = 0,
    ) -> Sequence[ChunkModel]:
        """
        Retrieve a document's chunks in chunk_index order.

        Args:
            session: Async database session
            document_id: Parent document UUID
            limit: Maximum number of chunks to return
            offset: Number of chunks to skip

        Returns:
            Sequence of ChunkModels
        """
        stmt = (
            select(ChunkModel)
            .where(ChunkModel.document_id == document_id)
            .order_by(ChunkModel.chunk_index)
        )
        result = await session.execute(paginate(stmt, limit, offset))
        return result.scalars().all()

    async def similarity_search(
        self,
        session: AsyncSession,
        embedding: Sequence[float],
        min_similarity: float,
        limit: int,
        tags: list[str] | None = None,
        document_ids: list[UUID] | None = None,
    ) -> list[ChunkSearchResult]:
        """
        Cosine similarity search over chunk embeddings.

        Args:
            session: Async database session
            embedding: Query embedding
            min_similarity: Minimum 1 - cosine distance
            limit: Maximum rows returned
            tags: Keep chunks whose document shares at least one tag
            document_ids: Keep chunks from these documents only

        Returns:
            list[ChunkSearchResult]: Rows ordered by ascending distance
        """
        distance = ChunkModel.embedding.cosine_distance(list(embedding))
        similarity = (1 - distance).label("similarity")

        stmt = (
            select(
                ChunkModel.id,
                ChunkModel.content,
                ChunkModel.document_id,
                DocumentModel.title,
                similarity,
            )
            .join(DocumentModel, ChunkModel.document_id == DocumentModel.id)
            .where(1 - distance >= min_similarity)
        )
        if tags:
            stmt = stmt.where(DocumentModel.tags.overlap(tags))
        if document_ids:
            stmt = stmt.where(ChunkModel.document_id.in_(document_ids))

        stmt = stmt.order_by(distance).limit(limit)
        result = await session.execute(stmt)

        return [
            ChunkSearchResult(
                id=str(row.id),
                content=row.content,
                similarity=float(row.similarity),
                document_id=str(row.document_id),
                document_title=row.title,
            )
            for row in result.all()
        ]

    async def hybrid_search(
        self,
        session: AsyncSession,
        embedding: Sequence[float],
        search_terms: str,
        min_similarity: float,
        limit: int,
        vector_weight: float,
        keyword_weight: float,
        tags: list[str] | None = None,
        document_ids: list[UUID] | None = None,
    ) -> list[ChunkSearchResult]:
        """
        Rank chunks by weighted vector similarity plus full-text rank.

        The keyword score is ts_rank_cd of the chunk's English tsvector
        against an OR-combined tsquery. Requires PostgreSQL.

        Args:
            session: Async database session
            embedding: Query embedding
            search_terms: tsquery string, e.g. 'vacation | policy'
            min_similarity: Minimum vector similarity
            limit: Maximum rows returned
            vector_weight: Weight of the vector score
            keyword_weight: Weight of the keyword score
            tags: Keep chunks whose document shares at least one tag
            document_ids: Keep chunks from these documents only

        Returns:
            list[ChunkSearchResult]: Rows by descending combined score, with
                the combined score in `similarity`
        """
        params: dict = {
            "embedding": format_embedding_for_pg(embedding),
            "terms": search_terms,
            "min_similarity": min_similarity,
            "vector_weight": vector_weight,
            "keyword_weight": keyword_weight,
            "limit": limit,
        }
        conditions = ["1 - (c.embedding <=> CAST(:embedding AS vector)) >= :min_similarity"]
        if tags:
            conditions.append("d.tags && CAST(:tags AS text[])")
            params["tags"] = list(tags)
        if document_ids:
            conditions.append("c.document_id = ANY(CAST(:document_ids AS uuid[]))")
            params["document_ids"] = list(document_ids)

        stmt = text(
            f"""
            WITH vector_results AS (
                SELECT
                    c.id,
                    c.content,
                    c.document_id,
                    d.title AS document_title,
                    1 - (c.embedding <=> CAST(:embedding AS vector)) AS vector_score,
                    ts_rank_cd(
                        to_tsvector('english', c.content),
                        to_tsquery('english', :terms)
                    ) AS keyword_score
                FROM chunks c
                JOIN documents d ON c.document_id = d.id
                WHERE {" AND ".join(conditions)}
            )
            SELECT id, content, document_id, document_title, vector_score, keyword_score
            FROM vector_results
            ORDER BY (vector_score * :vector_weight + keyword_score * :keyword_weight) DESC
            LIMIT :limit
            """
        )
        result = await session.execute(stmt, params)

        return [
            ChunkSearchResult(
                id=str(row.id),
                content=row.content,
                similarity=(
                    float(row.vector_score) * vector_weight
                    + float(row.keyword_score) * keyword_weight
                ),
                document_id=str(row.document_id),
                document_title=row.document_title,
            )
            for row in result.all()
        ]


chunk_crud = ChunkCRUD()
