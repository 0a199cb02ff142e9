"""
Chunk ORM model.

A contiguous window of a document's text together with its embedding.
Similarity search runs against the pgvector column.

Dependencies: sqlalchemy, pgvector, buddy.boundary.db.base, buddy.configs
System role: Vector storage for retrieval
"""

from uuid import UUID

from pgvector.sqlalchemy import Vector
from sqlalchemy import ForeignKey, Integer, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from buddy.boundary.db.base import Base, TimestampMixin, UUIDMixin
from buddy.configs import get_settings

# Must match the width the provider returns for the configured model.
EMBEDDING_DIMENSIONS = get_settings().rag.embedding_dimensions


class ChunkModel(Base, UUIDMixin, TimestampMixin):
    """
    Chunk ORM model.

    Attributes:
        id: UUID primary key (auto-generated)
        document_id: Parent document (cascade delete)
        chunk_index: Position of the chunk within the document
        content: Chunk text
        embedding: Vector of EMBEDDING_DIMENSIONS floats

    Relationships:
        document: Parent DocumentModel (back_populates=chunks)
    """

    __tablename__ = "chunks"

    document_id: Mapped[UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("documents.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    chunk_index: Mapped[int] = mapped_column(Integer, nullable=False)

    content: Mapped[str] = mapped_column(Text, nullable=False)

    embedding: Mapped[list[float]] = mapped_column(
        Vector(EMBEDDING_DIMENSIONS),
        nullable=False,
    )

    # Relationships
    document = relationship("DocumentModel", back_populates="chunks")
