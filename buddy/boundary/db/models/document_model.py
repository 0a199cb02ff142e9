"""
Document ORM model.

Represents a knowledge-base document: its title, full source text and tags.
The text is split into ChunkModel rows at ingestion time.

Dependencies: sqlalchemy, buddy.boundary.db.base
System role: Document persistence for the knowledge base
"""

from sqlalchemy import JSON, String, Text
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column, relationship

from buddy.boundary.db.base import Base, TimestampMixin, UUIDMixin

# text[] on PostgreSQL (supports the && overlap operator); JSON elsewhere.
TagsType = ARRAY(Text).with_variant(JSON(), "sqlite")


class DocumentModel(Base, UUIDMixin, TimestampMixin):
    """
    Document ORM model.

    Attributes:
        id: UUID primary key (auto-generated)
        title: Display title used in source attribution (255 char limit)
        raw_text: Full document text as ingested
        tags: Free-form labels used to filter retrieval
        created_at: Ingestion timestamp (UTC)
        updated_at: Last title/tag change (UTC)

    Relationships:
        chunks: ChunkModel rows cut from raw_text (cascade delete)
    """

    __tablename__ = "documents"

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Document title shown with retrieved context",
    )

    raw_text: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        doc="Full source text",
    )

    tags: Mapped[list[str]] = mapped_column(
        TagsType,
        nullable=False,
        default=list,
    )

    # Relationships
    chunks = relationship(
        "ChunkModel",
        back_populates="document",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
