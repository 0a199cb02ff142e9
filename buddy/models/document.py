"""
Document domain models and schemas.

Ingestion, listing, preview and bulk-delete contracts for the admin API.

Dependencies: pydantic
System role: Document API contracts
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_DOCUMENT_CHARS = 10_000_000


def _clean_tags(tags: list[str]) -> list[str]:
    return list(dict.fromkeys(t.strip() for t in tags if t and t.strip()))


class DocumentIngestRequest(BaseModel):
    """Request schema for ingesting raw text."""

    title: str = Field(min_length=1, max_length=255)
    text: str = Field(min_length=1, max_length=MAX_DOCUMENT_CHARS)
    tags: list[str] = Field(default_factory=list)

    @field_validator("title", "text")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Cannot be empty")
        return value.strip()

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, value: list[str]) -> list[str]:
        return _clean_tags(value)


class DocumentUpdateRequest(BaseModel):
    """Request schema for renaming or re-tagging a document."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    tags: list[str] | None = None

    @field_validator("tags")
    @classmethod
    def clean_tags(cls, value: list[str] | None) -> list[str] | None:
        return None if value is None else _clean_tags(value)


class BulkDeleteRequest(BaseModel):
    """Request schema for deleting several documents."""

    ids: list[UUID] = Field(min_length=1, max_length=500)


class BulkDeleteResponse(BaseModel):
    deleted: int


class DocumentResponse(BaseModel):
    """Document summary."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    tags: list[str]
    chunk_count: int = 0
    created_at: datetime
    updated_at: datetime


class DocumentDetailResponse(DocumentResponse):
    """Document summary plus its full text."""

    raw_text: str


class DocumentListResponse(BaseModel):
    documents: list[DocumentResponse]
    total: int


class IngestResponse(BaseModel):
    """Result of a successful ingestion."""

    document: DocumentResponse
    chunks_created: int


class ChunkPreview(BaseModel):
    """Stored chunk shown in the admin preview."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    chunk_index: int
    content: str


class DocumentPreviewResponse(BaseModel):
    """Document text plus its stored chunks."""

    document: DocumentResponse
    raw_text: str
    chunks: list[ChunkPreview]
