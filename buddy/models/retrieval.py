"""
Retrieval domain models and schemas.

Search result, retrieval statistics and admin retrieval-test contracts.

Dependencies: pydantic
System role: Retrieval data structures and API contracts
"""

from uuid import UUID

from pydantic import BaseModel, Field


class ChunkSearchResult(BaseModel):
    """Single chunk returned by similarity search."""

    id: str = Field(description="Chunk identifier")
    content: str = Field(description="Chunk text")
    similarity: float = Field(description="Cosine similarity (or hybrid score)")
    document_id: str = Field(description="Source document identifier")
    document_title: str = Field(description="Source document title")


class RetrievalStats(BaseModel):
    """Aggregate view of a result set, for logs and diagnostics."""

    count: int = 0
    avg_similarity: float = 0.0
    min_similarity: float = 0.0
    max_similarity: float = 0.0
    documents: list[str] = Field(default_factory=list, description="Distinct source titles")


class RagTestRequest(BaseModel):
    """Admin request to run retrieval for a query without generating an answer."""

    query: str = Field(min_length=1, description="Query text")
    top_k: int | None = Field(default=None, ge=1, le=50)
    min_similarity: float | None = Field(default=None, ge=0.0, le=1.0)
    tags: list[str] | None = None
    document_ids: list[UUID] | None = None
    hybrid: bool = Field(default=False, description="Combine vector and keyword scoring")


class RagTestResponse(BaseModel):
    """Retrieval test results with timings."""

    query: str
    results: list[ChunkSearchResult]
    stats: RetrievalStats
    embedding_ms: float
    search_ms: float
    total_ms: float


class CacheStatsResponse(BaseModel):
    """Similarity cache counters."""

    size: int
    max_size: int
    ttl_seconds: float
    hits: int
    misses: int
