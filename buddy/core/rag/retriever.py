"""
Retrieval engine.

Vector and hybrid (vector + full-text) search over stored chunks, with
threshold, tag and document filters, signature-based deduplication of
overlapping chunks, and a similarity cache for unfiltered queries.

Dependencies: sqlalchemy, buddy.core.rag.cache, buddy.models.retrieval
System role: Context retrieval for chat turns and admin diagnostics
"""

import logging
import re
from collections.abc import Sequence
from typing import Protocol
from uuid import UUID

from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from buddy.core.exceptions import RetrievalError
from buddy.core.rag.cache import SimilarityCache
from buddy.models.retrieval import ChunkSearchResult, RetrievalStats

logger = logging.getLogger(__name__)

SIGNATURE_LENGTH = 100
VECTOR_FETCH_FACTOR = 2
HYBRID_FETCH_FACTOR = 3

STOP_WORDS = frozenset(
    {
        "a", "an", "the", "is", "are", "was", "were", "be", "been", "being",
        "have", "has", "had", "do", "does", "did", "will", "would", "could",
        "should", "may", "might", "must", "shall", "can", "need", "dare",
        "to", "of", "in", "for", "on", "with", "at", "by", "from", "as",
        "into", "through", "during", "before", "after", "above", "below",
        "between", "under", "again", "further", "then", "once", "here",
        "there", "when", "where", "why", "how", "all", "each", "few",
        "more", "most", "other", "some", "such", "no", "nor", "not",
        "only", "own", "same", "so", "than", "too", "very", "just",
        "and", "but", "if", "or", "because", "until", "while",
        "what", "which", "who", "whom", "this", "that", "these", "those",
        "am", "it", "its", "i", "me", "my", "myself", "we", "our", "ours",
        "you", "your", "yours", "he", "him", "his", "she", "her", "hers",
        "they", "them", "their", "theirs",
    }
)

_WHITESPACE = re.compile(r"\s+")
_NON_WORD = re.compile(r"[^\w\s]")


class SearchOptions(BaseModel):
    """Vector search parameters; unset values use the retriever defaults."""

    top_k: int | None = Field(default=None, ge=1)
    min_similarity: float | None = Field(default=None, ge=0.0, le=1.0)
    tags: list[str] | None = None
    document_ids: list[UUID] | None = None
    use_cache: bool = True

    @property
    def has_filters(self) -> bool:
        return bool(self.tags) or bool(self.document_ids)


class HybridSearchOptions(SearchOptions):
    """Search parameters plus the weights of the combined score."""

    vector_weight: float = Field(default=0.7, ge=0.0)
    keyword_weight: float = Field(default=0.3, ge=0.0)


class ChunkStore(Protocol):
    """Query surface the retriever needs from chunk persistence."""

    async def similarity_search(
        self,
        session: AsyncSession,
        embedding: Sequence[float],
        min_similarity: float,
        limit: int,
        tags: list[str] | None = None,
        document_ids: list[UUID] | None = None,
    ) -> list[ChunkSearchResult]: ...

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
    ) -> list[ChunkSearchResult]: ...

    async def count(self, session: AsyncSession) -> int: ...


def deduplicate_chunks(chunks: list[ChunkSearchResult]) -> list[ChunkSearchResult]:
    """
    Drop chunks whose normalized 100-character prefix was already seen.

    Overlapping windows of the same passage share a prefix signature; the
    first occurrence (highest ranked) wins.

    Args:
        chunks: Ranked search results

    Returns:
        list[ChunkSearchResult]: Results with near-duplicates removed, order kept
    """
    seen: set[str] = set()
    unique: list[ChunkSearchResult] = []
    for chunk in chunks:
        signature = _WHITESPACE.sub(" ", chunk.content.lower()).strip()[:SIGNATURE_LENGTH]
        if signature in seen:
            continue
        seen.add(signature)
        unique.append(chunk)
    return unique


def extract_search_terms(query: str) -> str:
    """
    Build an OR-combined tsquery from the meaningful words of a query.

    Args:
        query: Free-text user query

    Returns:
        str: Terms joined with ' | ', or '' when nothing usable remains
    """
    words = _NON_WORD.sub(" ", query.lower()).split()
    terms = [w for w in words if len(w) > 2 and w not in STOP_WORDS]
    return " | ".join(terms)


def get_retrieval_stats(chunks: list[ChunkSearchResult]) -> RetrievalStats:
    """Count, similarity spread and distinct source titles of a result set."""
    if not chunks:
        return RetrievalStats()

    similarities = [c.similarity for c in chunks]
    return RetrievalStats(
        count=len(chunks),
        avg_similarity=sum(similarities) / len(similarities),
        min_similarity=min(similarities),
        max_similarity=max(similarities),
        documents=list(dict.fromkeys(c.document_title for c in chunks)),
    )


class Retriever:
    """
    Similarity search orchestrator.

    Holds the shared similarity cache; the database session is passed per call.
    """

    def __init__(
        self,
        cache: SimilarityCache[ChunkSearchResult],
        chunk_store: ChunkStore,
        default_top_k: int = 8,
        default_min_similarity: float = 0.7,
    ) -> None:
        """
        Initialize retriever.

        Args:
            cache: Process-wide similarity cache
            chunk_store: Chunk persistence (chunk_crud in production)
            default_top_k: Results returned when options set none
            default_min_similarity: Threshold used when options set none
        """
        self.cache = cache
        self.chunk_store = chunk_store
        self.default_top_k = default_top_k
        self.default_min_similarity = default_min_similarity

    def _resolve(self, options: SearchOptions) -> tuple[int, float]:
        top_k = options.top_k or self.default_top_k
        min_similarity = (
            options.min_similarity
            if options.min_similarity is not None
            else self.default_min_similarity
        )
        return top_k, min_similarity

    async def search_relevant_chunks(
        self,
        db: AsyncSession,
        query_embedding: Sequence[float],
        options: SearchOptions | None = None,
    ) -> list[ChunkSearchResult]:
        """
        Return the most similar chunks above the threshold.

        Unfiltered queries are served from and written to the cache.

        Args:
            db: Async database session
            query_embedding: Embedded query
            options: Search parameters

        Returns:
            list[ChunkSearchResult]: At most top_k deduplicated results, best first

        Raises:
            RetrievalError: If the similarity query fails
        """
        options = options or SearchOptions()
        top_k, min_similarity = self._resolve(options)
        cacheable = options.use_cache and not options.has_filters

        if cacheable:
            cached = self.cache.get(query_embedding)
            if cached is not None:
                logger.debug(f"{__name__}:search_relevant_chunks - Cache hit")
                return cached[:top_k]

        try:
            async with db.begin_nested():
                candidates = await self.chunk_store.similarity_search(
                    db,
                    query_embedding,
                    min_similarity=min_similarity,
                    limit=top_k * VECTOR_FETCH_FACTOR,
                    tags=options.tags,
                    document_ids=options.document_ids,
                )
        except SQLAlchemyError as e:
            raise RetrievalError(
                "Similarity search failed", details={"error": str(e)}
            ) from e

        results = deduplicate_chunks(candidates)[:top_k]

        if cacheable:
            self.cache.set(query_embedding, results)

        logger.info(
            f"{__name__}:search_relevant_chunks - Retrieved {len(results)} chunks",
            extra={
                "candidates": len(candidates),
                "returned": len(results),
                "top_k": top_k,
                "min_similarity": min_similarity,
            },
        )
        return results

    async def search_relevant_chunks_hybrid(
        self,
        db: AsyncSession,
        query_embedding: Sequence[float],
        query_text: str,
        options: HybridSearchOptions | None = None,
    ) -> list[ChunkSearchResult]:
        """
        Rank by vector_weight * vector score + keyword_weight * full-text rank.

        Falls back to pure vector search when the query has no usable terms.
        Hybrid results are not cached.

        Args:
            db: Async database session
            query_embedding: Embedded query
            query_text: Raw query text for the keyword component
            options: Search parameters and weights

        Returns:
            list[ChunkSearchResult]: At most top_k deduplicated results with
                the combined score in `similarity`

        Raises:
            RetrievalError: If the hybrid query fails
        """
        options = options or HybridSearchOptions()
        search_terms = extract_search_terms(query_text)
        if not search_terms:
            return await self.search_relevant_chunks(db, query_embedding, options)

        top_k, min_similarity = self._resolve(options)
        try:
            async with db.begin_nested():
                candidates = await self.chunk_store.hybrid_search(
                    db,
                    query_embedding,
                    search_terms,
                    min_similarity=min_similarity,
                    limit=top_k * HYBRID_FETCH_FACTOR,
                    vector_weight=options.vector_weight,
                    keyword_weight=options.keyword_weight,
                    tags=options.tags,
                    document_ids=options.document_ids,
                )
        except SQLAlchemyError as e:
            raise RetrievalError("Hybrid search failed", details={"error": str(e)}) from e

        return deduplicate_chunks(candidates)[:top_k]

    async def has_any_chunks(self, db: AsyncSession) -> bool:
        """
        Return True if the knowledge base holds at least one chunk.

        Raises:
            RetrievalError: If the count query fails
        """
        try:
            async with db.begin_nested():
                count = await self.chunk_store.count(db)
        except SQLAlchemyError as e:
            raise RetrievalError("Chunk count failed", details={"error": str(e)}) from e
        return count > 0

    def clear_cache(self) -> None:
        self.cache.clear()
