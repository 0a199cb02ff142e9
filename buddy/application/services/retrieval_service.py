"""
Retrieval diagnostics service.

Runs retrieval for a query without generating an answer, with timings and
result statistics, and exposes similarity cache counters.

Dependencies: buddy.core.rag
System role: Admin retrieval tuning
"""

import logging
import time

from sqlalchemy.ext.asyncio import AsyncSession

from buddy.core.rag.embedder import Embedder
from buddy.core.rag.retriever import (
    HybridSearchOptions,
    Retriever,
    SearchOptions,
    get_retrieval_stats,
)
from buddy.models.retrieval import CacheStatsResponse, RagTestRequest, RagTestResponse

logger = logging.getLogger(__name__)


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


class RetrievalService:
    """Admin retrieval test and cache management."""

    def __init__(
        self,
        db: AsyncSession,
        retriever: Retriever,
        embedder: Embedder,
        hybrid_vector_weight: float = 0.7,
        hybrid_keyword_weight: float = 0.3,
    ) -> None:
        self.db = db
        self.retriever = retriever
        self.embedder = embedder
        self.hybrid_vector_weight = hybrid_vector_weight
        self.hybrid_keyword_weight = hybrid_keyword_weight

    async def test_retrieval(self, request: RagTestRequest) -> RagTestResponse:
        """
        Embed the query and run vector or hybrid search.

        Args:
            request: Query and search overrides

        Returns:
            RagTestResponse: Results, stats and embedding/search timings
        """
        query = request.query.strip()

        start = time.perf_counter()
        query_embedding = await self.embedder.embed_text(query)
        embedding_ms = _elapsed_ms(start)

        search_start = time.perf_counter()
        if request.hybrid:
            results = await self.retriever.search_relevant_chunks_hybrid(
                self.db,
                query_embedding,
                query,
                HybridSearchOptions(
                    top_k=request.top_k,
                    min_similarity=request.min_similarity,
                    tags=request.tags,
                    document_ids=request.document_ids,
                    vector_weight=self.hybrid_vector_weight,
                    keyword_weight=self.hybrid_keyword_weight,
                ),
            )
        else:
            results = await self.retriever.search_relevant_chunks(
                self.db,
                query_embedding,
                SearchOptions(
                    top_k=request.top_k,
                    min_similarity=request.min_similarity,
                    tags=request.tags,
                    document_ids=request.document_ids,
                ),
            )
        search_ms = _elapsed_ms(search_start)

        logger.info(
            f"{__name__}:test_retrieval - {len(results)} results",
            extra={"hybrid": request.hybrid, "embedding_ms": embedding_ms, "search_ms": search_ms},
        )
        return RagTestResponse(
            query=query,
            results=results,
            stats=get_retrieval_stats(results),
            embedding_ms=embedding_ms,
            search_ms=search_ms,
            total_ms=round(embedding_ms + search_ms, 2),
        )

    def cache_stats(self) -> CacheStatsResponse:
        return CacheStatsResponse(**self.retriever.cache.stats())

    def clear_cache(self) -> None:
        self.retriever.clear_cache()
