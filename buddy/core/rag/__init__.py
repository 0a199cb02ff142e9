"""
Retrieval-augmented generation components.

Exports:
  - split_text_into_chunks(): Overlapping sentence-aware chunker
  - Embedder, format_embedding_for_pg(): Embedding adapter
  - SimilarityCache: TTL/size-bounded search result cache
  - Retriever, SearchOptions, HybridSearchOptions: Vector and hybrid search
  - deduplicate_chunks(), extract_search_terms(), get_retrieval_stats()
  - build_prompt(), format_context_with_sources(), get_settings_or_defaults()
"""

from buddy.core.rag.cache import SimilarityCache
from buddy.core.rag.chunker import split_text_into_chunks
from buddy.core.rag.embedder import Embedder, format_embedding_for_pg
from buddy.core.rag.prompt_builder import (
    DEFAULT_SYSTEM_PROMPT,
    ResolvedChatSettings,
    build_prompt,
    format_context_with_sources,
    get_settings_or_defaults,
)
from buddy.core.rag.retriever import (
    HybridSearchOptions,
    Retriever,
    SearchOptions,
    deduplicate_chunks,
    extract_search_terms,
    get_retrieval_stats,
)

__all__ = [
    "DEFAULT_SYSTEM_PROMPT",
    "Embedder",
    "HybridSearchOptions",
    "ResolvedChatSettings",
    "Retriever",
    "SearchOptions",
    "SimilarityCache",
    "build_prompt",
    "deduplicate_chunks",
    "extract_search_terms",
    "format_context_with_sources",
    "format_embedding_for_pg",
    "get_retrieval_stats",
    "get_settings_or_defaults",
    "split_text_into_chunks",
]
