"""
Retrieval configuration settings.

Chunking, embedding dimensionality, similarity thresholds, conversation
history length and cache sizing for the RAG pipeline.

Dependencies: pydantic, pydantic_settings
System role: Retrieval pipeline configuration
"""

from pydantic import Field
from pydantic_settings import SettingsConfigDict

from buddy.configs.base import BaseSettings

# Local embedding models produce lower cosine scores for the same relevance.
DEFAULT_MIN_SIMILARITY = {
    "openai": 0.7,
    "ollama": 0.4,
}


class RAGSettings(BaseSettings):
    """RAG pipeline configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="RAG_",
        case_sensitive=False,
        extra="ignore",
    )

    chunk_size: int = Field(default=500, description="Maximum characters per chunk")
    chunk_overlap: int = Field(default=50, description="Characters shared by consecutive chunks")
    default_top_k: int = Field(default=8, description="Number of chunks to retrieve")
    min_similarity: float | None = Field(
        default=None,
        description="Minimum cosine similarity (0.0-1.0); provider default when unset",
    )
    embedding_dimensions: int = Field(
        default=1536,
        description="Embedding width; must match the vector column",
    )
    max_conversation_history: int = Field(
        default=10,
        description="Prior messages included in the prompt",
    )

    cache_ttl_seconds: float = Field(default=300.0, description="Search cache entry lifetime")
    cache_max_size: int = Field(default=100, description="Maximum cached query fingerprints")

    hybrid_vector_weight: float = Field(default=0.7, description="Vector score weight in hybrid search")
    hybrid_keyword_weight: float = Field(default=0.3, description="Keyword score weight in hybrid search")

    def resolve_min_similarity(self, provider: str) -> float:
        """
        Get the similarity threshold for the active provider.

        Args:
            provider: Provider name ('openai' or 'ollama')

        Returns:
            float: Configured threshold, or the provider default when unset
        """
        if self.min_similarity is not None:
            return self.min_similarity
        return DEFAULT_MIN_SIMILARITY.get(provider.lower(), 0.7)
