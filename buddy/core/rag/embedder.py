"""
Embedding service.

Thin adapter over the active LLM provider for single and batch embeddings,
plus the pgvector literal format used by raw SQL queries.

Dependencies: buddy.core.llm
System role: Embedding generation for ingestion and queries
"""

from collections.abc import Sequence

from buddy.core.llm.types import LLMProvider


def format_embedding_for_pg(embedding: Sequence[float]) -> str:
    """
    Format an embedding as a pgvector literal.

    Args:
        embedding: Vector values

    Returns:
        str: '[v1,v2,...]'
    """
    return "[" + ",".join(repr(float(v)) for v in embedding) + "]"


class Embedder:
    """Embeds text through the configured provider."""

    def __init__(self, provider: LLMProvider) -> None:
        self.provider = provider

    async def embed_text(self, text: str) -> list[float]:
        """
        Embed a single text.

        Args:
            text: Query or chunk text

        Returns:
            list[float]: Embedding vector
        """
        embeddings = await self.provider.embed([text])
        return embeddings[0]

    async def embed_texts(self, texts: list[str]) -> list[list[float]]:
        """
        Embed many texts in one provider call.

        Args:
            texts: Texts to embed

        Returns:
            list[list[float]]: One vector per text; [] for empty input
        """
        if not texts:
            return []
        return await self.provider.embed(texts)
