"""
Dependency injection container.

Factory functions for FastAPI dependencies. Long-lived objects (provider
registry, similarity cache, metrics store, retriever) live in one
ServiceContainer per process; services are built per request around the
request's AsyncSession.

Dependencies: buddy.configs, buddy.application, buddy.boundary, buddy.core
System role: DI container for service injection
"""

import logging

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from buddy.application.services import (
    AnalyticsService,
    ChatService,
    ConversationService,
    DocumentService,
    HealthService,
    RetrievalService,
    SettingsService,
)
from buddy.boundary.db import chunk_crud, get_async_db
from buddy.configs import Settings, get_settings
from buddy.core.llm import LLMProvider, ProviderRegistry, ProviderType
from buddy.core.rag import Embedder, Retriever, SimilarityCache
from buddy.models.retrieval import ChunkSearchResult
from buddy.observability.metrics import MetricsStore

logger = logging.getLogger(__name__)


class ServiceContainer:
    """Container for process-wide service dependencies."""

    def __init__(
        self,
        settings: Settings | None = None,
        registry: ProviderRegistry | None = None,
        cache: SimilarityCache[ChunkSearchResult] | None = None,
        metrics: MetricsStore | None = None,
    ) -> None:
        """
        Initialize container.

        Args:
            settings: Application settings (defaults to get_settings())
            registry: Provider registry (built from settings when None)
            cache: Similarity cache (built from settings when None)
            metrics: Timing store (built from settings when None)
        """
        self.settings = settings or get_settings()
        self.registry = registry or ProviderRegistry(self.settings)
        if cache is None:
            cache = SimilarityCache(
                ttl_seconds=self.settings.rag.cache_ttl_seconds,
                max_size=self.settings.rag.cache_max_size,
            )
        self.cache = cache
        self.metrics = metrics or MetricsStore(
            max_samples=self.settings.metrics_max_samples,
            retention_seconds=self.settings.metrics_retention_hours * 3600,
        )
        self._retriever: Retriever | None = None

    @property
    def provider(self) -> LLMProvider:
        return self.registry.get_provider()

    @property
    def provider_type(self) -> ProviderType:
        return self.registry.provider_type

    @property
    def default_chat_model(self) -> str:
        """Chat model configured for the active provider."""
        llm = self.settings.llm
        if self.provider_type is ProviderType.OLLAMA:
            return llm.ollama_chat_model
        return llm.openai_chat_model

    @property
    def retriever(self) -> Retriever:
        """Get cached retriever."""
        if self._retriever is None:
            rag = self.settings.rag
            self._retriever = Retriever(
                cache=self.cache,
                chunk_store=chunk_crud,
                default_top_k=rag.default_top_k,
                default_min_similarity=rag.resolve_min_similarity(self.provider_type.value),
            )
        return self._retriever

    @property
    def embedder(self) -> Embedder:
        return Embedder(self.provider)

    async def aclose(self) -> None:
        """Release provider transports and drop cached results."""
        await self.registry.aclose()
        self.cache.clear()


_container: ServiceContainer | None = None


def get_container() -> ServiceContainer:
    """Get the process-wide service container, creating it on first use."""
    global _container
    if _container is None:
        _container = ServiceContainer()
    return _container


def set_container(container: ServiceContainer | None) -> None:
    """Install a container (application startup, tests)."""
    global _container
    _container = container


def get_settings_dependency(
    container: ServiceContainer = Depends(get_container),
) -> Settings:
    """Get settings singleton."""
    return container.settings


def get_chat_service(
    db: AsyncSession = Depends(get_async_db),
    container: ServiceContainer = Depends(get_container),
) -> ChatService:
    """
    Get chat service instance.

    Args:
        db: Async database session (injected via Depends)
        container: Service container (injected via Depends)

    Returns:
        ChatService: Chat service wired to the active provider
    """
    return ChatService(
        db=db,
        provider=container.provider,
        retriever=container.retriever,
        embedder=container.embedder,
        rag_settings=container.settings.rag,
        default_model_name=container.default_chat_model,
        metrics=container.metrics,
    )


def get_document_service(
    db: AsyncSession = Depends(get_async_db),
    container: ServiceContainer = Depends(get_container),
) -> DocumentService:
    """
    Get document service instance.

    Args:
        db: Async database session (injected via Depends)
        container: Service container (injected via Depends)

    Returns:
        DocumentService: Document service sharing the retriever's cache
    """
    return DocumentService(
        db=db,
        embedder=container.embedder,
        retriever=container.retriever,
        rag_settings=container.settings.rag,
    )


def get_conversation_service(db: AsyncSession = Depends(get_async_db)) -> ConversationService:
    """Get conversation service instance."""
    return ConversationService(db=db)


def get_settings_service(
    db: AsyncSession = Depends(get_async_db),
    container: ServiceContainer = Depends(get_container),
) -> SettingsService:
    """Get chat settings service instance."""
    return SettingsService(
        db=db,
        provider_type=container.provider_type,
        default_model_name=container.default_chat_model,
    )


def get_retrieval_service(
    db: AsyncSession = Depends(get_async_db),
    container: ServiceContainer = Depends(get_container),
) -> RetrievalService:
    """Get retrieval diagnostics service instance."""
    rag = container.settings.rag
    return RetrievalService(
        db=db,
        retriever=container.retriever,
        embedder=container.embedder,
        hybrid_vector_weight=rag.hybrid_vector_weight,
        hybrid_keyword_weight=rag.hybrid_keyword_weight,
    )


def get_analytics_service(
    container: ServiceContainer = Depends(get_container),
) -> AnalyticsService:
    """Get performance analytics service instance."""
    return AnalyticsService(metrics=container.metrics)


def get_health_service(
    db: AsyncSession = Depends(get_async_db),
    container: ServiceContainer = Depends(get_container),
) -> HealthService:
    """Get health service instance."""
    return HealthService(db=db, registry=container.registry, cache=container.cache)
