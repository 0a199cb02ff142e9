"""
LLM provider factory.

Builds the configured provider with its resilience wiring: one circuit breaker
for chat (including stream opening) and one for embeddings, each with a retry
policy using the provider's per-attempt timeout. State changes and retries
are logged with service/operation tags.

ProviderRegistry owns the single provider instance for the process and
exposes breaker stats and manual reset for health endpoints.

Dependencies: python-dotenv, buddy.configs, buddy.core.llm, buddy.core.resilience
System role: Provider construction and lifecycle
"""

import logging
import os
import threading
from collections.abc import Callable
from typing import Any

from dotenv import load_dotenv

from buddy.configs import Settings, get_settings
from buddy.core.exceptions import ProviderAuthError
from buddy.core.llm.ollama_provider import OllamaProvider
from buddy.core.llm.openai_provider import OpenAIProvider
from buddy.core.llm.types import LLMProvider, ProviderType
from buddy.core.resilience import CircuitBreaker, CircuitState, RetryPolicy

load_dotenv()

logger = logging.getLogger(__name__)


def _state_change_logger(service: str, operation: str) -> Callable[[CircuitState, CircuitState], None]:
    def on_state_change(from_state: CircuitState, to_state: CircuitState) -> None:
        logger.info(
            f"{service} {operation} circuit breaker state changed: "
            f"{from_state.value} -> {to_state.value}",
            extra={
                "service": service,
                "operation": operation,
                "from_state": from_state.value,
                "to_state": to_state.value,
            },
        )

    return on_state_change


def _retry_logger(service: str, operation: str) -> Callable[[BaseException, int, float], None]:
    def on_retry(error: BaseException, attempt: int, delay_ms: float) -> None:
        logger.warning(
            f"{service} {operation} retry attempt {attempt}, waiting {round(delay_ms)}ms",
            extra={
                "service": service,
                "operation": operation,
                "attempt": attempt,
                "delay_ms": round(delay_ms),
                "error_msg": str(error),
            },
        )

    return on_retry


def _build_breaker(settings: Settings, service: str, operation: str) -> CircuitBreaker:
    resilience = settings.resilience
    return CircuitBreaker(
        failure_threshold=resilience.failure_threshold,
        success_threshold=resilience.success_threshold,
        timeout_ms=resilience.breaker_timeout_ms,
        on_state_change=_state_change_logger(service, operation),
        name=f"{service}-{operation}",
    )


def _build_retry_policy(
    settings: Settings,
    service: str,
    operation: str,
    timeout_ms: int,
) -> RetryPolicy:
    resilience = settings.resilience
    return RetryPolicy(
        max_attempts=resilience.retry_max_attempts,
        initial_delay_ms=resilience.retry_initial_delay_ms,
        max_delay_ms=resilience.retry_max_delay_ms,
        backoff_multiplier=resilience.retry_backoff_multiplier,
        timeout_ms=timeout_ms,
        on_retry=_retry_logger(service, operation),
    )


def create_provider(
    provider_type: ProviderType | str,
    settings: Settings | None = None,
    client: Any = None,
) -> LLMProvider:
    """
    Construct a provider for the given backend.

    Args:
        provider_type: Backend to build
        settings: Application settings (defaults to get_settings())
        client: Optional transport/SDK client to inject

    Returns:
        LLMProvider: Provider wired with breakers and retry policies

    Raises:
        ValueError: If the provider type is unknown
        ProviderAuthError: If the hosted provider has no API key
    """
    settings = settings or get_settings()
    llm = settings.llm

    try:
        provider_type = ProviderType(str(provider_type).lower())
    except ValueError:
        raise ValueError(
            f"Unknown LLM provider: {provider_type}. Must be 'ollama' or 'openai'."
        ) from None

    service = provider_type.value

    if provider_type is ProviderType.OLLAMA:
        logger.info(f"{__name__}:create_provider - Creating Ollama provider ({llm.ollama_base_url})")
        return OllamaProvider(
            base_url=llm.ollama_base_url,
            chat_model=llm.ollama_chat_model,
            embedding_model=llm.ollama_embedding_model,
            default_temperature=llm.default_temperature,
            chat_breaker=_build_breaker(settings, service, "chat"),
            embedding_breaker=_build_breaker(settings, service, "embeddings"),
            chat_retry_policy=_build_retry_policy(settings, service, "chat", llm.ollama_timeout_ms),
            embedding_retry_policy=_build_retry_policy(
                settings, service, "embeddings", llm.ollama_timeout_ms
            ),
            client=client,
        )

    api_key = llm.openai_api_key or os.environ.get("OPENAI_API_KEY")
    if not api_key:
        raise ProviderAuthError(
            "OpenAI API key is not configured (set LLM_OPENAI_API_KEY)",
            provider=service,
        )

    logger.info(f"{__name__}:create_provider - Creating OpenAI provider")
    return OpenAIProvider(
        api_key=api_key,
        chat_model=llm.openai_chat_model,
        embedding_model=llm.openai_embedding_model,
        embedding_dimensions=settings.rag.embedding_dimensions,
        default_temperature=llm.default_temperature,
        chat_breaker=_build_breaker(settings, service, "chat"),
        embedding_breaker=_build_breaker(settings, service, "embeddings"),
        chat_retry_policy=_build_retry_policy(settings, service, "chat", llm.openai_timeout_ms),
        embedding_retry_policy=_build_retry_policy(
            settings, service, "embeddings", llm.openai_timeout_ms
        ),
        timeout_ms=llm.openai_timeout_ms,
        client=client,
    )


class ProviderRegistry:
    """
    Lazily creates and caches the configured provider.

    Provider selection is read once; there is no hot swap.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        provider: LLMProvider | None = None,
    ) -> None:
        """
        Initialize registry.

        Args:
            settings: Application settings (defaults to get_settings())
            provider: Pre-built provider (tests)
        """
        self.settings = settings or get_settings()
        self._provider = provider
        self._lock = threading.Lock()

    @property
    def provider_type(self) -> ProviderType:
        if self._provider is not None:
            return self._provider.provider_type
        return ProviderType(self.settings.llm.provider.lower())

    def get_provider(self) -> LLMProvider:
        """Return the process-wide provider, creating it on first use."""
        with self._lock:
            if self._provider is None:
                self._provider = create_provider(self.settings.llm.provider, self.settings)
            return self._provider

    def get_circuit_breaker_stats(self) -> dict[str, dict[str, Any]]:
        """
        Snapshot chat and embedding breaker stats for the active provider.

        Returns:
            dict: {"chat": {...}, "embedding": {...}}
        """
        provider = self.get_provider()
        return {
            "chat": provider.chat_breaker.get_stats(),
            "embedding": provider.embedding_breaker.get_stats(),
        }

    def reset_circuit_breakers(self) -> None:
        """Force both breakers of the active provider back to CLOSED."""
        provider = self.get_provider()
        provider.chat_breaker.reset()
        provider.embedding_breaker.reset()

    async def aclose(self) -> None:
        if self._provider is not None:
            await self._provider.aclose()
            self._provider = None
