"""
Test suite for provider construction and the provider registry.

Tests backend selection, breaker and retry wiring from settings, the missing
API key error, and registry caching, stats and reset.

System role: Verification of provider lifecycle
"""

from unittest.mock import AsyncMock

import pytest

from buddy.configs import Settings
from buddy.core.exceptions import ProviderAuthError
from buddy.core.llm.factory import ProviderRegistry, create_provider
from buddy.core.llm.ollama_provider import OllamaProvider
from buddy.core.llm.openai_provider import OpenAIProvider
from buddy.core.llm.types import ProviderType
from buddy.core.resilience import CircuitState


@pytest.fixture
def no_openai_key(monkeypatch) -> None:
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("LLM_OPENAI_API_KEY", raising=False)


@pytest.fixture
def settings(monkeypatch, no_openai_key) -> Settings:
    monkeypatch.setenv("RESILIENCE_FAILURE_THRESHOLD", "3")
    monkeypatch.setenv("RESILIENCE_RETRY_MAX_ATTEMPTS", "4")
    monkeypatch.setenv("LLM_OLLAMA_TIMEOUT_MS", "1234")
    return Settings()


class TestCreateProvider:
    """Tests for create_provider."""

    @pytest.mark.asyncio
    async def test_ollama_should_be_wired_from_settings(self, settings: Settings) -> None:
        # Act
        provider = create_provider("OLLAMA", settings)

        # Assert
        try:
            assert isinstance(provider, OllamaProvider)
            assert provider.provider_type is ProviderType.OLLAMA
            assert provider.chat_breaker.failure_threshold == 3
            assert provider.chat_breaker.name == "ollama-chat"
            assert provider.embedding_breaker.name == "ollama-embeddings"
            assert provider.chat_retry_policy.max_attempts == 4
            assert provider.chat_retry_policy.timeout_ms == 1234
            assert provider.chat_breaker is not provider.embedding_breaker
        finally:
            await provider.aclose()

    @pytest.mark.asyncio
    async def test_openai_should_use_configured_key(self, monkeypatch, no_openai_key) -> None:
        # Arrange
        monkeypatch.setenv("LLM_OPENAI_API_KEY", "sk-test")

        # Act
        provider = create_provider(ProviderType.OPENAI, Settings())

        # Assert
        try:
            assert isinstance(provider, OpenAIProvider)
            assert provider.embedding_dimensions == 1536
        finally:
            await provider.aclose()

    def test_openai_without_key_should_raise_auth_error(self, settings: Settings) -> None:
        with pytest.raises(ProviderAuthError):
            create_provider("openai", settings)

    def test_unknown_provider_should_raise_value_error(self, settings: Settings) -> None:
        with pytest.raises(ValueError, match="Unknown LLM provider"):
            create_provider("anthropic", settings)


class TestProviderRegistry:
    """Tests for ProviderRegistry."""

    def test_provider_type_should_come_from_settings_before_creation(
        self, monkeypatch, no_openai_key
    ) -> None:
        monkeypatch.setenv("LLM_PROVIDER", "ollama")

        assert ProviderRegistry(Settings()).provider_type is ProviderType.OLLAMA

    @pytest.mark.asyncio
    async def test_provider_should_be_created_once(self, monkeypatch, no_openai_key) -> None:
        # Arrange
        monkeypatch.setenv("LLM_PROVIDER", "ollama")
        registry = ProviderRegistry(Settings())

        # Act
        first = registry.get_provider()
        second = registry.get_provider()

        # Assert
        assert first is second
        await registry.aclose()

    def test_missing_key_should_surface_on_first_use(self, settings: Settings) -> None:
        registry = ProviderRegistry(settings)

        with pytest.raises(ProviderAuthError):
            registry.get_circuit_breaker_stats()

    @pytest.mark.asyncio
    async def test_reset_should_close_open_breakers(self, fake_provider) -> None:
        # Arrange
        registry = ProviderRegistry(provider=fake_provider)
        fake_provider.chat_breaker.failure_threshold = 1
        with pytest.raises(RuntimeError):
            await fake_provider.chat_breaker.execute(AsyncMock(side_effect=RuntimeError("down")))
        assert registry.get_circuit_breaker_stats()["chat"]["state"] == CircuitState.OPEN.value

        # Act
        registry.reset_circuit_breakers()

        # Assert
        stats = registry.get_circuit_breaker_stats()
        assert stats["chat"]["state"] == CircuitState.CLOSED.value
        assert stats["embedding"]["state"] == CircuitState.CLOSED.value
