"""
OpenAI provider.

Chat completions (blocking and streamed) and embeddings through the official
async SDK. SDK-level retries are disabled; the circuit breaker and retry
policy own that concern. SDK errors are normalized into the provider error
taxonomy.

Dependencies: openai, buddy.core.resilience, buddy.core.exceptions
System role: Hosted model backend
"""

import logging
from collections.abc import AsyncIterator
from typing import Any

import openai
from openai import AsyncOpenAI

from buddy.core.exceptions import (
    ProviderAPIError,
    ProviderAuthError,
    ProviderConnectionError,
    ProviderError,
    ProviderInvalidRequestError,
    ProviderModelNotFoundError,
    ProviderRateLimitError,
    ProviderTimeoutError,
)
from buddy.core.llm.streaming import channel_stream
from buddy.core.llm.types import (
    ChatOptions,
    LLMMessage,
    LLMProvider,
    ProviderType,
    StreamChunk,
    StreamOptions,
)
from buddy.core.resilience import CircuitBreaker, RetryPolicy, with_retry

logger = logging.getLogger(__name__)

PROVIDER_NAME = ProviderType.OPENAI.value


def normalize_openai_error(exc: BaseException) -> ProviderError:
    """
    Map an SDK (or unexpected) exception onto the provider taxonomy.

    Args:
        exc: Exception raised while talking to OpenAI

    Returns:
        ProviderError: Normalized error; the caller raises it `from exc`
    """
    if isinstance(exc, ProviderError):
        return exc

    # APITimeoutError subclasses APIConnectionError
    if isinstance(exc, openai.APITimeoutError):
        return ProviderTimeoutError("OpenAI request timed out", provider=PROVIDER_NAME)
    if isinstance(exc, openai.APIConnectionError):
        return ProviderConnectionError(
            "Cannot connect to OpenAI", provider=PROVIDER_NAME
        )

    if isinstance(exc, openai.APIStatusError):
        status = exc.status_code
        code = getattr(exc, "code", None)
        if status == 429 or code == "rate_limit_exceeded":
            return ProviderRateLimitError(
                "Rate limit exceeded. Please try again later.",
                provider=PROVIDER_NAME,
                status_code=status,
            )
        if status == 401 or code == "invalid_api_key":
            return ProviderAuthError(
                "Invalid OpenAI API key", provider=PROVIDER_NAME, status_code=status
            )
        if code == "model_not_found":
            return ProviderModelNotFoundError(
                f"Model not found: {exc.message}", provider=PROVIDER_NAME, status_code=status
            )
        if status == 400:
            return ProviderInvalidRequestError(
                f"Invalid request: {exc.message}", provider=PROVIDER_NAME, status_code=status
            )
        return ProviderAPIError(
            exc.message or "OpenAI API error", provider=PROVIDER_NAME, status_code=status
        )

    if isinstance(exc, openai.APIError):
        return ProviderAPIError(exc.message or "OpenAI API error", provider=PROVIDER_NAME)

    return ProviderAPIError(str(exc) or "Unknown OpenAI error", provider=PROVIDER_NAME)


class OpenAIProvider(LLMProvider):
    """LLMProvider backed by the OpenAI API."""

    provider_type = ProviderType.OPENAI

    def __init__(
        self,
        api_key: str | None,
        chat_model: str,
        embedding_model: str,
        embedding_dimensions: int,
        default_temperature: float,
        chat_breaker: CircuitBreaker,
        embedding_breaker: CircuitBreaker,
        chat_retry_policy: RetryPolicy,
        embedding_retry_policy: RetryPolicy,
        timeout_ms: int = 30000,
        client: AsyncOpenAI | None = None,
    ) -> None:
        """
        Initialize provider.

        Args:
            api_key: OpenAI API key
            chat_model: Default chat model
            embedding_model: Embedding model
            embedding_dimensions: Requested embedding width
            default_temperature: Temperature used when the call sets none
            chat_breaker: Breaker guarding chat and stream opening
            embedding_breaker: Breaker guarding embeddings
            chat_retry_policy: Retry policy for chat
            embedding_retry_policy: Retry policy for embeddings
            timeout_ms: SDK request timeout
            client: Preconfigured SDK client (tests inject a mock)
        """
        self.chat_model = chat_model
        self.embedding_model = embedding_model
        self.embedding_dimensions = embedding_dimensions
        self.default_temperature = default_temperature
        self.chat_breaker = chat_breaker
        self.embedding_breaker = embedding_breaker
        self.chat_retry_policy = chat_retry_policy
        self.embedding_retry_policy = embedding_retry_policy
        self.client = client or AsyncOpenAI(
            api_key=api_key,
            timeout=timeout_ms / 1000,
            max_retries=0,
        )

    def _completion_kwargs(
        self,
        messages: list[LLMMessage],
        options: ChatOptions | None,
    ) -> dict[str, Any]:
        options = options or ChatOptions()
        kwargs: dict[str, Any] = {
            "model": options.model or self.chat_model,
            "temperature": (
                options.temperature
                if options.temperature is not None
                else self.default_temperature
            ),
            "messages": [{"role": m.role, "content": m.content} for m in messages],
        }
        if options.max_tokens is not None:
            kwargs["max_tokens"] = options.max_tokens
        return kwargs

    async def chat(
        self,
        messages: list[LLMMessage],
        options: ChatOptions | None = None,
    ) -> str:
        kwargs = self._completion_kwargs(messages, options)

        async def attempt() -> str:
            try:
                result = await self.client.chat.completions.create(**kwargs)
            except Exception as exc:
                raise normalize_openai_error(exc) from exc

            content = result.choices[0].message.content if result.choices else None
            if not content:
                raise ProviderAPIError("No response from OpenAI", provider=PROVIDER_NAME)
            return content

        return await self.chat_breaker.execute(
            lambda: with_retry(attempt, self.chat_retry_policy)
        )

    async def _open_stream(self, kwargs: dict[str, Any]):
        try:
            return await self.client.chat.completions.create(**kwargs, stream=True)
        except Exception as exc:
            raise normalize_openai_error(exc) from exc

    async def _iter_stream(self, kwargs: dict[str, Any]) -> AsyncIterator[StreamChunk]:
        stream = await self.chat_breaker.execute(lambda: self._open_stream(kwargs))
        try:
            async for event in stream:
                if not event.choices:
                    continue
                choice = event.choices[0]
                content = (choice.delta.content if choice.delta else None) or ""
                chunk = StreamChunk(content=content, done=choice.finish_reason is not None)
                yield chunk
                if chunk.done:
                    return
        except ProviderError:
            raise
        except Exception as exc:
            raise normalize_openai_error(exc) from exc
        finally:
            await stream.close()

    def chat_stream(
        self,
        messages: list[LLMMessage],
        options: StreamOptions | None = None,
    ) -> AsyncIterator[StreamChunk]:
        options = options or StreamOptions()
        kwargs = self._completion_kwargs(messages, options)
        return channel_stream(self._iter_stream(kwargs), options.cancel_event)

    async def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        async def attempt() -> list[list[float]]:
            try:
                result = await self.client.embeddings.create(
                    model=self.embedding_model,
                    input=texts,
                    dimensions=self.embedding_dimensions,
                )
            except Exception as exc:
                raise normalize_openai_error(exc) from exc
            return [item.embedding for item in sorted(result.data, key=lambda d: d.index)]

        return await self.embedding_breaker.execute(
            lambda: with_retry(attempt, self.embedding_retry_policy)
        )

    async def aclose(self) -> None:
        await self.client.close()
