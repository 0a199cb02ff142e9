"""
Ollama provider.

HTTP client for a local Ollama server: non-streaming and NDJSON-streaming chat
via /api/chat and embeddings via /api/embeddings (one text per request,
fanned out concurrently). Every call runs through the operation's circuit
breaker and retry policy; transport and status failures are normalized into
the provider error taxonomy.

Dependencies: httpx, buddy.core.resilience, buddy.core.exceptions
System role: Local model backend
"""

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx

from buddy.core.exceptions import (
    ProviderAPIError,
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

PROVIDER_NAME = ProviderType.OLLAMA.value


class OllamaProvider(LLMProvider):
    """LLMProvider backed by the Ollama REST API."""

    provider_type = ProviderType.OLLAMA

    def __init__(
        self,
        base_url: str,
        chat_model: str,
        embedding_model: str,
        default_temperature: float,
        chat_breaker: CircuitBreaker,
        embedding_breaker: CircuitBreaker,
        chat_retry_policy: RetryPolicy,
        embedding_retry_policy: RetryPolicy,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """
        Initialize provider.

        Args:
            base_url: Ollama server URL (e.g. http://localhost:11434)
            chat_model: Default chat model
            embedding_model: Embedding model
            default_temperature: Temperature used when the call sets none
            chat_breaker: Breaker guarding chat and stream opening
            embedding_breaker: Breaker guarding embeddings
            chat_retry_policy: Retry policy for chat
            embedding_retry_policy: Retry policy for embeddings
            client: Preconfigured HTTP client (tests inject a mock transport)
        """
        self.base_url = base_url.rstrip("/")
        self.chat_model = chat_model
        self.embedding_model = embedding_model
        self.default_temperature = default_temperature
        self.chat_breaker = chat_breaker
        self.embedding_breaker = embedding_breaker
        self.chat_retry_policy = chat_retry_policy
        self.embedding_retry_policy = embedding_retry_policy
        self.client = client or httpx.AsyncClient(base_url=self.base_url, timeout=None)

    def _normalize_error(self, exc: BaseException) -> ProviderError:
        if isinstance(exc, ProviderError):
            return exc
        if isinstance(exc, (httpx.TimeoutException, asyncio.TimeoutError)):
            return ProviderTimeoutError("Ollama request timed out", provider=PROVIDER_NAME)
        if isinstance(exc, (httpx.ConnectError, ConnectionError)):
            return ProviderConnectionError(
                "Cannot connect to Ollama. Make sure Ollama is running.",
                provider=PROVIDER_NAME,
            )
        if isinstance(exc, httpx.TransportError):
            return ProviderConnectionError(
                f"Ollama transport error: {exc}", provider=PROVIDER_NAME
            )

        message = str(exc).lower()
        if "model" in message and "not found" in message:
            return ProviderModelNotFoundError(
                f"Model not found. Run: ollama pull {self.chat_model}",
                provider=PROVIDER_NAME,
            )
        return ProviderAPIError(str(exc) or "Ollama API error", provider=PROVIDER_NAME)

    def _status_error(self, status_code: int, body: str) -> ProviderError:
        message = f"Ollama API error ({status_code}): {body}"
        lowered = body.lower()
        if status_code == 404 and "model" in lowered and "not found" in lowered:
            return ProviderModelNotFoundError(
                f"Model not found. Run: ollama pull {self.chat_model}",
                provider=PROVIDER_NAME,
                status_code=status_code,
            )
        if status_code == 429:
            return ProviderRateLimitError(message, provider=PROVIDER_NAME, status_code=status_code)
        if 400 <= status_code < 500:
            return ProviderInvalidRequestError(
                message, provider=PROVIDER_NAME, status_code=status_code
            )
        return ProviderAPIError(message, provider=PROVIDER_NAME, status_code=status_code)

    async def _post(self, endpoint: str, body: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await self.client.post(endpoint, json=body)
        except Exception as exc:
            raise self._normalize_error(exc) from exc

        if response.is_error:
            raise self._status_error(response.status_code, response.text or "Unknown error")

        try:
            return response.json()
        except ValueError as exc:
            raise ProviderAPIError(
                "Malformed JSON from Ollama", provider=PROVIDER_NAME
            ) from exc

    def _chat_payload(
        self,
        messages: list[LLMMessage],
        options: ChatOptions | None,
        stream: bool,
    ) -> dict[str, Any]:
        options = options or ChatOptions()
        generation: dict[str, Any] = {
            "temperature": (
                options.temperature
                if options.temperature is not None
                else self.default_temperature
            ),
        }
        if options.max_tokens is not None:
            generation["num_predict"] = options.max_tokens

        return {
            "model": options.model or self.chat_model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "stream": stream,
            "options": generation,
        }

    async def chat(
        self,
        messages: list[LLMMessage],
        options: ChatOptions | None = None,
    ) -> str:
        payload = self._chat_payload(messages, options, stream=False)

        async def attempt() -> str:
            result = await self._post("/api/chat", payload)
            content = (result.get("message") or {}).get("content")
            if not content:
                raise ProviderAPIError("No response from Ollama", provider=PROVIDER_NAME)
            return content

        return await self.chat_breaker.execute(
            lambda: with_retry(attempt, self.chat_retry_policy)
        )

    async def _open_stream(self, payload: dict[str, Any]) -> httpx.Response:
        request = self.client.build_request("POST", "/api/chat", json=payload)
        try:
            response = await self.client.send(request, stream=True)
        except Exception as exc:
            raise self._normalize_error(exc) from exc

        if response.is_error:
            body = (await response.aread()).decode("utf-8", errors="replace")
            await response.aclose()
            raise self._status_error(response.status_code, body or "Unknown error")
        return response

    async def _iter_stream(self, payload: dict[str, Any]) -> AsyncIterator[StreamChunk]:
        response = await self.chat_breaker.execute(lambda: self._open_stream(payload))
        try:
            async for line in response.aiter_lines():
                if not line.strip():
                    continue
                try:
                    data = json.loads(line)
                except json.JSONDecodeError:
                    logger.debug(f"{__name__}:_iter_stream - Skipping malformed NDJSON line")
                    continue

                chunk = StreamChunk(
                    content=(data.get("message") or {}).get("content") or "",
                    done=bool(data.get("done", False)),
                )
                yield chunk
                if chunk.done:
                    return
        except ProviderError:
            raise
        except Exception as exc:
            raise self._normalize_error(exc) from exc
        finally:
            await response.aclose()

    def chat_stream(
        self,
        messages: list[LLMMessage],
        options: StreamOptions | None = None,
    ) -> AsyncIterator[StreamChunk]:
        options = options or StreamOptions()
        payload = self._chat_payload(messages, options, stream=True)
        return channel_stream(self._iter_stream(payload), options.cancel_event)

    async def _embed_one(self, text: str) -> list[float]:
        result = await self._post(
            "/api/embeddings",
            {"model": self.embedding_model, "prompt": text},
        )
        embedding = result.get("embedding")
        if not isinstance(embedding, list):
            raise ProviderAPIError(
                "Invalid embedding response from Ollama", provider=PROVIDER_NAME
            )
        return embedding

    async def embed(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        async def attempt() -> list[list[float]]:
            return list(await asyncio.gather(*(self._embed_one(text) for text in texts)))

        return await self.embedding_breaker.execute(
            lambda: with_retry(attempt, self.embedding_retry_policy)
        )

    async def aclose(self) -> None:
        await self.client.aclose()
