"""
Test suite for the Ollama provider.

Tests request payloads, NDJSON streaming, embedding fan-out and error
normalization against an httpx.MockTransport standing in for the server.

System role: Verification of the local model backend
"""

import json

import httpx
import pytest

from buddy.core.exceptions import (
    CircuitOpenError,
    ProviderAPIError,
    ProviderConnectionError,
    ProviderInvalidRequestError,
    ProviderModelNotFoundError,
)
from buddy.core.llm.ollama_provider import OllamaProvider
from buddy.core.llm.types import ChatOptions, LLMMessage, StreamOptions
from buddy.core.resilience import CircuitBreaker, RetryPolicy

BASE_URL = "http://ollama.test"
MESSAGES = [
    LLMMessage(role="system", content="Be brief."),
    LLMMessage(role="user", content="Hi"),
]


def make_provider(handler, failure_threshold: int = 5, max_attempts: int = 1) -> OllamaProvider:
    policy = RetryPolicy(max_attempts=max_attempts, initial_delay_ms=0, timeout_ms=None)
    return OllamaProvider(
        base_url=BASE_URL,
        chat_model="llama3.1",
        embedding_model="nomic-embed-text",
        default_temperature=0.7,
        chat_breaker=CircuitBreaker(failure_threshold=failure_threshold, name="ollama-chat"),
        embedding_breaker=CircuitBreaker(name="ollama-embeddings"),
        chat_retry_policy=policy,
        embedding_retry_policy=policy,
        client=httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler)),
    )


def ndjson(*objects: dict) -> bytes:
    return "\n".join(json.dumps(o) for o in objects).encode()


class TestOllamaChat:
    """Test suite for non-streaming chat."""

    @pytest.mark.asyncio
    async def test_chat_should_post_payload_and_return_content(self) -> None:
        # Arrange
        requests: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(json.loads(request.content))
            return httpx.Response(200, json={"message": {"role": "assistant", "content": "Hello!"}})

        provider = make_provider(handler)

        # Act
        answer = await provider.chat(MESSAGES, ChatOptions(temperature=0.2, max_tokens=64))

        # Assert
        assert answer == "Hello!"
        payload = requests[0]
        assert payload["model"] == "llama3.1"
        assert payload["stream"] is False
        assert payload["options"] == {"temperature": 0.2, "num_predict": 64}
        assert payload["messages"][0] == {"role": "system", "content": "Be brief."}

    @pytest.mark.asyncio
    async def test_chat_should_use_default_temperature_and_model_override(self) -> None:
        # Arrange
        requests: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(json.loads(request.content))
            return httpx.Response(200, json={"message": {"content": "ok"}})

        provider = make_provider(handler)

        # Act
        await provider.chat(MESSAGES, ChatOptions(model="mistral"))

        # Assert
        assert requests[0]["model"] == "mistral"
        assert requests[0]["options"] == {"temperature": 0.7}

    @pytest.mark.asyncio
    async def test_empty_content_should_raise_api_error(self) -> None:
        # Arrange
        provider = make_provider(lambda request: httpx.Response(200, json={"message": {}}))

        # Act & Assert
        with pytest.raises(ProviderAPIError, match="No response from Ollama"):
            await provider.chat(MESSAGES)

    @pytest.mark.asyncio
    async def test_missing_model_should_raise_model_not_found(self) -> None:
        # Arrange
        provider = make_provider(
            lambda request: httpx.Response(404, text='{"error":"model \\"llama3.1\\" not found"}')
        )

        # Act & Assert
        with pytest.raises(ProviderModelNotFoundError, match="ollama pull llama3.1"):
            await provider.chat(MESSAGES)

    @pytest.mark.asyncio
    async def test_bad_request_should_raise_invalid_request(self) -> None:
        # Arrange
        provider = make_provider(lambda request: httpx.Response(400, text="bad options"))

        # Act & Assert
        with pytest.raises(ProviderInvalidRequestError):
            await provider.chat(MESSAGES)

    @pytest.mark.asyncio
    async def test_connection_refused_should_raise_connection_error(self) -> None:
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        provider = make_provider(handler)

        # Act & Assert
        with pytest.raises(ProviderConnectionError, match="Make sure Ollama is running"):
            await provider.chat(MESSAGES)

    @pytest.mark.asyncio
    async def test_server_error_should_be_retried(self) -> None:
        # Arrange
        responses = [
            httpx.Response(500, text="overloaded"),
            httpx.Response(200, json={"message": {"content": "recovered"}}),
        ]
        provider = make_provider(lambda request: responses.pop(0), max_attempts=2)

        # Act
        answer = await provider.chat(MESSAGES)

        # Assert
        assert answer == "recovered"

    @pytest.mark.asyncio
    async def test_recovered_retries_should_not_count_as_breaker_failure(self) -> None:
        # Arrange
        responses = [
            httpx.Response(500, text="overloaded"),
            httpx.Response(500, text="overloaded"),
            httpx.Response(200, json={"message": {"content": "third time"}}),
        ]
        provider = make_provider(lambda request: responses.pop(0), max_attempts=3)

        # Act
        answer = await provider.chat(MESSAGES)

        # Assert
        assert answer == "third time"
        stats = provider.chat_breaker.get_stats()
        assert stats["failure_count"] == 0
        assert stats["state"] == "CLOSED"

    @pytest.mark.asyncio
    async def test_exhausted_retries_should_count_as_one_breaker_failure(self) -> None:
        # Arrange
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(500, text="overloaded")

        provider = make_provider(handler, max_attempts=3)

        # Act
        with pytest.raises(ProviderAPIError):
            await provider.chat(MESSAGES)

        # Assert
        assert calls == 3
        assert provider.chat_breaker.get_stats()["failure_count"] == 1

    @pytest.mark.asyncio
    async def test_repeated_failures_should_open_circuit(self) -> None:
        # Arrange
        calls = 0

        def handler(request: httpx.Request) -> httpx.Response:
            nonlocal calls
            calls += 1
            return httpx.Response(503, text="down")

        provider = make_provider(handler, failure_threshold=2)
        for _ in range(2):
            with pytest.raises(ProviderAPIError):
                await provider.chat(MESSAGES)

        # Act & Assert
        with pytest.raises(CircuitOpenError):
            await provider.chat(MESSAGES)
        assert calls == 2


class TestOllamaStream:
    """Test suite for NDJSON streaming."""

    @pytest.mark.asyncio
    async def test_stream_should_yield_chunks_until_done(self) -> None:
        # Arrange
        body = ndjson(
            {"message": {"content": "Hel"}, "done": False},
            {"message": {"content": "lo"}, "done": False},
            {"message": {"content": ""}, "done": True},
        )
        provider = make_provider(lambda request: httpx.Response(200, content=body))

        # Act
        chunks = [chunk async for chunk in provider.chat_stream(MESSAGES)]

        # Assert
        assert "".join(c.content for c in chunks) == "Hello"
        assert chunks[-1].done is True
        assert all(not c.done for c in chunks[:-1])

    @pytest.mark.asyncio
    async def test_stream_should_skip_malformed_lines(self) -> None:
        # Arrange
        body = (
            ndjson({"message": {"content": "A"}, "done": False})
            + b"\nnot json\n\n"
            + ndjson({"message": {"content": "B"}, "done": True})
        )
        provider = make_provider(lambda request: httpx.Response(200, content=body))

        # Act
        chunks = [chunk async for chunk in provider.chat_stream(MESSAGES)]

        # Assert
        assert [c.content for c in chunks] == ["A", "B"]

    @pytest.mark.asyncio
    async def test_stream_error_status_should_raise(self) -> None:
        # Arrange
        provider = make_provider(lambda request: httpx.Response(400, text="bad"))

        # Act & Assert
        with pytest.raises(ProviderInvalidRequestError):
            async for _ in provider.chat_stream(MESSAGES):
                pass

    @pytest.mark.asyncio
    async def test_stream_should_send_stream_flag(self) -> None:
        # Arrange
        requests: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(json.loads(request.content))
            return httpx.Response(200, content=ndjson({"message": {"content": "x"}, "done": True}))

        provider = make_provider(handler)

        # Act
        async for _ in provider.chat_stream(MESSAGES, StreamOptions(max_tokens=10)):
            pass

        # Assert
        assert requests[0]["stream"] is True
        assert requests[0]["options"]["num_predict"] == 10


class TestOllamaEmbed:
    """Test suite for embeddings."""

    @pytest.mark.asyncio
    async def test_embed_should_request_each_text_in_order(self) -> None:
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            body = json.loads(request.content)
            assert body["model"] == "nomic-embed-text"
            return httpx.Response(200, json={"embedding": [float(len(body["prompt"]))]})

        provider = make_provider(handler)

        # Act
        embeddings = await provider.embed(["a", "bbb", "cc"])

        # Assert
        assert embeddings == [[1.0], [3.0], [2.0]]

    @pytest.mark.asyncio
    async def test_embed_empty_input_should_not_call_server(self) -> None:
        # Arrange
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        provider = make_provider(handler)

        # Act & Assert
        assert await provider.embed([]) == []

    @pytest.mark.asyncio
    async def test_invalid_embedding_response_should_raise(self) -> None:
        # Arrange
        provider = make_provider(lambda request: httpx.Response(200, json={"embedding": None}))

        # Act & Assert
        with pytest.raises(ProviderAPIError, match="Invalid embedding response"):
            await provider.embed(["text"])
