"""
Test suite for chat API endpoints.

Tests POST /chat and POST /chat/stream with FastAPI TestClient and a mocked
ChatService. Covers successful answers, error mapping and SSE framing.

System role: Verification of chat HTTP API endpoint
"""

import json
import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from buddy.api.deps import get_chat_service
from buddy.api.routers.chat import router
from buddy.core.exceptions import (
    CircuitOpenError,
    ProviderAuthError,
    ProviderRateLimitError,
    ResourceNotFoundError,
)
from buddy.models.chat import ChatResponse, MessageResponse
from buddy.models.streaming import StreamEvent, StreamEventType


@pytest.fixture
def mock_chat_service() -> MagicMock:
    """Provide mock chat service."""
    return MagicMock()


@pytest.fixture
def app(mock_chat_service: MagicMock) -> FastAPI:
    """Create FastAPI test application with chat router."""
    app = FastAPI()
    app.include_router(router)
    app.dependency_overrides[get_chat_service] = lambda: mock_chat_service
    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    """Provide TestClient for the FastAPI app."""
    return TestClient(app)


@pytest.fixture
def conversation_id() -> uuid.UUID:
    return uuid.uuid4()


def parse_sse(body: str) -> list[tuple[str, dict]]:
    """Split an SSE body into (event, data) pairs."""
    frames = []
    for block in body.strip().split("\n\n"):
        lines = dict(line.split(": ", 1) for line in block.splitlines())
        frames.append((lines["event"], json.loads(lines["data"])))
    return frames


def stream_of(*items):
    async def generate(*args, **kwargs):
        for item in items:
            if isinstance(item, Exception):
                raise item
            yield item

    return generate


class TestChatEndpoint:
    """Test suite for POST /chat."""

    def test_chat_should_return_answer_and_sources(
        self, client: TestClient, mock_chat_service: MagicMock, conversation_id, sample_chunks
    ) -> None:
        # Arrange
        mock_chat_service.process_chat = AsyncMock(
            return_value=ChatResponse(
                message=MessageResponse(
                    id=uuid.uuid4(),
                    conversation_id=conversation_id,
                    role="assistant",
                    content="You get 20 days.",
                    created_at=datetime.now(timezone.utc),
                ),
                sources=sample_chunks,
            )
        )

        # Act
        response = client.post(
            "/chat", json={"conversation_id": str(conversation_id), "message": "Vacation?"}
        )

        # Assert
        assert response.status_code == 200
        body = response.json()
        assert body["message"]["content"] == "You get 20 days."
        assert len(body["sources"]) == 3
        mock_chat_service.process_chat.assert_awaited_once_with(
            conversation_id=conversation_id, message="Vacation?"
        )

    def test_blank_message_should_be_rejected(
        self, client: TestClient, conversation_id
    ) -> None:
        # Act
        response = client.post(
            "/chat", json={"conversation_id": str(conversation_id), "message": "   "}
        )

        # Assert
        assert response.status_code == 422

    def test_oversized_message_should_be_rejected(
        self, client: TestClient, conversation_id
    ) -> None:
        # Act
        response = client.post(
            "/chat", json={"conversation_id": str(conversation_id), "message": "x" * 10001}
        )

        # Assert
        assert response.status_code == 422

    def test_missing_conversation_should_return_404(
        self, client: TestClient, mock_chat_service: MagicMock, conversation_id
    ) -> None:
        # Arrange
        mock_chat_service.process_chat = AsyncMock(
            side_effect=ResourceNotFoundError("Conversation", conversation_id)
        )

        # Act
        response = client.post(
            "/chat", json={"conversation_id": str(conversation_id), "message": "hi"}
        )

        # Assert
        assert response.status_code == 404

    def test_rate_limit_should_return_retryable_503(
        self, client: TestClient, mock_chat_service: MagicMock, conversation_id
    ) -> None:
        # Arrange
        mock_chat_service.process_chat = AsyncMock(side_effect=ProviderRateLimitError("429"))

        # Act
        response = client.post(
            "/chat", json={"conversation_id": str(conversation_id), "message": "hi"}
        )

        # Assert
        assert response.status_code == 503
        detail = response.json()["detail"]
        assert detail["retryable"] is True
        assert detail["code"] == "ProviderRateLimitError"

    def test_open_circuit_should_report_retry_time(
        self, client: TestClient, mock_chat_service: MagicMock, conversation_id
    ) -> None:
        # Arrange
        mock_chat_service.process_chat = AsyncMock(
            side_effect=CircuitOpenError("Circuit breaker is OPEN", retry_in_seconds=12.5)
        )

        # Act
        response = client.post(
            "/chat", json={"conversation_id": str(conversation_id), "message": "hi"}
        )

        # Assert
        assert response.status_code == 503
        assert response.json()["detail"]["retry_in_seconds"] == 12.5

    def test_auth_error_should_return_502(
        self, client: TestClient, mock_chat_service: MagicMock, conversation_id
    ) -> None:
        # Arrange
        mock_chat_service.process_chat = AsyncMock(side_effect=ProviderAuthError("Invalid key"))

        # Act
        response = client.post(
            "/chat", json={"conversation_id": str(conversation_id), "message": "hi"}
        )

        # Assert
        assert response.status_code == 502
        assert response.json()["detail"]["error"] == "Invalid key"
        assert response.json()["detail"]["retryable"] is False

    def test_unexpected_error_should_return_500(
        self, client: TestClient, mock_chat_service: MagicMock, conversation_id
    ) -> None:
        # Arrange
        mock_chat_service.process_chat = AsyncMock(side_effect=RuntimeError("boom"))

        # Act
        response = client.post(
            "/chat", json={"conversation_id": str(conversation_id), "message": "hi"}
        )

        # Assert
        assert response.status_code == 500
        assert response.json()["detail"] == "An internal error occurred"


class TestChatStreamEndpoint:
    """Test suite for POST /chat/stream."""

    def test_stream_should_emit_sse_frames(
        self, client: TestClient, mock_chat_service: MagicMock, conversation_id
    ) -> None:
        # Arrange
        mock_chat_service.stream_chat = stream_of(
            StreamEvent(event=StreamEventType.CONTEXT, data={"sources": []}),
            StreamEvent(event=StreamEventType.TOKEN, data={"content": "Hi", "done": False}),
            StreamEvent(event=StreamEventType.TOKEN, data={"content": "", "done": True}),
            StreamEvent(event=StreamEventType.COMPLETE, data={"messageId": "m-1", "done": True}),
        )

        # Act
        response = client.post(
            "/chat/stream", json={"conversation_id": str(conversation_id), "message": "hi"}
        )

        # Assert
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/event-stream")
        assert response.headers["cache-control"] == "no-cache"
        frames = parse_sse(response.text)
        assert [event for event, _ in frames] == ["context", "token", "token", "complete"]
        assert frames[1][1] == {"content": "Hi", "done": False}
        assert frames[-1][1] == {"messageId": "m-1", "done": True}

    def test_provider_failure_should_emit_error_frame(
        self, client: TestClient, mock_chat_service: MagicMock, conversation_id
    ) -> None:
        # Arrange
        mock_chat_service.stream_chat = stream_of(
            StreamEvent(event=StreamEventType.CONTEXT, data={"sources": []}),
            ProviderRateLimitError("limited"),
        )

        # Act
        response = client.post(
            "/chat/stream", json={"conversation_id": str(conversation_id), "message": "hi"}
        )

        # Assert
        frames = parse_sse(response.text)
        assert frames[-1][0] == "error"
        assert frames[-1][1] == {
            "error": ProviderRateLimitError.user_message,
            "code": "ProviderRateLimitError",
        }

    def test_unknown_conversation_should_emit_error_frame(
        self, client: TestClient, mock_chat_service: MagicMock, conversation_id
    ) -> None:
        # Arrange
        mock_chat_service.stream_chat = stream_of(
            ResourceNotFoundError("Conversation", conversation_id)
        )

        # Act
        response = client.post(
            "/chat/stream", json={"conversation_id": str(conversation_id), "message": "hi"}
        )

        # Assert
        frames = parse_sse(response.text)
        assert len(frames) == 1
        assert frames[0][0] == "error"
        assert frames[0][1]["code"] == "ResourceNotFoundError"

    def test_unexpected_failure_should_emit_generic_error(
        self, client: TestClient, mock_chat_service: MagicMock, conversation_id
    ) -> None:
        # Arrange
        mock_chat_service.stream_chat = stream_of(RuntimeError("kaboom"))

        # Act
        response = client.post(
            "/chat/stream", json={"conversation_id": str(conversation_id), "message": "hi"}
        )

        # Assert
        assert parse_sse(response.text) == [
            ("error", {"error": "Stream error", "code": "PROCESSING_ERROR"})
        ]
