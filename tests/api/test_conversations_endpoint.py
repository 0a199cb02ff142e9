"""
Test suite for conversation endpoints.

Tests create, list, detail, rename and delete through the full application
with an in-memory database, including a chat turn that titles the
conversation.

System role: Verification of conversation HTTP API
"""

import uuid

from fastapi.testclient import TestClient

BASE = "/api/v1/conversations"


class TestConversationEndpoints:
    """Test suite for /conversations routes."""

    def test_create_should_return_201(self, api_client: TestClient) -> None:
        # Act
        response = api_client.post(BASE, json={})

        # Assert
        assert response.status_code == 201
        assert response.json()["title"] is None

    def test_list_should_include_created_conversations(self, api_client: TestClient) -> None:
        # Arrange
        api_client.post(BASE, json={"title": "One"})
        api_client.post(BASE, json={"title": "Two"})

        # Act
        response = api_client.get(BASE)

        # Assert
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 2
        assert {c["title"] for c in body["conversations"]} == {"One", "Two"}

    def test_rename_should_update_title(self, api_client: TestClient) -> None:
        # Arrange
        created = api_client.post(BASE, json={}).json()

        # Act
        response = api_client.patch(f"{BASE}/{created['id']}", json={"title": "Renamed"})

        # Assert
        assert response.status_code == 200
        assert response.json()["title"] == "Renamed"

    def test_rename_with_blank_title_should_return_422(self, api_client: TestClient) -> None:
        # Arrange
        created = api_client.post(BASE, json={}).json()

        # Act
        response = api_client.patch(f"{BASE}/{created['id']}", json={"title": ""})

        # Assert
        assert response.status_code == 422

    def test_unknown_conversation_should_return_404(self, api_client: TestClient) -> None:
        # Act
        response = api_client.get(f"{BASE}/{uuid.uuid4()}")

        # Assert
        assert response.status_code == 404

    def test_chat_turn_should_title_and_record_messages(self, api_client: TestClient) -> None:
        # Arrange
        created = api_client.post(BASE, json={}).json()

        # Act
        chat = api_client.post(
            "/api/v1/chat",
            json={"conversation_id": created["id"], "message": "Where is the employee handbook?"},
        )
        detail = api_client.get(f"{BASE}/{created['id']}")

        # Assert
        assert chat.status_code == 200
        assert chat.json()["sources"] == []
        body = detail.json()
        assert body["title"] == "Where is the employee handbook?"
        assert [m["role"] for m in body["messages"]] == ["user", "assistant"]

    def test_streamed_turn_should_store_reply(self, api_client: TestClient) -> None:
        # Arrange
        created = api_client.post(BASE, json={}).json()

        # Act
        stream = api_client.post(
            "/api/v1/chat/stream",
            json={"conversation_id": created["id"], "message": "hello"},
        )
        detail = api_client.get(f"{BASE}/{created['id']}").json()

        # Assert
        assert "event: complete" in stream.text
        assert [m["content"] for m in detail["messages"]] == ["hello", "Hello world"]

    def test_delete_should_return_204_then_404(self, api_client: TestClient) -> None:
        # Arrange
        created = api_client.post(BASE, json={}).json()

        # Act
        deleted = api_client.delete(f"{BASE}/{created['id']}")
        again = api_client.delete(f"{BASE}/{created['id']}")

        # Assert
        assert deleted.status_code == 204
        assert again.status_code == 404
