"""Conversation API endpoints.

Routes:
- GET /conversations - List conversations
- POST /conversations - Create conversation
- GET /conversations/{conversation_id} - Get conversation with messages
- PATCH /conversations/{conversation_id} - Rename conversation
- DELETE /conversations/{conversation_id} - Delete conversation

Dependencies: buddy.application.services.conversation_service
System role: Conversation management HTTP API
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from buddy.api.deps import get_conversation_service
from buddy.api.routers.router_utils.error_handling import handle_api_errors
from buddy.application.services.conversation_service import ConversationService
from buddy.models.conversation import (
    ConversationCreate,
    ConversationDetailResponse,
    ConversationListResponse,
    ConversationResponse,
    ConversationUpdate,
)

router = APIRouter(prefix="/conversations", tags=["conversations"])


@router.get("", response_model=ConversationListResponse)
@handle_api_errors
async def list_conversations(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    service: ConversationService = Depends(get_conversation_service),
) -> ConversationListResponse:
    """List conversations by most recent activity."""
    return await service.list_conversations(limit=limit, offset=offset)


@router.post("", response_model=ConversationResponse, status_code=status.HTTP_201_CREATED)
@handle_api_errors
async def create_conversation(
    request: ConversationCreate,
    service: ConversationService = Depends(get_conversation_service),
) -> ConversationResponse:
    """Create a new, empty conversation."""
    return await service.create_conversation(title=request.title)


@router.get("/{conversation_id}", response_model=ConversationDetailResponse)
@handle_api_errors
async def get_conversation(
    conversation_id: UUID,
    service: ConversationService = Depends(get_conversation_service),
) -> ConversationDetailResponse:
    """Get a conversation and its transcript."""
    return await service.get_conversation(conversation_id)


@router.patch("/{conversation_id}", response_model=ConversationResponse)
@handle_api_errors
async def rename_conversation(
    conversation_id: UUID,
    request: ConversationUpdate,
    service: ConversationService = Depends(get_conversation_service),
) -> ConversationResponse:
    """Rename a conversation."""
    return await service.rename_conversation(conversation_id, request.title)


@router.delete("/{conversation_id}", status_code=status.HTTP_204_NO_CONTENT)
@handle_api_errors
async def delete_conversation(
    conversation_id: UUID,
    service: ConversationService = Depends(get_conversation_service),
) -> None:
    """Delete a conversation and its messages."""
    await service.delete_conversation(conversation_id)
