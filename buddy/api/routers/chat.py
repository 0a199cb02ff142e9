"""Chat API endpoints.

Routes:
- POST /chat - Send chat message and get the full answer
- POST /chat/stream - Stream chat response using Server-Sent Events (SSE)

Dependencies: buddy.application.services.chat_service
System role: Chat messaging HTTP API with streaming support
"""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import aclosing

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from buddy.api.deps import get_chat_service
from buddy.api.routers.router_utils.error_handling import handle_api_errors
from buddy.application.services.chat_service import ChatService
from buddy.core.exceptions import BuddyException, ProviderError
from buddy.models.chat import ChatRequest, ChatResponse
from buddy.models.streaming import StreamEvent

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("", response_model=ChatResponse)
@handle_api_errors
async def chat(
    request: ChatRequest,
    chat_service: ChatService = Depends(get_chat_service),
) -> ChatResponse:
    """Send a chat message and wait for the complete answer.

    Args:
        request: ChatRequest with conversation id and message
        chat_service: Injected ChatService

    Returns:
        ChatResponse: Stored assistant message and the sources used

    Raises:
        HTTPException(404): Conversation not found
        HTTPException(503): Provider temporarily unavailable
    """
    return await chat_service.process_chat(
        conversation_id=request.conversation_id,
        message=request.message,
    )


@router.post("/stream")
async def chat_stream(
    request: ChatRequest,
    http_request: Request,
    chat_service: ChatService = Depends(get_chat_service),
) -> StreamingResponse:
    """Stream chat response using Server-Sent Events (SSE).

    SSE Format:
        event: context
        data: {"sources": [...]}

        event: token
        data: {"content": "...", "done": false}

        event: complete
        data: {"messageId": "...", "done": true}

        event: error
        data: {"error": "...", "code": "..."}

    A client disconnect sets the cancellation event, which stops the
    provider stream without storing a partial answer.

    Args:
        request: ChatRequest with conversation id and message
        http_request: Raw request, used to detect disconnects
        chat_service: Injected ChatService

    Returns:
        StreamingResponse: SSE stream of chat events
    """
    cancel_event = asyncio.Event()

    async def watch_disconnect() -> None:
        while not cancel_event.is_set():
            if await http_request.is_disconnected():
                logger.info(f"{__name__}:chat_stream - Client disconnected")
                cancel_event.set()
                return
            await asyncio.sleep(0.5)

    async def event_generator() -> AsyncGenerator[str, None]:
        """Generate SSE frames from the chat stream."""
        watcher = asyncio.create_task(watch_disconnect())
        try:
            async with aclosing(
                chat_service.stream_chat(
                    conversation_id=request.conversation_id,
                    message=request.message,
                    cancel_event=cancel_event,
                )
            ) as events:
                async for event in events:
                    yield event.to_sse()

        except ProviderError as e:
            logger.error(f"{__name__}:chat_stream - {type(e).__name__}: {e}")
            yield StreamEvent.error(e.user_message, type(e).__name__).to_sse()

        except BuddyException as e:
            logger.warning(f"{__name__}:chat_stream - {type(e).__name__}: {e}")
            yield StreamEvent.error(e.message, type(e).__name__).to_sse()

        except Exception as e:
            logger.exception(f"{__name__}:chat_stream - {type(e).__name__}: {e}")
            yield StreamEvent.error("Stream error", "PROCESSING_ERROR").to_sse()

        finally:
            cancel_event.set()
            watcher.cancel()

    return StreamingResponse(
        event_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",  # Disable nginx buffering
        },
    )
