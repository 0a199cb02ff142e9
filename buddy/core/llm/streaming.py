"""
Bounded producer/consumer channel for streamed completions.

A producer task pumps a provider stream into a bounded asyncio.Queue while the
consumer drains it. The cancellation event is checked by both sides between
chunks: the producer stops writing and the consumer stops reading without
raising. Provider errors travel through the channel and are re-raised on the
consumer side. Leaving the consumer (normally, by error or by cancellation)
always cancels the producer and closes the source.

Dependencies: asyncio
System role: Backpressure and cancellation for token streaming
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import suppress
from dataclasses import dataclass

from buddy.core.llm.types import StreamChunk

logger = logging.getLogger(__name__)

DEFAULT_BUFFER_SIZE = 32


@dataclass
class _Closed:
    """Close marker; carries the producer's error if it failed."""

    error: BaseException | None = None


async def _close_source(source: AsyncIterator[StreamChunk]) -> None:
    aclose = getattr(source, "aclose", None)
    if aclose is not None:
        await aclose()


async def _produce(
    source: AsyncIterator[StreamChunk],
    queue: asyncio.Queue,
    cancel_event: asyncio.Event,
) -> None:
    error: BaseException | None = None
    try:
        async for chunk in source:
            if cancel_event.is_set():
                break
            await queue.put(chunk)
            if chunk.done:
                break
    except Exception as exc:
        error = exc
    finally:
        await _close_source(source)
    await queue.put(_Closed(error))


async def _next_item(queue: asyncio.Queue, cancel_event: asyncio.Event):
    """Wait for the next queued item; None means the consumer was cancelled."""
    if cancel_event.is_set():
        return None

    get_task = asyncio.ensure_future(queue.get())
    cancel_task = asyncio.ensure_future(cancel_event.wait())
    try:
        await asyncio.wait({get_task, cancel_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (get_task, cancel_task):
            if not task.done():
                task.cancel()

    if cancel_event.is_set():
        return None
    return get_task.result()


async def channel_stream(
    source: AsyncIterator[StreamChunk],
    cancel_event: asyncio.Event | None = None,
    max_buffer: int = DEFAULT_BUFFER_SIZE,
) -> AsyncIterator[StreamChunk]:
    """
    Re-yield a provider stream through a bounded channel.

    Args:
        source: Provider chunk iterator (opened lazily on first read)
        cancel_event: Cooperative cancellation signal
        max_buffer: Maximum chunks buffered ahead of the consumer

    Yields:
        StreamChunk: Chunks in arrival order, ending with the done chunk

    Raises:
        ProviderError: Normalized provider failure raised by the source
    """
    cancel_event = cancel_event or asyncio.Event()
    queue: asyncio.Queue = asyncio.Queue(maxsize=max_buffer)
    producer = asyncio.create_task(_produce(source, queue, cancel_event))

    try:
        while True:
            item = await _next_item(queue, cancel_event)
            if item is None:
                logger.debug(f"{__name__}:channel_stream - Stream cancelled by consumer")
                return
            if isinstance(item, _Closed):
                if item.error is not None:
                    raise item.error
                return
            yield item
            if item.done:
                return
    finally:
        producer.cancel()
        with suppress(asyncio.CancelledError):
            await producer
