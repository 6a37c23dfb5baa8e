"""
Server-Sent Events for service events.

Each connected client gets its own bounded queue on the event bus; events
are written as ``data: <json>\n\n`` frames with a comment keepalive while
the bus is quiet.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncGenerator, Awaitable, Callable

from evshub.intelligence.events import EventBus, ServiceEvent
from evshub.observability.logging import get_logger

logger = get_logger(__name__)

KEEPALIVE_SECONDS = 15.0


def to_sse(event: ServiceEvent) -> str:
    return f"data: {json.dumps(event.to_dict(), default=str)}\n\n"


def sse_keepalive() -> str:
    return ": keepalive\n\n"


def sse_done() -> str:
    return "data: [DONE]\n\n"


async def event_stream(
    bus: EventBus,
    is_disconnected: Callable[[], Awaitable[bool]] | None = None,
    max_events: int | None = None,
    keepalive_seconds: float = KEEPALIVE_SECONDS,
) -> AsyncGenerator[str, None]:
    """
    Yield SSE frames for every event published after the stream opens.

    Stops when the client disconnects or, if given, after ``max_events``
    events (followed by a ``[DONE]`` frame).
    """
    queue = bus.open_queue()
    sent = 0
    try:
        while max_events is None or sent < max_events:
            if is_disconnected is not None and await is_disconnected():
                logger.debug("Event stream client disconnected")
                return
            try:
                event = await asyncio.wait_for(queue.get(), timeout=keepalive_seconds)
            except TimeoutError:
                yield sse_keepalive()
                continue
            yield to_sse(event)
            sent += 1
        yield sse_done()
    finally:
        bus.close_queue(queue)
