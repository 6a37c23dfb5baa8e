"""
In-process event bus for service events.

Listeners are plain callables; subscribers that want to stream events (the
SSE route) get an asyncio queue per subscription. A failing listener is
logged and skipped so it never breaks message processing.
"""

from __future__ import annotations

import asyncio
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

from evshub.intelligence.models import utc_now
from evshub.observability.logging import get_logger
from evshub.observability.telemetry import counter

logger = get_logger(__name__)

SUBSCRIBER_QUEUE_SIZE = 100


class EventType(str, Enum):
    MESSAGE_RECEIVED = "message_received"
    MESSAGE_PROCESSED = "message_processed"
    WORKFLOW_EXECUTED = "workflow_executed"
    WORKFLOW_TOGGLED = "workflow_toggled"
    INSIGHT_GENERATED = "insight_generated"


@dataclass
class ServiceEvent:
    type: EventType
    payload: dict[str, Any]
    timestamp: datetime = field(default_factory=utc_now)

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "payload": self.payload,
            "timestamp": self.timestamp.isoformat(),
        }


Listener = Callable[[ServiceEvent], None]


class EventBus:
    def __init__(self) -> None:
        self._listeners: list[Listener] = []
        self._queues: list[tuple[asyncio.AbstractEventLoop, asyncio.Queue[ServiceEvent]]] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener. Returns a callable that unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def open_queue(self) -> asyncio.Queue[ServiceEvent]:
        """
        Create a bounded queue that receives every subsequent event.

        Must be called from a running event loop. When the queue is full the
        event is dropped for that subscriber only.
        """
        loop = asyncio.get_running_loop()
        queue: asyncio.Queue[ServiceEvent] = asyncio.Queue(maxsize=SUBSCRIBER_QUEUE_SIZE)
        with self._lock:
            self._queues.append((loop, queue))
        return queue

    def close_queue(self, queue: asyncio.Queue[ServiceEvent]) -> None:
        with self._lock:
            self._queues = [(loop, q) for loop, q in self._queues if q is not queue]

    def emit(self, event_type: EventType, **payload: Any) -> ServiceEvent:
        """
        Publish an event to all listeners and queues.

        Side Effects:
            - Invokes listeners synchronously
            - Enqueues the event on every open subscriber queue
        """
        event = ServiceEvent(type=event_type, payload=payload)
        counter(f"events.{event_type.value}")

        with self._lock:
            listeners = list(self._listeners)
            queues = list(self._queues)

        for listener in listeners:
            try:
                listener(event)
            except Exception as e:
                logger.warning("Event listener failed for %s: %s", event_type.value, e)

        for loop, queue in queues:
            if loop.is_closed():
                self.close_queue(queue)
                continue
            loop.call_soon_threadsafe(self._offer, queue, event)

        return event

    @staticmethod
    def _offer(queue: asyncio.Queue[ServiceEvent], event: ServiceEvent) -> None:
        try:
            queue.put_nowait(event)
        except asyncio.QueueFull:
            counter("events.dropped")
