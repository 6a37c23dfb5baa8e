"""
In-memory message store, insight ring buffer and per-sender context memory.

All three are process-lifetime structures owned by the intelligence service.
Each guards its state with a lock so the HTTP handlers and the periodic
pattern analysis can share them even when handlers run in worker threads.
"""

from __future__ import annotations

import threading
from collections import OrderedDict, deque
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from evshub.config import (
    CONTEXT_MEMORY_DEPTH,
    INSIGHT_BUFFER_CAPACITY,
    INSIGHTS_QUERY_SIZE,
    MESSAGE_STORE_CAPACITY,
)
from evshub.intelligence.extractor import extract_location
from evshub.intelligence.keyword_data import NOT_SPECIFIED
from evshub.intelligence.models import Message, PredictiveInsight
from evshub.observability.logging import get_logger

logger = get_logger(__name__)


@dataclass
class _Entry:
    message: Message
    location: str


class MessageStore:
    """
    Bounded, insertion-ordered store of processed messages.

    When capacity is reached the oldest message is evicted. The extracted
    location of each message is computed once on insert and kept alongside it
    so clustering checks do not re-run the location patterns.
    """

    def __init__(self, capacity: int = MESSAGE_STORE_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self._entries: OrderedDict[str, _Entry] = OrderedDict()
        self._lock = threading.RLock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, message_id: object) -> bool:
        with self._lock:
            return message_id in self._entries

    def add(self, message: Message) -> None:
        """
        Store a message.

        Side Effects:
            - Evicts the oldest message when the store is full
        """
        entry = _Entry(message=message, location=extract_location(message.content))
        with self._lock:
            self._entries[message.id] = entry
            self._entries.move_to_end(message.id)
            while len(self._entries) > self.capacity:
                evicted_id, _ = self._entries.popitem(last=False)
                logger.debug("Evicted message %s from store", evicted_id)

    def get(self, message_id: str) -> Message | None:
        with self._lock:
            entry = self._entries.get(message_id)
            return entry.message if entry else None

    def all(self) -> list[Message]:
        """All messages in insertion order."""
        with self._lock:
            return [entry.message for entry in self._entries.values()]

    def recent(self, limit: int) -> list[Message]:
        """Most recent ``limit`` messages, newest first (later insertions win ties)."""
        messages = sorted(reversed(self.all()), key=lambda m: m.timestamp, reverse=True)
        return messages[:limit]

    def last(self, count: int) -> list[Message]:
        """Last ``count`` messages in insertion order."""
        if count <= 0:
            return []
        return self.all()[-count:]

    def count_since(self, since: datetime) -> int:
        """Number of messages with a timestamp at or after ``since``."""
        with self._lock:
            return sum(1 for entry in self._entries.values() if entry.message.timestamp >= since)

    def count_at_location(self, location: str, since: datetime) -> int:
        """Number of messages mentioning ``location`` strictly after ``since``."""
        if location == NOT_SPECIFIED:
            return 0
        with self._lock:
            return sum(
                1
                for entry in self._entries.values()
                if entry.location == location and entry.message.timestamp > since
            )

    def location_counts(self) -> dict[str, int]:
        """Lifetime mention count per extracted location (unspecified excluded)."""
        counts: dict[str, int] = {}
        with self._lock:
            for entry in self._entries.values():
                if entry.location != NOT_SPECIFIED:
                    counts[entry.location] = counts.get(entry.location, 0) + 1
        return counts


class InsightBuffer:
    """Ring buffer of the most recent predictive insights."""

    def __init__(self, capacity: int = INSIGHT_BUFFER_CAPACITY) -> None:
        self._insights: deque[PredictiveInsight] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._insights)

    def append(self, insight: PredictiveInsight) -> None:
        with self._lock:
            self._insights.append(insight)

    def recent(self, limit: int = INSIGHTS_QUERY_SIZE) -> list[PredictiveInsight]:
        """Last ``limit`` insights, oldest first."""
        with self._lock:
            items = list(self._insights)
        return items[-limit:] if limit > 0 else []


class ContextMemory:
    """
    Per sender, per day memory of recent messages.

    Keyed by ``"<sender>_<YYYY-MM-DD>"``; each key keeps the last
    CONTEXT_MEMORY_DEPTH message summaries.
    """

    def __init__(self, depth: int = CONTEXT_MEMORY_DEPTH) -> None:
        self.depth = depth
        self._contexts: dict[str, list[dict[str, Any]]] = {}
        self._lock = threading.Lock()

    @staticmethod
    def key_for(sender: str, day: datetime) -> str:
        return f"{sender}_{day.date().isoformat()}"

    def remember(self, message: Message, now: datetime) -> None:
        key = self.key_for(message.sender, now)
        summary = {
            "id": message.id,
            "content": message.content,
            "timestamp": message.timestamp.isoformat(),
            "priority": message.priority,
        }
        with self._lock:
            messages = self._contexts.setdefault(key, [])
            messages.append(summary)
            if len(messages) > self.depth:
                del messages[: len(messages) - self.depth]

    def recall(self, sender: str, now: datetime) -> list[dict[str, Any]]:
        with self._lock:
            return list(self._contexts.get(self.key_for(sender, now), []))

    def __len__(self) -> int:
        with self._lock:
            return len(self._contexts)
