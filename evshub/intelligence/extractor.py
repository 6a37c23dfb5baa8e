"""
Task draft extraction from free-text messages.

Each sub-extractor is a pure function over the message text with a fixed
fallback when nothing matches, so extraction never fails and running it
twice on the same text (at the same instant) yields identical drafts.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import datetime, timedelta, tzinfo
from zoneinfo import ZoneInfo

from evshub.config import END_OF_DAY_HOUR, NEXT_MORNING_HOUR, SERVICE_TIMEZONE
from evshub.intelligence.keyword_data import (
    CATEGORY_KEYWORDS,
    DEADLINE_PATTERNS,
    DEFAULT_DURATION_MINUTES,
    DURATION_BUCKETS,
    LOCATION_PATTERNS,
    NOT_SPECIFIED,
    TASK_KEYWORDS,
    TITLE_MAX_CHARS,
)
from evshub.intelligence.models import Message, TaskCategory, TaskDraft, utc_now


def has_task_keyword(content: str) -> bool:
    lowered = content.lower()
    return any(keyword in lowered for keyword in TASK_KEYWORDS)


def extract_title(content: str) -> str:
    """
    First sentence, truncated to 47 chars + '...' when longer than 50.

    Text that opens with a period has an empty first sentence; the whole text
    is used instead so a draft never gets a blank title.
    """
    first_sentence = content.split(".")[0] or content
    if len(first_sentence) > TITLE_MAX_CHARS:
        return first_sentence[: TITLE_MAX_CHARS - 3] + "..."
    return first_sentence


def extract_location(content: str) -> str:
    """
    Return the first room / floor / named-area mention as written in the text.

    Examples:
        "leak in Room 204" -> "Room 204"
        "restock supplies on floor 3" -> "floor 3"
        "clean the lobby" -> "lobby"
    """
    for pattern in LOCATION_PATTERNS:
        match = pattern.search(content)
        if match:
            return match.group(0)
    return NOT_SPECIFIED


def extract_deadline(
    content: str, now: datetime | None = None, tz: tzinfo | None = None
) -> datetime | None:
    """
    Parse the first relative-time phrase into an aware deadline.

    - "asap" / "immediately" -> now
    - "today" -> 17:00 today
    - "tomorrow" -> 09:00 tomorrow
    - "by HH:MM" -> that time today
    - "in N hours|minutes" -> now + N (None when that is past the calendar range)
    - anything else -> None

    Wall-clock times are taken in ``tz`` (the service timezone by default).
    """
    tz = tz or ZoneInfo(SERVICE_TIMEZONE)
    now = (now or utc_now()).astimezone(tz)

    for pattern in DEADLINE_PATTERNS:
        match = pattern.search(content)
        if match:
            return _parse_relative_time(match, now)
    return None


def _parse_relative_time(match: re.Match[str], now: datetime) -> datetime | None:
    phrase = match.group(0).lower()

    if "asap" in phrase or "immediately" in phrase:
        return now
    if "today" in phrase:
        return now.replace(hour=END_OF_DAY_HOUR, minute=0, second=0, microsecond=0)
    if "tomorrow" in phrase:
        tomorrow = now + timedelta(days=1)
        return tomorrow.replace(hour=NEXT_MORNING_HOUR, minute=0, second=0, microsecond=0)

    if phrase.startswith("by"):
        hour_text, minute_text = match.group(1).split(":")
        hour, minute = int(hour_text), int(minute_text)
        if hour > 23 or minute > 59:
            return None
        return now.replace(hour=hour, minute=minute, second=0, microsecond=0)

    if phrase.startswith("in"):
        amount = int(match.group(1))
        unit = "hours" if match.group(2).lower().startswith("hour") else "minutes"
        try:
            return now + timedelta(**{unit: amount})
        except OverflowError:
            # Past datetime.max
            return None

    return None


def extract_category(content: str) -> TaskCategory:
    lowered = content.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    return TaskCategory.GENERAL


def estimate_duration(content: str) -> int:
    """Heuristic duration bucket in minutes."""
    lowered = content.lower()
    for phrases, minutes in DURATION_BUCKETS:
        if any(phrase in lowered for phrase in phrases):
            return minutes
    return DEFAULT_DURATION_MINUTES


class TaskExtractor:
    """
    Derive at most one task draft per message.

    Extraction only happens when the text contains a task verb; the draft
    inherits the message's priority.
    """

    def __init__(
        self,
        clock: Callable[[], datetime] = utc_now,
        timezone: str = SERVICE_TIMEZONE,
    ) -> None:
        self.clock = clock
        self.tz = ZoneInfo(timezone)

    def extract_tasks(self, message: Message) -> list[TaskDraft]:
        if not has_task_keyword(message.content):
            return []

        content = message.content
        draft = TaskDraft(
            title=extract_title(content),
            description=content,
            priority=message.priority,
            location=extract_location(content),
            deadline=extract_deadline(content, now=self.clock(), tz=self.tz),
            category=extract_category(content),
            estimated_duration=estimate_duration(content),
            auto_created=True,
            source_message_id=message.id,
        )
        return [draft]
