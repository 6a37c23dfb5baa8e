"""Tests for task draft extraction"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

from evshub.intelligence.extractor import (
    TaskExtractor,
    estimate_duration,
    extract_category,
    extract_deadline,
    extract_location,
    extract_title,
)
from evshub.intelligence.models import Message, Priority, TaskCategory

NOW = datetime(2026, 3, 10, 14, 0, tzinfo=UTC)


def _extractor() -> TaskExtractor:
    return TaskExtractor(clock=lambda: NOW, timezone="UTC")


class TestTitle:
    def test_first_sentence(self):
        assert extract_title("Clean room 12. Guest checked out.") == "Clean room 12"

    def test_truncated_when_long(self):
        title = extract_title("x" * 60)
        assert title == "x" * 47 + "..."
        assert len(title) == 50

    def test_exactly_fifty_not_truncated(self):
        assert extract_title("y" * 50) == "y" * 50

    def test_leading_period_uses_whole_text(self):
        assert extract_title("...URGENT: clean Room 204 asap") == "...URGENT: clean Room 204 asap"

    def test_leading_period_long_text_truncated(self):
        title = extract_title("." + "z" * 60)
        assert len(title) == 50
        assert title.endswith("...")


class TestLocation:
    def test_room_as_written(self):
        assert extract_location("leak in Room 204, please fix") == "Room 204"

    def test_room_with_letter_suffix(self):
        assert extract_location("check room 12b") == "room 12b"

    def test_floor(self):
        assert extract_location("restock supplies on floor 3") == "floor 3"

    def test_named_area(self):
        assert extract_location("clean the lobby") == "lobby"

    def test_room_before_named_area(self):
        assert extract_location("lobby and room 5") == "room 5"

    def test_not_specified(self):
        assert extract_location("restock paper towels") == "Not specified"


class TestDeadline:
    def test_asap_is_now(self):
        assert extract_deadline("fix asap", now=NOW, tz=UTC) == NOW

    def test_today_end_of_day(self):
        assert extract_deadline("mop today", now=NOW, tz=UTC) == NOW.replace(hour=17)

    def test_tomorrow_morning(self):
        deadline = extract_deadline("clean tomorrow", now=NOW, tz=UTC)
        assert deadline == datetime(2026, 3, 11, 9, 0, tzinfo=UTC)

    def test_by_clock_time(self):
        deadline = extract_deadline("inspect by 15:30", now=NOW, tz=UTC)
        assert deadline == NOW.replace(hour=15, minute=30)

    def test_invalid_clock_time(self):
        assert extract_deadline("inspect by 25:00", now=NOW, tz=UTC) is None

    def test_in_hours_and_minutes(self):
        assert extract_deadline("restock in 2 hours", now=NOW, tz=UTC) == NOW + timedelta(hours=2)
        assert extract_deadline("check in 45 minutes", now=NOW, tz=UTC) == NOW + timedelta(
            minutes=45
        )

    def test_no_phrase(self):
        assert extract_deadline("clean the lobby", now=NOW, tz=UTC) is None

    def test_offset_past_calendar_range(self):
        assert extract_deadline("clean room 5 in 99999999 hours", now=NOW, tz=UTC) is None
        assert extract_deadline("clean room 5 in 9999999999999 minutes", now=NOW, tz=UTC) is None


def test_category_order():
    assert extract_category("sanitize the rails") == TaskCategory.CLEANING
    assert extract_category("replace the bulb") == TaskCategory.MAINTENANCE
    assert extract_category("refill soap") == TaskCategory.RESTOCKING
    assert extract_category("inspect the vents") == TaskCategory.INSPECTION
    assert extract_category("move the chairs") == TaskCategory.GENERAL


def test_duration_buckets():
    assert estimate_duration("deep clean room 4") == 120
    assert estimate_duration("quick wipe") == 15
    assert estimate_duration("repair the door") == 60
    assert estimate_duration("restock gloves") == 30
    assert estimate_duration("clean the lobby") == 45


def test_no_task_verb_no_draft():
    message = Message(content="the lobby looks great", timestamp=NOW)
    assert _extractor().extract_tasks(message) == []


def test_urgent_leak_scenario():
    message = Message(
        content="URGENT: leak in Room 204, please fix immediately",
        priority=Priority.URGENT,
        timestamp=NOW,
    )
    drafts = _extractor().extract_tasks(message)

    assert len(drafts) == 1
    draft = drafts[0]
    assert draft.priority == "urgent"
    assert draft.location == "Room 204"
    assert draft.category == "maintenance"
    assert draft.deadline == NOW
    assert draft.auto_created is True
    assert draft.source_message_id == message.id


def test_clean_lobby_tomorrow_scenario():
    message = Message(content="please clean the lobby tomorrow", timestamp=NOW)
    draft = _extractor().extract_tasks(message)[0]

    assert draft.priority == "low"
    assert draft.category == "cleaning"
    assert draft.location == "lobby"
    assert draft.deadline == datetime(2026, 3, 11, 9, 0, tzinfo=UTC)


def test_extraction_is_idempotent():
    message = Message(content="Restock floor 2 supply closet by 16:00", timestamp=NOW)
    extractor = _extractor()
    assert extractor.extract_tasks(message) == extractor.extract_tasks(message)


def test_draft_inherits_message_priority():
    message = Message(content="check the elevator", priority=Priority.HIGH, timestamp=NOW)
    assert _extractor().extract_tasks(message)[0].priority == "high"
