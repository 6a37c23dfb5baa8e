"""Tests for canned suggestion generation"""

from __future__ import annotations

from evshub.intelligence.suggestions import generate_suggestions


def test_no_matching_group():
    assert generate_suggestions("hello team") == []


def test_cleaning_group():
    assert generate_suggestions("Clean room 5") == [
        "Schedule deep cleaning for this area",
        "Check supply levels for cleaning materials",
        "Assign additional staff if needed",
    ]


def test_groups_accumulate_then_truncate():
    """Cleaning is checked first, so its pool fills all three slots"""
    suggestions = generate_suggestions("urgent: clean up, dryer broken")
    assert len(suggestions) == 3
    assert suggestions[0] == "Schedule deep cleaning for this area"


def test_urgency_group_before_repair():
    assert generate_suggestions("EMERGENCY repair needed")[0] == (
        "Escalate to supervisor immediately"
    )


def test_repair_group():
    assert generate_suggestions("the dispenser is broken") == [
        "Contact maintenance team",
        "Create work order",
        "Set up temporary alternative",
    ]


def test_stable_for_identical_input():
    text = "urgent repair in room 3"
    assert generate_suggestions(text) == generate_suggestions(text)
