"""Keyword-based message priority classification."""

from __future__ import annotations

from evshub.intelligence.keyword_data import PRIORITY_KEYWORDS
from evshub.intelligence.models import Priority


def classify_priority(content: str) -> Priority:
    """
    Map free text to a priority level.

    Case-insensitive substring test against the keyword sets in order
    urgent -> high -> medium; the first set with a hit wins, otherwise low.

    Side Effects:
        None (pure function)
    """
    lowered = content.lower()
    for priority, keywords in PRIORITY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return priority
    return Priority.LOW
