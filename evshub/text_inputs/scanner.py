"""
Keyword scan of raw inbound text (phone notes, pasted emails, shortcuts).

Simpler than the message extractor: no deadline parsing, a two-level
priority, and locations matched by plain containment.
"""

from __future__ import annotations

from evshub.intelligence.keyword_data import (
    NOT_SPECIFIED,
    SCAN_LOCATIONS,
    SCAN_PRIORITY_KEYWORDS,
    SCAN_TASK_KEYWORDS,
    TITLE_MAX_CHARS,
)
from evshub.intelligence.models import Priority
from evshub.text_inputs.models import ScannedTask


def scan_text_input(content: str, source: str) -> list[ScannedTask]:
    """
    Return at most one task candidate for ``content``.

    Examples:
        "Fix the elevator door. It sticks." -> title "Fix the elevator door",
        location "elevator", priority medium
    """
    lowered = content.lower()
    if not any(keyword in lowered for keyword in SCAN_TASK_KEYWORDS):
        return []

    location = next((loc for loc in SCAN_LOCATIONS if loc in lowered), NOT_SPECIFIED)
    priority = (
        Priority.HIGH
        if any(keyword in lowered for keyword in SCAN_PRIORITY_KEYWORDS)
        else Priority.MEDIUM
    )
    title = content.split(".")[0] or content[:TITLE_MAX_CHARS]

    return [
        ScannedTask(
            title=title,
            description=content,
            priority=priority,
            location=location,
            source=source,
        )
    ]
