"""
Keyword and pattern constants for message classification and task extraction.

Pure data, no logic. Order matters wherever a tuple is used: the first
matching group wins.
"""

from __future__ import annotations

import re

from evshub.intelligence.models import Priority, TaskCategory

# ---------------------------------------------------------------------------
# Priority classification (checked urgent -> high -> medium, else low)
# ---------------------------------------------------------------------------

PRIORITY_KEYWORDS: tuple[tuple[Priority, tuple[str, ...]], ...] = (
    (
        Priority.URGENT,
        ("emergency", "urgent", "asap", "immediately", "critical", "broken", "leak", "overflow"),
    ),
    (Priority.HIGH, ("important", "priority", "soon", "today", "deadline")),
    (Priority.MEDIUM, ("when possible", "schedule", "plan")),
)

# ---------------------------------------------------------------------------
# Task extraction
# ---------------------------------------------------------------------------

TASK_KEYWORDS: tuple[str, ...] = (
    "clean",
    "sanitize",
    "restock",
    "repair",
    "fix",
    "replace",
    "check",
    "inspect",
    "maintain",
)

NOT_SPECIFIED = "Not specified"

LOCATION_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"room\s+(\d+[a-zA-Z]?)", re.IGNORECASE),
    re.compile(r"floor\s+(\d+)", re.IGNORECASE),
    re.compile(r"(bathroom|restroom|office|lobby|cafeteria|elevator|hallway)", re.IGNORECASE),
)

DEADLINE_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"by\s+(\d{1,2}:\d{2})", re.IGNORECASE),
    re.compile(r"(today|tomorrow|asap|immediately)", re.IGNORECASE),
    re.compile(r"in\s+(\d+)\s+(hours?|minutes?)", re.IGNORECASE),
)

CATEGORY_KEYWORDS: tuple[tuple[TaskCategory, tuple[str, ...]], ...] = (
    (TaskCategory.CLEANING, ("clean", "sanitize", "vacuum", "mop", "dust")),
    (TaskCategory.MAINTENANCE, ("repair", "fix", "replace", "maintain", "check")),
    (TaskCategory.RESTOCKING, ("restock", "refill", "supply", "replenish")),
    (TaskCategory.INSPECTION, ("inspect", "check", "verify", "monitor")),
)

# (phrases, minutes), first match wins
DURATION_BUCKETS: tuple[tuple[tuple[str, ...], int], ...] = (
    (("deep clean", "thorough"), 120),
    (("quick", "spot"), 15),
    (("repair", "fix"), 60),
    (("restock", "refill"), 30),
)
DEFAULT_DURATION_MINUTES = 45

TITLE_MAX_CHARS = 50

# ---------------------------------------------------------------------------
# Suggestions (checked in order: cleaning, urgency, repair)
# ---------------------------------------------------------------------------

SUGGESTION_GROUPS: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = (
    (
        ("clean",),
        (
            "Schedule deep cleaning for this area",
            "Check supply levels for cleaning materials",
            "Assign additional staff if needed",
        ),
    ),
    (
        ("urgent", "emergency"),
        (
            "Escalate to supervisor immediately",
            "Dispatch nearest available staff",
            "Set up temporary coverage if needed",
        ),
    ),
    (
        ("broken", "repair"),
        (
            "Contact maintenance team",
            "Create work order",
            "Set up temporary alternative",
        ),
    ),
)
MAX_SUGGESTIONS = 3

# ---------------------------------------------------------------------------
# Text-input scanning (raw inbound text from phones, notes, email)
# ---------------------------------------------------------------------------

SCAN_TASK_KEYWORDS: tuple[str, ...] = (
    "clean",
    "repair",
    "fix",
    "replace",
    "maintain",
    "inspect",
    "update",
)
SCAN_LOCATIONS: tuple[str, ...] = (
    "building a",
    "building b",
    "floor",
    "room",
    "lobby",
    "elevator",
    "restroom",
)
SCAN_PRIORITY_KEYWORDS: tuple[str, ...] = ("urgent", "asap", "immediately", "priority", "important")
