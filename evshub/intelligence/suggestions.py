"""Canned follow-up suggestions keyed by keyword presence."""

from __future__ import annotations

from evshub.intelligence.keyword_data import MAX_SUGGESTIONS, SUGGESTION_GROUPS


def generate_suggestions(content: str) -> list[str]:
    """
    Collect the canned suggestions of every matching keyword group, in group
    order (cleaning, urgency, repair), and keep the first three.

    Side Effects:
        None (pure function)
    """
    lowered = content.lower()
    suggestions: list[str] = []
    for keywords, pool in SUGGESTION_GROUPS:
        if any(keyword in lowered for keyword in keywords):
            suggestions.extend(pool)
    return suggestions[:MAX_SUGGESTIONS]
