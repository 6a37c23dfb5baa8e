"""Tests for activity pattern analysis and insight conversion"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta

import pytest

from evshub.intelligence.models import Message, PatternType, Priority
from evshub.intelligence.patterns import PatternAnalysisLoop, PatternAnalyzer, insight_from_pattern

NOW = datetime(2026, 3, 10, 14, 30, tzinfo=UTC)


def _at(hour: int, content: str = "hello", **kwargs) -> Message:
    return Message(content=content, timestamp=NOW.replace(hour=hour), **kwargs)


@pytest.fixture
def analyzer() -> PatternAnalyzer:
    return PatternAnalyzer("UTC")


class TestPeakActivity:
    def test_reported_above_five(self, analyzer):
        [pattern] = analyzer.peak_activity([_at(9) for _ in range(6)])
        assert pattern.type == PatternType.PEAK_ACTIVITY
        assert pattern.description == "Peak activity occurs around 9:00"
        assert pattern.confidence == 0.8

    def test_not_reported_at_five(self, analyzer):
        assert analyzer.peak_activity([_at(9) for _ in range(5)]) == []

    def test_ties_go_to_later_hour(self, analyzer):
        messages = [_at(9) for _ in range(6)] + [_at(13) for _ in range(6)]
        [pattern] = analyzer.peak_activity(messages)
        assert pattern.subject == "13:00 hour"

    def test_uses_service_timezone(self):
        analyzer = PatternAnalyzer("America/New_York")
        [pattern] = analyzer.peak_activity([_at(14) for _ in range(6)])
        assert pattern.subject == "10:00 hour"

    def test_becomes_efficiency_insight(self, analyzer):
        [pattern] = analyzer.peak_activity([_at(9) for _ in range(6)])
        insight = insight_from_pattern(pattern)
        assert insight.type == "efficiency_opportunity"
        assert insight.impact == "medium"


class TestLocationHotspots:
    def test_needs_more_than_three_mentions(self, analyzer):
        assert analyzer.location_hotspots([_at(9, "Room 204") for _ in range(3)]) == []

    def test_low_confidence_hotspot_yields_no_insight(self, analyzer):
        [pattern] = analyzer.location_hotspots([_at(9, "Room 204") for _ in range(4)])
        assert pattern.confidence == pytest.approx(0.4)
        assert pattern.impact == "medium"
        assert insight_from_pattern(pattern) is None

    def test_confidence_capped_and_high_impact(self, analyzer):
        [pattern] = analyzer.location_hotspots([_at(9, "lobby spill") for _ in range(12)])
        assert pattern.confidence == 0.95
        assert pattern.impact == "high"

        insight = insight_from_pattern(pattern)
        assert insight.type == "issue_prevention"
        assert insight.title == "Recurring Issue Pattern Detected"
        assert "lobby" in insight.description


class TestPrioritySpike:
    def test_more_than_two_urgent_in_a_day(self, analyzer):
        messages = [_at(h, priority=Priority.URGENT) for h in (8, 9, 10)]
        [pattern] = analyzer.priority_spikes(messages, NOW)
        assert pattern.confidence == 0.9
        assert pattern.impact == "high"

        insight = insight_from_pattern(pattern)
        assert insight.type == "issue_prevention"
        assert insight.title == "Urgent Request Spike"

    def test_old_urgent_messages_ignored(self, analyzer):
        old = NOW - timedelta(days=2)
        messages = [
            Message(content="x", priority=Priority.URGENT, timestamp=old) for _ in range(3)
        ]
        assert analyzer.priority_spikes(messages, NOW) == []

    def test_two_is_not_a_spike(self, analyzer):
        messages = [_at(h, priority=Priority.URGENT) for h in (8, 9)]
        assert analyzer.priority_spikes(messages, NOW) == []


def test_analyze_empty_history(analyzer):
    assert analyzer.analyze([], NOW) == []


def test_analysis_loop_runs_and_survives_failures():
    calls = []

    async def run_once():
        calls.append(1)
        if len(calls) == 1:
            raise RuntimeError("first pass fails")

    async def scenario():
        loop = PatternAnalysisLoop(run_once, interval_seconds=0.01)
        loop.start()
        assert loop.running
        await asyncio.sleep(0.1)
        await loop.stop()
        assert not loop.running

    asyncio.run(scenario())
    assert len(calls) >= 2


def test_hotspots_use_supplied_location_counts(analyzer):
    messages = [_at(9, "hello") for _ in range(2)]

    [pattern] = analyzer.location_hotspots(messages, {"Room 204": 6, "lobby": 2})

    assert pattern.subject == "Room 204"
    assert pattern.impact == "high"


def test_analyze_passes_location_counts_through(analyzer):
    patterns = analyzer.analyze([], NOW, location_counts={"floor 2": 4})

    assert [(p.type, p.subject) for p in patterns] == [(PatternType.LOCATION_HOTSPOT, "floor 2")]
