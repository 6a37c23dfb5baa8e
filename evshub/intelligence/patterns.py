"""
Activity pattern analysis over the message history.

Three detectors run over the full history on every pass:

- peak activity: busiest hour of day, reported when it saw more than 5 messages
- location hotspot: any location mentioned in more than 3 messages
- priority spike: more than 2 urgent messages in the last 24 hours

Patterns whose confidence exceeds INSIGHT_CONFIDENCE_THRESHOLD are turned
into predictive insights by ``insight_from_pattern``.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from evshub.config import (
    INSIGHT_CONFIDENCE_THRESHOLD,
    PATTERN_ANALYSIS_INTERVAL_SECONDS,
    SERVICE_TIMEZONE,
)
from evshub.intelligence.extractor import extract_location
from evshub.intelligence.keyword_data import NOT_SPECIFIED
from evshub.intelligence.models import (
    DetectedPattern,
    Impact,
    InsightType,
    Message,
    PatternType,
    PredictiveInsight,
    Priority,
    utc_now,
)
from evshub.observability.logging import get_logger

logger = get_logger(__name__)

PEAK_HOUR_MIN_MESSAGES = 5
HOTSPOT_MIN_MENTIONS = 3
HOTSPOT_HIGH_IMPACT_MENTIONS = 5
HOTSPOT_MAX_CONFIDENCE = 0.95
URGENT_SPIKE_MIN_MESSAGES = 2
URGENT_SPIKE_WINDOW = timedelta(hours=24)


class PatternAnalyzer:
    def __init__(self, timezone: str = SERVICE_TIMEZONE) -> None:
        self.tz = ZoneInfo(timezone)

    def analyze(
        self,
        messages: list[Message],
        now: datetime | None = None,
        location_counts: dict[str, int] | None = None,
    ) -> list[DetectedPattern]:
        """
        Run all detectors. ``location_counts`` lets a caller holding cached
        per-message locations skip re-extracting them from every message.
        """
        now = now or utc_now()
        patterns: list[DetectedPattern] = []
        patterns.extend(self.peak_activity(messages))
        patterns.extend(self.location_hotspots(messages, location_counts))
        patterns.extend(self.priority_spikes(messages, now))
        return patterns

    def peak_activity(self, messages: list[Message]) -> list[DetectedPattern]:
        if not messages:
            return []

        hour_counts = Counter(message.timestamp.astimezone(self.tz).hour for message in messages)
        # Ties go to the later hour
        peak_hour, count = max(hour_counts.items(), key=lambda item: (item[1], item[0]))
        if count <= PEAK_HOUR_MIN_MESSAGES:
            return []

        return [
            DetectedPattern(
                type=PatternType.PEAK_ACTIVITY,
                subject=f"{peak_hour}:00 hour",
                confidence=0.8,
                impact=Impact.MEDIUM,
                description=f"Peak activity occurs around {peak_hour}:00",
                timeframe="Daily",
                suggestions=[
                    "Ensure adequate staffing during peak hours",
                    "Pre-position resources",
                ],
            )
        ]

    def location_hotspots(
        self, messages: list[Message], location_counts: dict[str, int] | None = None
    ) -> list[DetectedPattern]:
        if location_counts is None:
            location_counts = Counter()
            for message in messages:
                location = extract_location(message.content)
                if location != NOT_SPECIFIED:
                    location_counts[location] += 1

        patterns: list[DetectedPattern] = []
        for location, count in location_counts.items():
            if count <= HOTSPOT_MIN_MENTIONS:
                continue
            patterns.append(
                DetectedPattern(
                    type=PatternType.LOCATION_HOTSPOT,
                    subject=location,
                    confidence=min(count / 10, HOTSPOT_MAX_CONFIDENCE),
                    impact=Impact.HIGH if count > HOTSPOT_HIGH_IMPACT_MENTIONS else Impact.MEDIUM,
                    description=f"{location} requires frequent attention",
                    timeframe="Ongoing",
                    suggestions=[
                        f"Schedule regular maintenance for {location}",
                        "Consider permanent staff assignment",
                    ],
                )
            )
        return patterns

    def priority_spikes(self, messages: list[Message], now: datetime) -> list[DetectedPattern]:
        since = now - URGENT_SPIKE_WINDOW
        urgent = sum(
            1
            for message in messages
            if message.timestamp > since and message.priority == Priority.URGENT
        )
        if urgent <= URGENT_SPIKE_MIN_MESSAGES:
            return []

        return [
            DetectedPattern(
                type=PatternType.PRIORITY_SPIKE,
                subject="urgent tasks",
                confidence=0.9,
                impact=Impact.HIGH,
                description="Unusual spike in urgent tasks detected",
                timeframe="Last 24 hours",
                suggestions=[
                    "Review operational procedures",
                    "Increase supervisor oversight",
                    "Analyze root causes",
                ],
            )
        ]


def insight_from_pattern(pattern: DetectedPattern) -> PredictiveInsight | None:
    """
    Convert a detected pattern into a predictive insight.

    Returns None for patterns at or below the confidence threshold.
    """
    if pattern.confidence <= INSIGHT_CONFIDENCE_THRESHOLD:
        return None

    if pattern.type == PatternType.PEAK_ACTIVITY:
        return PredictiveInsight(
            type=InsightType.EFFICIENCY_OPPORTUNITY,
            title="Efficiency Improvement Opportunity",
            description=pattern.description,
            confidence=pattern.confidence,
            impact=Impact.MEDIUM,
            suggested_actions=pattern.suggestions,
            timeframe=pattern.timeframe,
            based_on=["Performance metrics", "Time analysis", "Resource utilization"],
        )

    if pattern.type == PatternType.LOCATION_HOTSPOT:
        return PredictiveInsight(
            type=InsightType.ISSUE_PREVENTION,
            title="Recurring Issue Pattern Detected",
            description=(
                f"Pattern shows recurring issues with {pattern.subject}. "
                "Consider preventive measures."
            ),
            confidence=pattern.confidence,
            impact=pattern.impact,
            suggested_actions=[
                *pattern.suggestions,
                "Increase monitoring frequency",
            ],
            timeframe=pattern.timeframe,
            based_on=["Historical data", "Pattern analysis", "Frequency tracking"],
        )

    if pattern.type == PatternType.PRIORITY_SPIKE:
        return PredictiveInsight(
            type=InsightType.ISSUE_PREVENTION,
            title="Urgent Request Spike",
            description=pattern.description,
            confidence=pattern.confidence,
            impact=pattern.impact,
            suggested_actions=pattern.suggestions,
            timeframe=pattern.timeframe,
            based_on=["Priority trends", "Last 24 hours of messages"],
        )

    return None


class PatternAnalysisLoop:
    """
    Runs an analysis callback on a fixed interval as an asyncio task.

    A failing pass is logged and the loop keeps going.
    """

    def __init__(
        self,
        run_once: Callable[[], Awaitable[object]],
        interval_seconds: float = PATTERN_ANALYSIS_INTERVAL_SECONDS,
    ) -> None:
        self.run_once = run_once
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="pattern-analysis")
        logger.info("Pattern analysis started (every %.0fs)", self.interval_seconds)

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Pattern analysis stopped")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.run_once()
            except Exception as e:
                logger.error("Pattern analysis pass failed: %s", e)
