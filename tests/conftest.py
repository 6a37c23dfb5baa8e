"""
Shared fixtures for EVS Hub tests

Provides a fixed clock, a scripted completion backend, an in-memory task
sink, a fully wired intelligence service and a throwaway SQLite database.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from evshub.infrastructure.database import close_pool, init_database
from evshub.intelligence.models import TaskDraft
from evshub.intelligence.patterns import PatternAnalyzer
from evshub.intelligence.service import CommunicationIntelligenceService
from evshub.intelligence.workflows import DEFAULT_WORKFLOWS, WorkflowRegistry
from evshub.llm.assistant import AssistantReply, AssistantUnavailableError
from evshub.observability.telemetry import reset_telemetry

NOW = datetime(2026, 3, 10, 14, 0, tzinfo=UTC)


class FixedClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime = NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeAssistant:
    """Completion backend returning a fixed reply, or failing on demand."""

    def __init__(self, response: str = "Noted, on it.", fail: bool = False) -> None:
        self.response = response
        self.fail = fail
        self.prompts: list[str] = []
        self.contexts: list[dict[str, Any]] = []

    async def complete(self, prompt: str, context: dict[str, Any]) -> AssistantReply:
        self.prompts.append(prompt)
        self.contexts.append(context)
        if self.fail:
            raise AssistantUnavailableError("backend down")
        return AssistantReply(response=self.response, suggestions=["Follow up"])


class InMemoryTaskSink:
    def __init__(self) -> None:
        self.drafts: list[TaskDraft] = []

    async def create_task(self, draft: TaskDraft) -> TaskDraft:
        self.drafts.append(draft)
        return draft


@pytest.fixture(autouse=True)
def _reset_telemetry():
    reset_telemetry()
    yield


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def assistant() -> FakeAssistant:
    return FakeAssistant()


@pytest.fixture
def task_sink() -> InMemoryTaskSink:
    return InMemoryTaskSink()


@pytest.fixture
def registry() -> WorkflowRegistry:
    return WorkflowRegistry.from_definitions(DEFAULT_WORKFLOWS)


@pytest.fixture
def service(clock, assistant, task_sink, registry) -> CommunicationIntelligenceService:
    return CommunicationIntelligenceService(
        assistant=assistant,
        tasks=task_sink,
        registry=registry,
        analyzer=PatternAnalyzer("UTC"),
        clock=clock,
    )


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    """Point the connection pool at a fresh database for one test."""
    path = tmp_path / "evshub_test.db"
    monkeypatch.setenv("EVSHUB_DB_PATH", str(path))
    close_pool()
    init_database()
    yield path
    close_pool()
