"""Tests for workflow execution and the action registry"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import pytest

from evshub.intelligence.actions import ActionRegistry
from evshub.intelligence.events import EventBus, EventType
from evshub.intelligence.executor import WorkflowExecutor
from evshub.intelligence.extractor import TaskExtractor
from evshub.intelligence.models import Message, Priority, WorkflowAction
from evshub.intelligence.store import InsightBuffer
from evshub.observability.telemetry import get_counter

NOW = datetime(2026, 3, 10, 14, 0, tzinfo=UTC)
URGENT_LEAK = Message(
    content="URGENT: leak in Room 204, please fix immediately",
    priority=Priority.URGENT,
    timestamp=NOW,
)


@pytest.fixture
def events() -> EventBus:
    return EventBus()


@pytest.fixture
def insights() -> InsightBuffer:
    return InsightBuffer()


def _executor(registry, actions, task_sink, insights, events) -> WorkflowExecutor:
    return WorkflowExecutor(
        registry=registry,
        actions=actions,
        extractor=TaskExtractor(clock=lambda: NOW, timezone="UTC"),
        tasks=task_sink,
        insights=insights,
        events=events,
    )


def test_successful_run_records_and_creates_task(registry, task_sink, insights, events):
    received = []
    events.subscribe(received.append)
    executor = _executor(registry, ActionRegistry.with_defaults(), task_sink, insights, events)

    record = asyncio.run(executor.execute("urgent-task-auto-assign", URGENT_LEAK))

    assert record.success is True
    assert record.error is None
    assert record.trigger_message_id == URGENT_LEAK.id

    workflow = registry.require("urgent-task-auto-assign")
    assert workflow.execution_history == [record]
    assert workflow.success_rate == 100.0

    assert len(task_sink.drafts) == 1
    assert task_sink.drafts[0].location == "Room 204"

    assert [e.type for e in received] == [EventType.WORKFLOW_EXECUTED]
    assert received[0].payload["success"] is True
    assert get_counter("workflows.urgent-task-auto-assign.success") == 1


def test_extract_task_priority_override(registry, task_sink, insights, events):
    message = Message(content="please check the lobby", timestamp=NOW)
    executor = _executor(registry, ActionRegistry.with_defaults(), task_sink, insights, events)

    asyncio.run(executor.execute("urgent-task-auto-assign", message))

    assert task_sink.drafts[0].priority == "urgent"


def test_extract_task_without_override_keeps_message_priority(task_sink, insights, events):
    from evshub.intelligence.actions import ActionContext, extract_task
    from evshub.intelligence.models import Workflow

    message = Message(content="please check the lobby", timestamp=NOW)
    ctx = ActionContext(
        workflow=Workflow(id="w", name="w"),
        message=message,
        extractor=TaskExtractor(clock=lambda: NOW, timezone="UTC"),
        tasks=task_sink,
        insights=insights,
        events=events,
    )

    asyncio.run(extract_task(WorkflowAction(type="extract_task"), ctx))

    assert task_sink.drafts[0].priority == "low"


def test_failure_keeps_earlier_effects(registry, task_sink, insights, events):
    received = []
    events.subscribe(received.append)

    async def exploding(action, ctx):
        raise RuntimeError("staff directory offline")

    actions = ActionRegistry.with_defaults()
    actions.register("find_available_staff", exploding)
    executor = _executor(registry, actions, task_sink, insights, events)

    record = asyncio.run(executor.execute("urgent-task-auto-assign", URGENT_LEAK))

    assert record.success is False
    assert record.error == "staff directory offline"
    # extract_task ran before the failure and is not rolled back
    assert len(task_sink.drafts) == 1

    workflow = registry.require("urgent-task-auto-assign")
    assert len(workflow.execution_history) == 1
    assert workflow.success_rate == 0.0

    assert received[-1].payload == {
        "workflow_id": "urgent-task-auto-assign",
        "success": False,
        "message_id": URGENT_LEAK.id,
        "error": "staff directory offline",
    }


def test_unknown_action_types_are_skipped(registry, task_sink, insights, events):
    registry.require("smart-escalation").actions.append(WorkflowAction(type="teleport"))
    executor = _executor(registry, ActionRegistry.with_defaults(), task_sink, insights, events)

    record = asyncio.run(executor.execute("smart-escalation", URGENT_LEAK))

    assert record.success is True


def test_unknown_workflow_returns_none(registry, task_sink, insights, events):
    executor = _executor(registry, ActionRegistry.with_defaults(), task_sink, insights, events)

    assert asyncio.run(executor.execute("nope", URGENT_LEAK)) is None


def test_coverage_gap_prediction_publishes_insight(registry, task_sink, insights, events):
    received = []
    events.subscribe(received.append)
    executor = _executor(registry, ActionRegistry.with_defaults(), task_sink, insights, events)

    asyncio.run(executor.execute("coverage-gap-predictor", URGENT_LEAK))

    [insight] = insights.recent()
    assert insight.type == "coverage_gap"
    assert insight.confidence == 0.85
    assert insight.impact == "high"
    assert insight.timeframe == "Next 2 hours"
    assert "Room 204" in insight.description
    assert [e.type for e in received] == [
        EventType.INSIGHT_GENERATED,
        EventType.WORKFLOW_EXECUTED,
    ]


def test_registry_membership():
    actions = ActionRegistry.with_defaults()
    assert "escalate_to_supervisor" in actions
    assert "teleport" not in actions
    assert actions.get("teleport") is None
