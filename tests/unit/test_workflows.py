"""Tests for workflow definitions and the registry"""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from evshub.infrastructure.settings import WORKFLOWS_FILE
from evshub.intelligence.errors import WorkflowDefinitionError, WorkflowNotFoundError
from evshub.intelligence.models import ExecutionRecord
from evshub.intelligence.workflows import (
    DEFAULT_WORKFLOWS,
    WorkflowRegistry,
    load_workflow_definitions,
)


def _record(success: bool, minutes: float = 1.0) -> ExecutionRecord:
    return ExecutionRecord(
        timestamp=datetime(2026, 3, 10, tzinfo=UTC),
        success=success,
        execution_time=minutes,
        trigger_message_id="msg_1",
        error=None if success else "boom",
    )


def test_missing_file_falls_back_to_defaults(tmp_path):
    definitions = load_workflow_definitions(tmp_path / "missing.yaml")
    assert [d["id"] for d in definitions] == [d["id"] for d in DEFAULT_WORKFLOWS]


def test_shipped_seed_file_matches_defaults():
    registry = WorkflowRegistry.with_defaults(WORKFLOWS_FILE)
    assert [w.id for w in registry.all()] == [
        "urgent-task-auto-assign",
        "coverage-gap-predictor",
        "smart-escalation",
    ]
    assert registry.get("coverage-gap-predictor").conditions[0].threshold == 3


def test_malformed_yaml(tmp_path):
    path = tmp_path / "workflows.yaml"
    path.write_text("workflows: [unclosed")
    with pytest.raises(WorkflowDefinitionError):
        load_workflow_definitions(path)


def test_missing_workflows_key(tmp_path):
    path = tmp_path / "workflows.yaml"
    path.write_text("other: 1\n")
    with pytest.raises(WorkflowDefinitionError):
        load_workflow_definitions(path)


def test_invalid_definition():
    with pytest.raises(WorkflowDefinitionError):
        WorkflowRegistry.from_definitions([{"name": "no id"}])


def test_unknown_condition_types_still_load(registry):
    escalation = registry.require("smart-escalation")
    assert [c.type for c in escalation.conditions] == ["task_overdue", "no_response"]


def test_toggle(registry):
    registry.toggle("smart-escalation", False)
    assert [w.id for w in registry.active()] == [
        "urgent-task-auto-assign",
        "coverage-gap-predictor",
    ]


def test_toggle_unknown(registry):
    with pytest.raises(WorkflowNotFoundError) as exc_info:
        registry.toggle("nope", True)
    assert str(exc_info.value) == "Unknown workflow: nope"


def test_stats_from_last_ten_records(registry):
    """N successes then one failure: rate is 9/10 once history exceeds ten"""
    for _ in range(12):
        registry.record_execution("smart-escalation", _record(True, minutes=2.0))
    workflow = registry.record_execution("smart-escalation", _record(False, minutes=12.0))

    assert len(workflow.execution_history) == 13
    assert workflow.success_rate == pytest.approx(90.0)
    assert workflow.avg_completion_time == pytest.approx((9 * 2.0 + 12.0) / 10)


def test_stats_with_short_history(registry):
    registry.record_execution("smart-escalation", _record(True))
    workflow = registry.record_execution("smart-escalation", _record(False))

    assert workflow.success_rate == pytest.approx(50.0)


def test_seed_stats_untouched_until_first_execution(registry):
    assert registry.require("urgent-task-auto-assign").success_rate == 94


def test_snapshot_is_a_copy(registry):
    snapshot = registry.snapshot()
    snapshot[0].active = False
    assert registry.all()[0].active is True
