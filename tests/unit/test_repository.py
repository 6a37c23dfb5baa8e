"""Tests for the SQLite-backed task and text input repositories"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime

from evshub.infrastructure.database import get_pool_stats, validate_schema
from evshub.intelligence.models import TaskDraft
from evshub.intelligence.patterns import PatternAnalyzer
from evshub.intelligence.service import CommunicationIntelligenceService
from evshub.tasks.models import TaskCreate, next_epoch_id
from evshub.tasks.repository import RepositoryTaskSink, TaskRepository
from evshub.text_inputs.repository import TextInputRepository
from evshub.text_inputs.scanner import scan_text_input
from evshub.text_inputs.service import TextScanningService

DEADLINE = datetime(2026, 3, 10, 17, 0, tzinfo=UTC)


def _draft(**overrides) -> TaskDraft:
    fields = {
        "title": "URGENT: leak in Room 204, please fix immediately",
        "description": "URGENT: leak in Room 204, please fix immediately",
        "priority": "urgent",
        "location": "Room 204",
        "deadline": DEADLINE,
        "category": "maintenance",
        "estimated_duration": 60,
        "source_message_id": "msg_1",
    }
    fields.update(overrides)
    return TaskDraft(**fields)


def test_schema_is_valid(db_path):
    assert validate_schema() is True
    assert get_pool_stats()["pool_size"] >= 1


def test_epoch_ids_are_unique_and_increasing():
    ids = [next_epoch_id("TASK") for _ in range(50)]
    assert len(set(ids)) == 50
    numbers = [int(i[len("TASK") :]) for i in ids]
    assert numbers == sorted(numbers)


class TestTaskRepository:
    def test_create_and_get(self, db_path):
        task = TaskRepository.create(TaskCreate(title="Mop hallway", location="hallway"))

        assert task.id.startswith("TASK")
        assert task.status == "pending"

        stored = TaskRepository.get_by_id(task.id)
        assert stored.title == "Mop hallway"
        assert stored.location == "hallway"
        assert stored.source == "manual"
        assert stored.auto_created is False

    def test_get_missing(self, db_path):
        assert TaskRepository.get_by_id("TASK0") is None

    def test_list_recent_and_counts(self, db_path):
        first = TaskRepository.create(TaskCreate(title="first"))
        second = TaskRepository.create(TaskCreate(title="second"))

        assert [t.id for t in TaskRepository.list_recent()] == [second.id, first.id]
        assert TaskRepository.count_by_status() == {"pending": 2}


def test_sink_persists_workflow_draft(db_path):
    task = asyncio.run(RepositoryTaskSink().create_task(_draft()))

    stored = TaskRepository.get_by_id(task.id)
    assert stored.priority == "urgent"
    assert stored.location == "Room 204"
    assert stored.category == "maintenance"
    assert stored.deadline == DEADLINE
    assert stored.estimated_duration == 60
    assert stored.auto_created is True
    assert stored.source == "workflow"
    assert stored.source_message_id == "msg_1"


class TestScanner:
    def test_elevator_door(self):
        [task] = scan_text_input("Fix the elevator door. It sticks.", "phone")
        assert task.title == "Fix the elevator door"
        assert task.location == "elevator"
        assert task.priority == "medium"
        assert task.deadline is None
        assert task.source == "phone"

    def test_priority_keyword(self):
        [task] = scan_text_input("Please repair the lobby sign asap", "manual")
        assert task.priority == "high"
        assert task.location == "lobby"

    def test_first_listed_location_wins(self):
        [task] = scan_text_input("clean room 5 on floor 2", "manual")
        assert task.location == "floor"

    def test_no_location(self):
        [task] = scan_text_input("update the rota", "manual")
        assert task.location == "Not specified"

    def test_no_task_keywords(self):
        assert scan_text_input("All quiet tonight", "manual") == []

    def test_leading_period_uses_prefix(self):
        [task] = scan_text_input(".clean it", "manual")
        assert task.title == ".clean it"


class TestTextScanningService:
    def test_process_stores_result(self, db_path):
        result = asyncio.run(
            TextScanningService().process("Fix the elevator door. It sticks.", "phone")
        )

        assert result.text_input_id.startswith("TXT")
        [task] = result.extracted_tasks
        assert task.location == "elevator"

        stored = TextInputRepository.get_by_id(result.text_input_id)
        assert stored.processed is True
        assert stored.source == "phone"
        assert stored.extracted_tasks == result.extracted_tasks

        # Scan results are kept with the text input, not turned into tasks
        assert TaskRepository.list_recent() == []

    def test_process_without_tasks(self, db_path):
        result = TextScanningService().process_sync("All quiet tonight", "manual")

        assert result.extracted_tasks == []
        assert TextInputRepository.get_by_id(result.text_input_id).processed is True


def test_leading_period_message_persists_task(db_path, assistant, registry, clock):
    service = CommunicationIntelligenceService(
        assistant=assistant,
        tasks=RepositoryTaskSink(),
        registry=registry,
        analyzer=PatternAnalyzer("UTC"),
        clock=clock,
    )

    message = asyncio.run(service.process_message("...URGENT: clean Room 204 asap"))

    assert "urgent-task-auto-assign" in message.workflow_triggers
    [record] = registry.require("urgent-task-auto-assign").execution_history
    assert record.success is True
    assert record.error is None

    [task] = TaskRepository.list_recent()
    assert task.title == "...URGENT: clean Room 204 asap"
    assert task.priority == "urgent"
    assert task.location == "Room 204"
