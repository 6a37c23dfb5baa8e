"""
Task Repository - CRUD operations for the tasks table.

Follows the database patterns in evshub/infrastructure/database.py.
"""

from __future__ import annotations

import asyncio

from evshub.infrastructure.database import db_transaction, get_db_connection, retry_on_db_lock
from evshub.intelligence.models import TaskDraft
from evshub.observability.logging import get_logger
from evshub.observability.telemetry import counter
from evshub.tasks.models import Task, TaskCreate, next_epoch_id

logger = get_logger(__name__)


class TaskRepository:
    """
    Repository for Task CRUD operations.

    All methods use connection pooling and proper transaction handling.
    """

    @staticmethod
    @retry_on_db_lock()
    def create(data: TaskCreate) -> Task:
        """
        Create a new task in pending state.

        Returns:
            Created Task with generated ``TASK<epoch-ms>`` id

        Side Effects:
            - Inserts row into tasks table
            - Commits transaction
        """
        task = Task(id=next_epoch_id("TASK"), **data.model_dump())

        with db_transaction() as conn:
            conn.execute(
                """
                INSERT INTO tasks (
                    id, title, description, priority, status, location, category,
                    deadline, estimated_duration, auto_created, source,
                    source_message_id, created_at
                ) VALUES (
                    :id, :title, :description, :priority, :status, :location, :category,
                    :deadline, :estimated_duration, :auto_created, :source,
                    :source_message_id, :created_at
                )
                """,
                task.to_db_dict(),
            )

        counter("tasks.created")
        logger.info("Created task %s (%s, %s)", task.id, task.priority, task.location)
        return task

    @staticmethod
    def get_by_id(task_id: str) -> Task | None:
        with get_db_connection() as conn:
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()

        if not row:
            return None

        return Task.from_db_row(dict(row))

    @staticmethod
    def list_recent(limit: int = 50) -> list[Task]:
        """Most recently created tasks first."""
        with get_db_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM tasks ORDER BY created_at DESC, id DESC LIMIT ?",
                (limit,),
            ).fetchall()

        return [Task.from_db_row(dict(row)) for row in rows]

    @staticmethod
    def count_by_status() -> dict[str, int]:
        with get_db_connection() as conn:
            rows = conn.execute(
                "SELECT status, COUNT(*) AS total FROM tasks GROUP BY status"
            ).fetchall()

        return {row["status"]: row["total"] for row in rows}


class RepositoryTaskSink:
    """
    Task sink used by workflow actions.

    Repository calls are blocking; they run in a worker thread so the event
    loop keeps serving requests while SQLite writes.
    """

    async def create_task(self, draft: TaskDraft) -> Task:
        return await asyncio.to_thread(TaskRepository.create, TaskCreate.from_draft(draft))
