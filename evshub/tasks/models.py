"""
Persisted task models.

A Task is the stored counterpart of a TaskDraft, created by the
extract_task workflow action.
"""

from __future__ import annotations

import threading
import time
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from evshub.intelligence.models import Priority, TaskCategory, TaskDraft, utc_now

_id_lock = threading.Lock()
_last_ms = 0


def next_epoch_id(prefix: str) -> str:
    """``<prefix><epoch-ms>``, strictly increasing within the process."""
    global _last_ms
    with _id_lock:
        now_ms = int(time.time() * 1000)
        _last_ms = max(now_ms, _last_ms + 1)
        return f"{prefix}{_last_ms}"


class TaskStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class TaskSource(str, Enum):
    WORKFLOW = "workflow"
    MANUAL = "manual"


class TaskCreate(BaseModel):
    """Fields accepted when creating a task."""

    model_config = ConfigDict(use_enum_values=True)

    title: str = Field(..., min_length=1)
    description: str = ""
    priority: Priority = Priority.MEDIUM
    location: str | None = None
    category: TaskCategory = TaskCategory.GENERAL
    deadline: datetime | None = None
    estimated_duration: int | None = None
    auto_created: bool = False
    source: TaskSource = TaskSource.MANUAL
    source_message_id: str | None = None

    @classmethod
    def from_draft(cls, draft: TaskDraft) -> TaskCreate:
        return cls(
            title=draft.title,
            description=draft.description,
            priority=draft.priority,
            location=draft.location,
            category=draft.category,
            deadline=draft.deadline,
            estimated_duration=draft.estimated_duration,
            auto_created=draft.auto_created,
            source=TaskSource.WORKFLOW,
            source_message_id=draft.source_message_id,
        )


class Task(TaskCreate):
    id: str
    status: TaskStatus = TaskStatus.PENDING
    created_at: datetime = Field(default_factory=utc_now)

    def to_db_dict(self) -> dict[str, Any]:
        """Convert to dict for database storage."""
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "priority": self.priority,
            "status": self.status,
            "location": self.location,
            "category": self.category,
            "deadline": self.deadline.isoformat() if self.deadline else None,
            "estimated_duration": self.estimated_duration,
            "auto_created": int(self.auto_created),
            "source": self.source,
            "source_message_id": self.source_message_id,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> Task:
        """Create Task from database row."""
        deadline = row.get("deadline")
        return cls(
            id=row["id"],
            title=row["title"],
            description=row.get("description") or "",
            priority=Priority(row["priority"]),
            status=TaskStatus(row["status"]),
            location=row.get("location"),
            category=TaskCategory(row.get("category") or TaskCategory.GENERAL.value),
            deadline=datetime.fromisoformat(deadline) if deadline else None,
            estimated_duration=row.get("estimated_duration"),
            auto_created=bool(row.get("auto_created")),
            source=TaskSource(row.get("source") or TaskSource.MANUAL.value),
            source_message_id=row.get("source_message_id"),
            created_at=datetime.fromisoformat(row["created_at"]),
        )
