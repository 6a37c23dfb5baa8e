"""Models for raw text submitted for scanning."""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from evshub.intelligence.keyword_data import NOT_SPECIFIED
from evshub.intelligence.models import Priority, utc_now


class ScannedTask(BaseModel):
    """A task candidate found by the text scanner. Never persisted as a task."""

    model_config = ConfigDict(use_enum_values=True)

    title: str
    description: str
    priority: Priority
    location: str = NOT_SPECIFIED
    deadline: datetime | None = None
    source: str


class TextInput(BaseModel):
    id: str
    content: str
    source: str
    sender: str = "unknown"
    processed: bool = False
    extracted_tasks: list[ScannedTask] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utc_now)

    def to_db_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "source": self.source,
            "processed": int(self.processed),
            "extracted_tasks": json.dumps(
                [task.model_dump(mode="json") for task in self.extracted_tasks]
            ),
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> TextInput:
        raw_tasks = json.loads(row.get("extracted_tasks") or "[]")
        return cls(
            id=row["id"],
            content=row["content"],
            source=row["source"],
            processed=bool(row.get("processed")),
            extracted_tasks=[ScannedTask.model_validate(task) for task in raw_tasks],
            created_at=datetime.fromisoformat(row["created_at"]),
        )


class ScanResult(BaseModel):
    extracted_tasks: list[ScannedTask]
    text_input_id: str
