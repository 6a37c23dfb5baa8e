"""
Communication intelligence domain models.

Messages, task drafts, workflows and predictive insights as exchanged between
the intelligence service, its HTTP routes and the persistence layer.
"""

from __future__ import annotations

import secrets
import time
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Return current UTC time as a timezone-aware datetime."""
    return datetime.now(UTC)


def generate_id(prefix: str) -> str:
    """Opaque identifier like ``msg_1718000000000_k3j9x2a1b``."""
    return f"{prefix}_{int(time.time() * 1000)}_{secrets.token_hex(5)[:9]}"


class MessageType(str, Enum):
    """Origin of a message."""

    USER = "user"
    AI = "ai"
    SYSTEM = "system"
    PREDICTION = "prediction"


class Priority(str, Enum):
    """Priority level, ordered from least to most pressing."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class MessageStatus(str, Enum):
    """Delivery status. Messages are created as SENT; no transitions are applied."""

    SENT = "sent"
    DELIVERED = "delivered"
    READ = "read"
    ACTED_UPON = "acted_upon"


class TaskCategory(str, Enum):
    CLEANING = "cleaning"
    MAINTENANCE = "maintenance"
    RESTOCKING = "restocking"
    INSPECTION = "inspection"
    GENERAL = "general"


class TaskDraft(BaseModel):
    """
    A provisional task derived from a message.

    Not persisted by itself; the extract_task workflow action decides whether
    a draft becomes a stored task.
    """

    model_config = ConfigDict(use_enum_values=True)

    title: str
    description: str
    priority: Priority
    location: str
    deadline: datetime | None = None
    category: TaskCategory = TaskCategory.GENERAL
    estimated_duration: int = Field(default=45, description="Estimated minutes")
    auto_created: bool = True
    source_message_id: str


class Message(BaseModel):
    """A unit of communication processed by the intelligence service."""

    model_config = ConfigDict(use_enum_values=True)

    id: str = Field(default_factory=lambda: generate_id("msg"))
    content: str
    sender: str = "user"
    timestamp: datetime = Field(default_factory=utc_now)
    type: MessageType = MessageType.USER
    priority: Priority = Priority.LOW
    status: MessageStatus = MessageStatus.SENT
    context: dict[str, Any] | None = None
    suggestions: list[str] | None = None
    extracted_tasks: list[TaskDraft] | None = None
    workflow_triggers: list[str] | None = None


# ---------------------------------------------------------------------------
# Workflows
# ---------------------------------------------------------------------------


class ConditionType(str, Enum):
    """Recognised trigger condition types. Unknown types evaluate to False."""

    CONTAINS_KEYWORDS = "contains_keywords"
    PRIORITY = "priority"
    LOCATION_CLUSTERING = "location_clustering"
    TIME_WINDOW = "time_window"


class ActionType(str, Enum):
    """Recognised workflow action types. Unknown types are skipped."""

    EXTRACT_TASK = "extract_task"
    FIND_AVAILABLE_STAFF = "find_available_staff"
    AUTO_ASSIGN = "auto_assign"
    SEND_NOTIFICATION = "send_notification"
    PREDICT_COVERAGE_GAP = "predict_coverage_gap"
    SUGGEST_STAFF_REDISTRIBUTION = "suggest_staff_redistribution"
    CREATE_COVERAGE_REQUEST = "create_coverage_request"
    ESCALATE_TO_SUPERVISOR = "escalate_to_supervisor"
    SUGGEST_ALTERNATIVES = "suggest_alternatives"
    UPDATE_PRIORITY = "update_priority"


class WorkflowCondition(BaseModel):
    """
    A trigger condition.

    ``type`` is kept as a plain string so that definitions carrying condition
    types this service does not evaluate (e.g. ``task_overdue``) still load.
    """

    model_config = ConfigDict(extra="allow")

    type: str
    keywords: list[str] | None = None
    level: Priority | None = None
    threshold: int | str | None = None
    minutes: int | None = None


class WorkflowAction(BaseModel):
    """A single step of a workflow's action list."""

    model_config = ConfigDict(extra="allow")

    type: str
    priority: Priority | None = None


class ExecutionRecord(BaseModel):
    """One entry of a workflow's execution history."""

    timestamp: datetime = Field(default_factory=utc_now)
    success: bool
    execution_time: float = Field(..., description="Duration in minutes")
    trigger_message_id: str
    error: str | None = None


class Workflow(BaseModel):
    """A named automation: trigger conditions plus an ordered action list."""

    id: str
    name: str
    trigger: str = Field(default="", description="Human-readable trigger description")
    conditions: list[WorkflowCondition] = Field(default_factory=list)
    actions: list[WorkflowAction] = Field(default_factory=list)
    success_rate: float = 100.0
    avg_completion_time: float = 0.0
    active: bool = True
    execution_history: list[ExecutionRecord] = Field(default_factory=list)

    def recompute_stats(self, window: int = 10) -> None:
        """
        Recompute success rate and average completion time from the most
        recent ``window`` execution records.

        Side Effects:
            - Updates self.success_rate and self.avg_completion_time
        """
        recent = self.execution_history[-window:]
        if not recent:
            return
        successes = sum(1 for record in recent if record.success)
        self.success_rate = successes / len(recent) * 100
        self.avg_completion_time = sum(record.execution_time for record in recent) / len(recent)


# ---------------------------------------------------------------------------
# Insights
# ---------------------------------------------------------------------------


class InsightType(str, Enum):
    TASK_NEEDED = "task_needed"
    COVERAGE_GAP = "coverage_gap"
    EFFICIENCY_OPPORTUNITY = "efficiency_opportunity"
    ISSUE_PREVENTION = "issue_prevention"


class Impact(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class PredictiveInsight(BaseModel):
    """A derived observation about recent message patterns."""

    model_config = ConfigDict(use_enum_values=True)

    id: str = Field(default_factory=lambda: generate_id("insight"))
    type: InsightType
    title: str
    description: str
    confidence: float = Field(..., ge=0.0, le=1.0)
    impact: Impact
    suggested_actions: list[str] = Field(default_factory=list)
    timeframe: str
    based_on: list[str] = Field(default_factory=list)


class PatternType(str, Enum):
    PEAK_ACTIVITY = "peak_activity"
    LOCATION_HOTSPOT = "location_hotspot"
    PRIORITY_SPIKE = "priority_spike"


class DetectedPattern(BaseModel):
    """Intermediate result of pattern analysis, before insight conversion."""

    model_config = ConfigDict(use_enum_values=True)

    type: PatternType
    subject: str
    confidence: float
    impact: Impact
    description: str
    timeframe: str
    suggestions: list[str] = Field(default_factory=list)
