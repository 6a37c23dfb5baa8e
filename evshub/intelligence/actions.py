"""
Workflow actions.

Every action type maps to an async handler in an ActionRegistry. Only
extract_task and predict_coverage_gap have real effects; the staff,
assignment, notification, coverage-request, escalation and priority hooks
log what they would do. Deployments substitute real integrations with
``ActionRegistry.register`` without touching the evaluator or executor.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Protocol

from evshub.intelligence.events import EventBus, EventType
from evshub.intelligence.extractor import TaskExtractor, extract_location
from evshub.intelligence.models import (
    ActionType,
    Impact,
    InsightType,
    Message,
    PredictiveInsight,
    TaskDraft,
    Workflow,
    WorkflowAction,
)
from evshub.intelligence.store import InsightBuffer
from evshub.observability.logging import get_logger
from evshub.utils.redaction import redact_content

logger = get_logger(__name__)


class TaskSink(Protocol):
    """Persistence collaborator used by the extract_task action."""

    async def create_task(self, draft: TaskDraft) -> object: ...


@dataclass
class ActionContext:
    workflow: Workflow
    message: Message
    extractor: TaskExtractor
    tasks: TaskSink
    insights: InsightBuffer
    events: EventBus


ActionHandler = Callable[[WorkflowAction, ActionContext], Awaitable[None]]


async def extract_task(action: WorkflowAction, ctx: ActionContext) -> None:
    """Re-extract drafts from the message and persist them, applying any priority override."""
    for draft in ctx.extractor.extract_tasks(ctx.message):
        if action.priority is not None:
            draft = draft.model_copy(update={"priority": action.priority.value})
        await ctx.tasks.create_task(draft)
        logger.info(
            "Workflow %s created task '%s' (%s)", ctx.workflow.id, draft.title, draft.priority
        )


async def predict_coverage_gap(action: WorkflowAction, ctx: ActionContext) -> None:
    insight = PredictiveInsight(
        type=InsightType.COVERAGE_GAP,
        title="Potential Coverage Gap Detected",
        description=(
            "Based on recent message patterns, a coverage gap may occur in "
            f"{extract_location(ctx.message.content)}"
        ),
        confidence=0.85,
        impact=Impact.HIGH,
        suggested_actions=[
            "Reassign staff from less busy areas",
            "Schedule additional coverage",
            "Monitor situation closely",
        ],
        timeframe="Next 2 hours",
        based_on=["Message clustering", "Historical patterns", "Current staff allocation"],
    )
    ctx.insights.append(insight)
    ctx.events.emit(EventType.INSIGHT_GENERATED, insight=insight.model_dump(mode="json"))


def _log_only(description: str) -> ActionHandler:
    async def handler(action: WorkflowAction, ctx: ActionContext) -> None:
        logger.info(
            "%s for workflow %s (message %s: %s)",
            description,
            ctx.workflow.name,
            ctx.message.id,
            redact_content(ctx.message.content),
        )

    handler.__name__ = f"log_{action_slug(description)}"
    return handler


def action_slug(description: str) -> str:
    return description.lower().replace(" ", "_")


class ActionRegistry:
    """Maps action type names to handlers."""

    def __init__(self, handlers: dict[str, ActionHandler] | None = None) -> None:
        self._handlers: dict[str, ActionHandler] = dict(handlers or {})

    @classmethod
    def with_defaults(cls) -> ActionRegistry:
        return cls(
            {
                ActionType.EXTRACT_TASK.value: extract_task,
                ActionType.FIND_AVAILABLE_STAFF.value: _log_only("Finding available staff"),
                ActionType.AUTO_ASSIGN.value: _log_only("Auto-assigning tasks"),
                ActionType.SEND_NOTIFICATION.value: _log_only("Sending notifications"),
                ActionType.PREDICT_COVERAGE_GAP.value: predict_coverage_gap,
                ActionType.SUGGEST_STAFF_REDISTRIBUTION.value: _log_only(
                    "Generating staff redistribution suggestion"
                ),
                ActionType.CREATE_COVERAGE_REQUEST.value: _log_only(
                    "Creating auto coverage request"
                ),
                ActionType.ESCALATE_TO_SUPERVISOR.value: _log_only("Escalating to supervisor"),
                ActionType.SUGGEST_ALTERNATIVES.value: _log_only(
                    "Generating alternative suggestions"
                ),
                ActionType.UPDATE_PRIORITY.value: _log_only("Updating task priority"),
            }
        )

    def register(self, action_type: str, handler: ActionHandler) -> None:
        """Install or replace the handler for an action type."""
        self._handlers[action_type] = handler

    def get(self, action_type: str) -> ActionHandler | None:
        return self._handlers.get(action_type)

    def __contains__(self, action_type: object) -> bool:
        return action_type in self._handlers
