"""
Workflow execution.

Runs a workflow's actions one after another against the triggering message.
Actions are fire-and-forget: when a later action fails, effects of earlier
actions (e.g. a task already created) stay in place. Every run, successful or
not, appends exactly one execution record and the workflow's rolling stats
are recomputed from the last ten records. Failures are never raised to the
caller; they surface through the record, the stats and the emitted event.
"""

from __future__ import annotations

import time

from evshub.intelligence.actions import ActionContext, ActionRegistry, TaskSink
from evshub.intelligence.events import EventBus, EventType
from evshub.intelligence.extractor import TaskExtractor
from evshub.intelligence.models import ExecutionRecord, Message
from evshub.intelligence.store import InsightBuffer
from evshub.intelligence.workflows import WorkflowRegistry
from evshub.observability.logging import get_logger
from evshub.observability.telemetry import counter, log_event

logger = get_logger(__name__)


class WorkflowExecutor:
    def __init__(
        self,
        registry: WorkflowRegistry,
        actions: ActionRegistry,
        extractor: TaskExtractor,
        tasks: TaskSink,
        insights: InsightBuffer,
        events: EventBus,
    ) -> None:
        self.registry = registry
        self.actions = actions
        self.extractor = extractor
        self.tasks = tasks
        self.insights = insights
        self.events = events

    async def execute(self, workflow_id: str, message: Message) -> ExecutionRecord | None:
        """
        Execute a workflow against ``message``.

        Returns:
            The appended ExecutionRecord, or None when the workflow id is unknown

        Side Effects:
            - Runs each action handler in declared order
            - Appends to the workflow's execution history and updates its stats
            - Emits a workflow_executed event
        """
        workflow = self.registry.get(workflow_id)
        if workflow is None:
            logger.warning("Cannot execute unknown workflow %s", workflow_id)
            return None

        ctx = ActionContext(
            workflow=workflow,
            message=message,
            extractor=self.extractor,
            tasks=self.tasks,
            insights=self.insights,
            events=self.events,
        )
        started = time.monotonic()
        error: str | None = None

        try:
            for action in workflow.actions:
                handler = self.actions.get(action.type)
                if handler is None:
                    logger.debug("Skipping unknown action type %s in %s", action.type, workflow_id)
                    continue
                await handler(action, ctx)
        except Exception as e:
            error = str(e) or type(e).__name__
            logger.error("Workflow %s execution failed: %s", workflow_id, error)

        elapsed_minutes = (time.monotonic() - started) / 60
        record = ExecutionRecord(
            success=error is None,
            execution_time=elapsed_minutes,
            trigger_message_id=message.id,
            error=error,
        )
        updated = self.registry.record_execution(workflow_id, record)

        counter(f"workflows.{workflow_id}.{'success' if record.success else 'failure'}")
        log_event(
            "workflow.executed",
            workflow_id=workflow_id,
            success=record.success,
            success_rate=round(updated.success_rate, 1),
        )

        payload = {
            "workflow_id": workflow_id,
            "success": record.success,
            "message_id": message.id,
        }
        if error is not None:
            payload["error"] = error
        self.events.emit(EventType.WORKFLOW_EXECUTED, **payload)

        return record
