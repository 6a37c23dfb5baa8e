"""
Communication Intelligence Service - orchestrates message processing.

Flow per inbound message:
    classify priority -> assistant reply -> task extraction -> suggestions
    -> workflow trigger evaluation -> workflow execution -> context memory
    -> event emission

One instance is constructed at application start (see evshub.api.app) and
shared by every request handler and the periodic pattern analysis.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any

from evshub.config import API_MESSAGES_LIMIT_DEFAULT, RECENT_CONTEXT_MESSAGES
from evshub.intelligence.actions import ActionRegistry, TaskSink
from evshub.intelligence.errors import WorkflowNotFoundError
from evshub.intelligence.events import EventBus, EventType
from evshub.intelligence.executor import WorkflowExecutor
from evshub.intelligence.extractor import TaskExtractor
from evshub.intelligence.models import (
    ExecutionRecord,
    Message,
    MessageType,
    PredictiveInsight,
    Workflow,
    generate_id,
    utc_now,
)
from evshub.intelligence.patterns import PatternAnalyzer, insight_from_pattern
from evshub.intelligence.priority import classify_priority
from evshub.intelligence.store import ContextMemory, InsightBuffer, MessageStore
from evshub.intelligence.suggestions import generate_suggestions
from evshub.intelligence.triggers import WorkflowTriggerEvaluator
from evshub.intelligence.workflows import WorkflowRegistry
from evshub.llm.assistant import CompletionBackend
from evshub.observability.logging import get_logger
from evshub.observability.telemetry import counter, log_event, time_block
from evshub.utils.redaction import redact_content, redact_pii, sanitize_for_prompt

logger = get_logger(__name__)

ASSISTANT_SENDER = "AI Assistant"
MANUAL_EXECUTION_CONTENT = "Manual workflow execution"

REPLY_PROMPT_TEMPLATE = """As an expert EVS operations coordinator, provide an intelligent
response to this message:

Message: "{content}"
Priority: {priority}

Provide:
1. A helpful response
2. Actionable next steps
3. Any relevant warnings or considerations
"""


class CommunicationIntelligenceService:
    """Façade over classification, extraction, workflows and insights."""

    def __init__(
        self,
        assistant: CompletionBackend,
        tasks: TaskSink,
        store: MessageStore | None = None,
        registry: WorkflowRegistry | None = None,
        actions: ActionRegistry | None = None,
        insights: InsightBuffer | None = None,
        memory: ContextMemory | None = None,
        events: EventBus | None = None,
        analyzer: PatternAnalyzer | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.assistant = assistant
        self.tasks = tasks
        self.store = store or MessageStore()
        self.registry = registry or WorkflowRegistry.with_defaults()
        self.actions = actions or ActionRegistry.with_defaults()
        self.insights = insights or InsightBuffer()
        self.memory = memory or ContextMemory()
        self.events = events or EventBus()
        self.analyzer = analyzer or PatternAnalyzer()
        self.clock = clock

        self.extractor = TaskExtractor(clock=clock)
        self.evaluator = WorkflowTriggerEvaluator(self.store, clock=clock)
        self.executor = WorkflowExecutor(
            registry=self.registry,
            actions=self.actions,
            extractor=self.extractor,
            tasks=self.tasks,
            insights=self.insights,
            events=self.events,
        )

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    async def process_message(
        self,
        content: str,
        sender: str = "user",
        type: MessageType | str = MessageType.USER,
        context: dict[str, Any] | None = None,
    ) -> Message:
        """
        Ingest a message and run it through the full pipeline.

        Assistant and workflow failures are absorbed: the stored user message
        is always returned.

        Side Effects:
            - Stores the message (and the assistant reply) in the message store
            - May persist tasks and publish insights through triggered workflows
            - Updates the sender's context memory
            - Emits message_received / message_processed events
        """
        return await self._ingest(content, sender, type, context, evaluate_triggers=True)

    async def _ingest(
        self,
        content: str,
        sender: str,
        type: MessageType | str,
        context: dict[str, Any] | None,
        evaluate_triggers: bool,
    ) -> Message:
        with time_block("intelligence.process_message.latency"):
            now = self.clock()
            message = Message(
                content=content,
                sender=sender,
                timestamp=now,
                type=type,
                priority=classify_priority(content),
                context=context,
            )
            self.store.add(message)
            counter("intelligence.messages_ingested")
            logger.info(
                "Ingested %s (priority=%s): %s",
                message.id,
                message.priority,
                redact_content(content),
            )

            await self._generate_reply(message)

            extracted = self.extractor.extract_tasks(message)
            if extracted:
                message.extracted_tasks = extracted

            message.suggestions = generate_suggestions(content)

            triggered: list[str] = []
            if evaluate_triggers:
                triggered = self.evaluator.evaluate(message, self.registry.all())
            message.workflow_triggers = triggered

            for workflow_id in triggered:
                await self.executor.execute(workflow_id, message)

            self.memory.remember(message, now)

        log_event(
            "intelligence.message_processed",
            message_id=message.id,
            priority=message.priority,
            tasks=len(extracted),
            triggered=triggered,
        )
        payload = message.model_dump(mode="json")
        self.events.emit(EventType.MESSAGE_PROCESSED, message=payload)
        self.events.emit(EventType.MESSAGE_RECEIVED, message=payload)
        return message

    async def _generate_reply(self, message: Message) -> Message | None:
        """
        Ask the completion backend for a reply and store it as an ``ai`` message.

        Returns:
            The stored reply, or None when the backend failed
        """
        context = self.build_context(message)
        prompt = REPLY_PROMPT_TEMPLATE.format(
            content=redact_pii(sanitize_for_prompt(message.content)),
            priority=message.priority,
        )

        try:
            reply = await self.assistant.complete(prompt, context)
        except Exception as e:
            counter("intelligence.assistant_failures")
            logger.error("Error generating assistant reply for %s: %s", message.id, e)
            return None

        ai_message = Message(
            id=generate_id("ai"),
            content=reply.response,
            sender=ASSISTANT_SENDER,
            timestamp=self.clock(),
            type=MessageType.AI,
            priority=message.priority,
            context={"original_message_id": message.id},
            suggestions=reply.suggestions or None,
        )
        self.store.add(ai_message)
        self.events.emit(EventType.MESSAGE_RECEIVED, message=ai_message.model_dump(mode="json"))
        return ai_message

    def build_context(self, message: Message) -> dict[str, Any]:
        """Context blob handed to the completion backend alongside the prompt."""
        recent = [
            {
                "id": m.id,
                "sender": m.sender,
                "content": redact_pii(m.content),
                "priority": m.priority,
                "timestamp": m.timestamp.isoformat(),
            }
            for m in self.store.last(RECENT_CONTEXT_MESSAGES)
        ]
        return {
            "recent_messages": recent,
            "sender_history": self.memory.recall(message.sender, self.clock()),
            "current_time": self.clock().isoformat(),
            "active_workflows": len(self.registry.active()),
            "system_load": self.system_load(),
            "patterns": [],
        }

    def system_load(self) -> float:
        return min(len(self.store) / 100, 1.0)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_messages(self, limit: int = API_MESSAGES_LIMIT_DEFAULT) -> list[Message]:
        """Stored messages, newest first."""
        return self.store.recent(limit)

    def get_insights(self) -> list[PredictiveInsight]:
        return self.insights.recent()

    def get_workflows(self) -> list[Workflow]:
        return self.registry.snapshot()

    # ------------------------------------------------------------------
    # Workflows
    # ------------------------------------------------------------------

    def toggle_workflow(self, workflow_id: str, active: bool) -> Workflow:
        """
        Activate or deactivate a workflow.

        Raises:
            WorkflowNotFoundError: If the id is unknown
        """
        workflow = self.registry.toggle(workflow_id, active)
        self.events.emit(EventType.WORKFLOW_TOGGLED, workflow_id=workflow_id, active=active)
        return workflow

    async def execute_workflow(
        self, workflow_id: str, message: Message
    ) -> ExecutionRecord | None:
        return await self.executor.execute(workflow_id, message)

    async def run_manual_workflow(
        self, workflow_id: str, sender: str = "System"
    ) -> ExecutionRecord:
        """
        Execute a workflow on demand.

        A ``system`` message is synthesised and ingested first, without
        automatic trigger evaluation, so the requested workflow gains exactly
        one execution record.

        Raises:
            WorkflowNotFoundError: If the id is unknown
        """
        self.registry.require(workflow_id)

        message = await self._ingest(
            MANUAL_EXECUTION_CONTENT,
            sender,
            MessageType.SYSTEM,
            {"manual_execution": True},
            evaluate_triggers=False,
        )
        record = await self.executor.execute(workflow_id, message)
        if record is None:
            raise WorkflowNotFoundError(workflow_id)
        logger.info(
            "Manual execution of %s by %s (success=%s)", workflow_id, sender, record.success
        )
        return record

    # ------------------------------------------------------------------
    # Insights
    # ------------------------------------------------------------------

    async def generate_predictive_insights(self) -> list[PredictiveInsight]:
        """
        Run pattern analysis over the full message history.

        Side Effects:
            - Appends qualifying insights to the insight buffer
            - Emits insight_generated for each
        """
        patterns = self.analyzer.analyze(
            self.store.all(), self.clock(), location_counts=self.store.location_counts()
        )
        generated: list[PredictiveInsight] = []
        for pattern in patterns:
            insight = insight_from_pattern(pattern)
            if insight is None:
                continue
            self.insights.append(insight)
            generated.append(insight)
            self.events.emit(
                EventType.INSIGHT_GENERATED, insight=insight.model_dump(mode="json")
            )

        if generated:
            counter("intelligence.insights_generated", len(generated))
            logger.info("Generated %d predictive insights", len(generated))
        return generated
