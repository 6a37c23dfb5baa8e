"""
Workflow trigger evaluation.

A workflow fires when any one of its conditions holds. Conditions are
checked in declared order and evaluation stops at the first satisfied one,
so later conditions are never looked at once an earlier one matches.

Clustering and time-window conditions read the live message store, which
makes the outcome depend on what else has been ingested recently.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta

from evshub.config import LOCATION_CLUSTER_WINDOW_MINUTES
from evshub.intelligence.extractor import extract_location
from evshub.intelligence.keyword_data import NOT_SPECIFIED
from evshub.intelligence.models import ConditionType, Message, Workflow, WorkflowCondition, utc_now
from evshub.intelligence.store import MessageStore
from evshub.observability.logging import get_logger

logger = get_logger(__name__)

ConditionCheck = Callable[[WorkflowCondition, Message], bool]


class WorkflowTriggerEvaluator:
    def __init__(
        self,
        store: MessageStore,
        clock: Callable[[], datetime] = utc_now,
        cluster_window_minutes: int = LOCATION_CLUSTER_WINDOW_MINUTES,
    ) -> None:
        self.store = store
        self.clock = clock
        self.cluster_window = timedelta(minutes=cluster_window_minutes)
        self._checks: dict[str, ConditionCheck] = {
            ConditionType.CONTAINS_KEYWORDS.value: self._contains_keywords,
            ConditionType.PRIORITY.value: self._priority_equals,
            ConditionType.LOCATION_CLUSTERING.value: self._location_clustering,
            ConditionType.TIME_WINDOW.value: self._time_window,
        }

    def evaluate(self, message: Message, workflows: list[Workflow]) -> list[str]:
        """Return the ids of active workflows whose conditions fire for ``message``."""
        triggered: list[str] = []
        for workflow in workflows:
            if not workflow.active:
                continue
            if self.fires(workflow, message):
                triggered.append(workflow.id)
        return triggered

    def fires(self, workflow: Workflow, message: Message) -> bool:
        for condition in workflow.conditions:
            if self.check(condition, message):
                logger.debug("Workflow %s fired on condition %s", workflow.id, condition.type)
                return True
        return False

    def check(self, condition: WorkflowCondition, message: Message) -> bool:
        check = self._checks.get(condition.type)
        if check is None:
            return False
        return check(condition, message)

    def _contains_keywords(self, condition: WorkflowCondition, message: Message) -> bool:
        lowered = message.content.lower()
        return any(keyword.lower() in lowered for keyword in condition.keywords or [])

    def _priority_equals(self, condition: WorkflowCondition, message: Message) -> bool:
        return condition.level is not None and message.priority == condition.level

    def _location_clustering(self, condition: WorkflowCondition, message: Message) -> bool:
        location = extract_location(message.content)
        if location == NOT_SPECIFIED:
            return False
        threshold = _as_int(condition.threshold)
        if threshold is None:
            return False
        since = self.clock() - self.cluster_window
        return self.store.count_at_location(location, since) >= threshold

    def _time_window(self, condition: WorkflowCondition, message: Message) -> bool:
        if condition.minutes is None:
            return False
        since = self.clock() - timedelta(minutes=condition.minutes)
        return self.store.count_since(since) > 1


def _as_int(value: int | str | None) -> int | None:
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isdigit():
        return int(value)
    return None
