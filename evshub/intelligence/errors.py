"""Exceptions raised by the communication intelligence package."""

from __future__ import annotations


class WorkflowNotFoundError(KeyError):
    """Raised when a workflow id is not in the registry."""

    def __init__(self, workflow_id: str) -> None:
        super().__init__(workflow_id)
        self.workflow_id = workflow_id

    def __str__(self) -> str:
        return f"Unknown workflow: {self.workflow_id}"


class WorkflowDefinitionError(ValueError):
    """Raised when a workflow seed file cannot be parsed."""
