"""Communication hub endpoints.

Ingestion, message / insight / workflow queries, workflow toggling and
manual execution, plus a server-sent event stream of service events.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from evshub.api.dependencies import get_intelligence_service
from evshub.api.streaming import event_stream
from evshub.config import API_CONTENT_MAX_CHARS, API_MESSAGES_LIMIT_DEFAULT, API_MESSAGES_LIMIT_MAX
from evshub.intelligence.errors import WorkflowNotFoundError
from evshub.intelligence.models import (
    ExecutionRecord,
    Message,
    MessageType,
    PredictiveInsight,
    Workflow,
)
from evshub.intelligence.service import CommunicationIntelligenceService
from evshub.observability.logging import get_logger
from evshub.utils.error_sanitizer import sanitize_error_message

router = APIRouter(prefix="/api/communication", tags=["communication"])
logger = get_logger(__name__)

DEFAULT_SENDER = "Unknown User"
MANUAL_SENDER = "System"


# ============================================================================
# Request/Response Models
# ============================================================================


class SendMessageRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=API_CONTENT_MAX_CHARS)
    sender: str | None = Field(default=None, max_length=200)
    type: MessageType = MessageType.USER
    context: dict[str, Any] | None = None


class ToggleWorkflowRequest(BaseModel):
    active: bool


class ToggleWorkflowResponse(BaseModel):
    success: bool


class ExecuteWorkflowResponse(BaseModel):
    success: bool
    message: str
    execution: ExecutionRecord


# ============================================================================
# Endpoints
# ============================================================================


@router.get("/messages", response_model=list[Message])
async def list_messages(
    limit: int = Query(API_MESSAGES_LIMIT_DEFAULT, ge=1, le=API_MESSAGES_LIMIT_MAX),
    service: CommunicationIntelligenceService = Depends(get_intelligence_service),
) -> list[Message]:
    """Stored messages, newest first."""
    return service.get_messages(limit)


@router.post("/send", response_model=Message)
async def send_message(
    request: SendMessageRequest,
    service: CommunicationIntelligenceService = Depends(get_intelligence_service),
) -> Message:
    """
    Ingest a message and return it with suggestions, extracted tasks and the
    ids of the workflows it triggered.
    """
    try:
        return await service.process_message(
            request.content,
            sender=request.sender or DEFAULT_SENDER,
            type=request.type,
            context=request.context,
        )
    except Exception as e:
        logger.error("Failed to process message: %s", e)
        raise HTTPException(
            status_code=500,
            detail=sanitize_error_message(str(e), 500),
        ) from None


@router.get("/insights", response_model=list[PredictiveInsight])
async def list_insights(
    service: CommunicationIntelligenceService = Depends(get_intelligence_service),
) -> list[PredictiveInsight]:
    return service.get_insights()


@router.get("/workflows", response_model=list[Workflow])
async def list_workflows(
    service: CommunicationIntelligenceService = Depends(get_intelligence_service),
) -> list[Workflow]:
    """All workflows with their current stats and execution history."""
    return service.get_workflows()


@router.post("/workflows/{workflow_id}/toggle", response_model=ToggleWorkflowResponse)
async def toggle_workflow(
    workflow_id: str,
    request: ToggleWorkflowRequest,
    service: CommunicationIntelligenceService = Depends(get_intelligence_service),
) -> ToggleWorkflowResponse:
    try:
        service.toggle_workflow(workflow_id, request.active)
    except WorkflowNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    return ToggleWorkflowResponse(success=True)


@router.post("/workflows/{workflow_id}/execute", response_model=ExecuteWorkflowResponse)
async def execute_workflow(
    workflow_id: str,
    service: CommunicationIntelligenceService = Depends(get_intelligence_service),
) -> ExecuteWorkflowResponse:
    """
    Run a workflow now against a synthesised system message.

    Action failures do not fail the request; they show up in the returned
    execution record and the workflow's success rate.
    """
    try:
        record = await service.run_manual_workflow(workflow_id, sender=MANUAL_SENDER)
    except WorkflowNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from None
    except Exception as e:
        logger.error("Failed to execute workflow %s: %s", workflow_id, e)
        raise HTTPException(
            status_code=500,
            detail=sanitize_error_message(str(e), 500),
        ) from None

    return ExecuteWorkflowResponse(
        success=True,
        message="Workflow executed successfully",
        execution=record,
    )


@router.get("/events")
async def stream_events(
    request: Request,
    max_events: int | None = Query(None, ge=1),
    service: CommunicationIntelligenceService = Depends(get_intelligence_service),
) -> StreamingResponse:
    """Server-sent stream of message, workflow and insight events."""
    return StreamingResponse(
        event_stream(service.events, request.is_disconnected, max_events=max_events),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
    )
