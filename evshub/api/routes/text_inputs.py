"""Text scanning endpoint: store raw text and pull a task candidate out of it."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from evshub.api.dependencies import get_text_scanning_service
from evshub.config import API_CONTENT_MAX_CHARS
from evshub.observability.logging import get_logger
from evshub.text_inputs.models import ScanResult
from evshub.text_inputs.service import TextScanningService
from evshub.utils.error_sanitizer import sanitize_error_message

router = APIRouter(prefix="/api/text-inputs", tags=["text-inputs"])
logger = get_logger(__name__)


class ProcessTextRequest(BaseModel):
    content: str = Field(..., min_length=1, max_length=API_CONTENT_MAX_CHARS)
    source: str = Field(default="manual", min_length=1, max_length=100)


@router.post("/process", response_model=ScanResult)
async def process_text_input(
    request: ProcessTextRequest,
    service: TextScanningService = Depends(get_text_scanning_service),
) -> ScanResult:
    try:
        return await service.process(request.content, request.source)
    except Exception as e:
        logger.error("Failed to process text input: %s", e)
        raise HTTPException(
            status_code=500,
            detail=sanitize_error_message(str(e), 500),
        ) from None
