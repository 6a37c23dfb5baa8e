"""FastAPI dependencies resolving the services wired at startup."""

from __future__ import annotations

from fastapi import HTTPException, Request

from evshub.intelligence.service import CommunicationIntelligenceService
from evshub.text_inputs.service import TextScanningService


def get_intelligence_service(request: Request) -> CommunicationIntelligenceService:
    service = getattr(request.app.state, "intelligence", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return service


def get_text_scanning_service(request: Request) -> TextScanningService:
    service = getattr(request.app.state, "text_scanning", None)
    if service is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return service
