"""FastAPI server for EVS Hub"""

from __future__ import annotations

import sqlite3
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from evshub.api.middleware.rate_limit import RateLimitMiddleware
from evshub.api.routes.communication import router as communication_router
from evshub.api.routes.health import router as health_router
from evshub.api.routes.text_inputs import router as text_inputs_router
from evshub.config import API_HOST, API_PORT, APP_VERSION, PATTERN_ANALYSIS_INTERVAL_SECONDS
from evshub.infrastructure.database import close_pool, init_database
from evshub.infrastructure.settings import is_development
from evshub.intelligence.patterns import PatternAnalysisLoop
from evshub.intelligence.service import CommunicationIntelligenceService
from evshub.llm.assistant import build_assistant
from evshub.observability.logging import get_logger
from evshub.observability.telemetry import counter, log_event
from evshub.tasks.repository import RepositoryTaskSink
from evshub.text_inputs.service import TextScanningService
from evshub.utils.redaction import redact

# Load environment variables from .env file
load_dotenv()

logger = get_logger(__name__)

ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:5173",
    "http://localhost:8000",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:5173",
    "http://127.0.0.1:8000",
]


def _init_database() -> None:
    try:
        logger.info("Initializing database schema...")
        init_database()
        logger.info("Database initialization complete")
    except sqlite3.OperationalError as e:
        logger.critical("Database schema error: %s", e)
        raise RuntimeError(f"Database initialization failed: {e}") from e
    except Exception as e:
        logger.critical("Unexpected database initialization error: %s", e)
        raise RuntimeError(f"Database initialization failed: {e}") from e


def build_intelligence_service() -> CommunicationIntelligenceService:
    """Wire the production service: configured assistant, SQLite-backed task sink."""
    return CommunicationIntelligenceService(
        assistant=build_assistant(),
        tasks=RepositoryTaskSink(),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Custom validation error handler that prevents leaking internal validation logic.
    """
    logger.warning("Validation error on %s: %s", redact(str(request.url)), exc.errors())
    counter("api.validation_errors")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": "Invalid request format. Please check your request and try again.",
            "error_count": len(exc.errors()),
            "invalid_fields": [str(err["loc"][-1]) for err in exc.errors()],
        },
    )


def create_app(
    intelligence: CommunicationIntelligenceService | None = None,
    text_scanning: TextScanningService | None = None,
    pattern_analysis: bool = True,
    rate_limit: bool = True,
) -> FastAPI:
    """
    Build the API.

    Args:
        intelligence: Pre-built service (tests); built from settings when None
        text_scanning: Pre-built text scanning service
        pattern_analysis: Run the periodic pattern analysis task
        rate_limit: Install the per-IP rate limiter
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        _init_database()

        app.state.intelligence = intelligence or build_intelligence_service()
        app.state.text_scanning = text_scanning or TextScanningService()

        analysis = PatternAnalysisLoop(
            app.state.intelligence.generate_predictive_insights,
            interval_seconds=PATTERN_ANALYSIS_INTERVAL_SECONDS,
        )
        if pattern_analysis:
            analysis.start()

        log_event("api.startup", service="evshub", version=APP_VERSION)
        try:
            yield
        finally:
            await analysis.stop()
            close_pool()
            log_event("api.shutdown", service="evshub")

    app = FastAPI(title="EVS Hub API", version=APP_VERSION, lifespan=lifespan)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    origins = list(ALLOWED_ORIGINS) if is_development() else []
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
    )

    if rate_limit:
        app.add_middleware(RateLimitMiddleware)

    app.include_router(health_router)
    app.include_router(communication_router)
    app.include_router(text_inputs_router)

    @app.get("/")
    def root() -> dict[str, Any]:
        return {
            "service": "EVS Hub API",
            "version": APP_VERSION,
            "status": "running",
            "endpoints": {
                "health": "/health",
                "messages": "/api/communication/messages",
                "send": "/api/communication/send",
                "insights": "/api/communication/insights",
                "workflows": "/api/communication/workflows",
                "events": "/api/communication/events",
                "text_inputs": "/api/text-inputs/process",
                "debug_stats": "/debug/stats",
            },
        }

    return app


app = create_app()


def main() -> None:
    """Run the API with uvicorn (``evshub-api``)."""
    import uvicorn

    uvicorn.run("evshub.api.app:app", host=API_HOST, port=API_PORT)
