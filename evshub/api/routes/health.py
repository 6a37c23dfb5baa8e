"""Health check endpoints.

- /health - Liveness probe
- /health/db - Database connection pool health
- /debug/stats - Aggregate system statistics (no message content)
"""

from __future__ import annotations

import os
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Request

from evshub.config import APP_VERSION

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> dict[str, Any]:
    """Health check endpoint.

    Returns service status, version, and credential readiness for
    Vertex AI / Gemini (does not make an API call, only checks presence).
    """
    from evshub.infrastructure.settings import USE_LLM

    has_api_key = bool(os.getenv("GOOGLE_API_KEY"))
    has_project = bool(os.getenv("GOOGLE_CLOUD_PROJECT"))

    return {
        "status": "healthy",
        "service": "EVS Hub API",
        "version": APP_VERSION,
        "timestamp": datetime.now(UTC).isoformat(),
        "llm": {
            "enabled": USE_LLM,
            "ready": has_api_key or has_project,
            "google_api_key": has_api_key,
            "google_cloud_project": has_project,
        },
    }


@router.get("/health/db")
async def database_health() -> dict[str, Any]:
    """
    Database health check endpoint.

    Alerts if pool usage exceeds 80%.
    """
    from evshub.infrastructure.database import get_pool_stats

    stats = get_pool_stats()
    usage_percent = stats["usage_percent"]

    return {
        "status": "degraded" if usage_percent > 80 else "healthy",
        "pool": stats,
        "warning": "Pool usage high" if usage_percent > 80 else None,
    }


@router.get("/debug/stats")
async def debug_stats(request: Request) -> dict[str, Any]:
    """Aggregate system statistics for debugging. Contains no message content."""
    from evshub.infrastructure.database import get_pool_stats
    from evshub.observability.telemetry import get_counters, get_latency_stats
    from evshub.tasks.repository import TaskRepository

    service = getattr(request.app.state, "intelligence", None)
    intelligence: dict[str, Any] = {}
    if service is not None:
        workflows = service.get_workflows()
        intelligence = {
            "messages": len(service.store),
            "insights": len(service.insights),
            "system_load": service.system_load(),
            "workflows": {
                workflow.id: {
                    "active": workflow.active,
                    "success_rate": round(workflow.success_rate, 1),
                    "executions": len(workflow.execution_history),
                }
                for workflow in workflows
            },
        }

    return {
        "tasks": {"by_status": TaskRepository.count_by_status()},
        "intelligence": intelligence,
        "latency": get_latency_stats("intelligence.process_message.latency"),
        "counters": get_counters(),
        "database": get_pool_stats(),
        "timestamp": datetime.now(UTC).isoformat(),
    }
