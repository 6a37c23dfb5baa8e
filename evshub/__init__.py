"""EVS Hub - Communication intelligence for Environmental Services teams"""

from __future__ import annotations

__version__ = "0.1.0"


# Lazy imports for the intelligence package
def __getattr__(name: str):
    """
    Lazy imports to avoid loading FastAPI / LLM dependencies when only importing
    lightweight modules.
    """
    if name == "CommunicationIntelligenceService":
        from evshub.intelligence.service import CommunicationIntelligenceService

        return CommunicationIntelligenceService

    if name in ("Message", "TaskDraft", "Workflow", "PredictiveInsight"):
        from evshub.intelligence import models

        return getattr(models, name)

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)


__all__ = [
    "CommunicationIntelligenceService",
    "Message",
    "TaskDraft",
    "Workflow",
    "PredictiveInsight",
]
