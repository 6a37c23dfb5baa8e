"""
Completion collaborator for the communication hub.

Given a prompt and a context blob, a backend returns a natural-language reply
plus follow-up suggestion strings. GeminiAssistant talks to Gemini through
``call_llm``; CannedAssistant answers deterministically without network
access and is what runs when EVSHUB_USE_LLM is off.
"""

from __future__ import annotations

import asyncio
import json
import re
from dataclasses import dataclass, field
from typing import Any, Protocol

from pydantic import BaseModel, Field

from evshub.infrastructure.settings import GEMINI_MODEL, USE_LLM
from evshub.observability.logging import get_logger
from evshub.observability.telemetry import counter, log_event

logger = get_logger(__name__)


class AssistantUnavailableError(RuntimeError):
    """Raised when the completion backend cannot produce a reply."""


@dataclass
class AssistantReply:
    response: str
    suggestions: list[str] = field(default_factory=list)


class CompletionBackend(Protocol):
    async def complete(self, prompt: str, context: dict[str, Any]) -> AssistantReply: ...


class _ReplySchema(BaseModel):
    response: str = Field(..., min_length=1)
    suggestions: list[str] = Field(default_factory=list)


class GeminiAssistant:
    """Completion backend backed by Gemini."""

    SYSTEM_INSTRUCTION = (
        "You are an expert Environmental Services operations coordinator. "
        "Answer staff messages briefly and practically. Respond with JSON: "
        '{"response": "<reply>", "suggestions": ["<next step>", ...]} '
        "with at most three suggestions."
    )

    async def complete(self, prompt: str, context: dict[str, Any]) -> AssistantReply:
        from evshub.llm.retry import call_llm

        full_prompt = f"{prompt}\n\nContext: {json.dumps(context, default=str)}"
        try:
            response_text = await asyncio.to_thread(
                call_llm,
                full_prompt,
                "assistant",
                self.SYSTEM_INSTRUCTION,
                True,
            )
        except Exception as e:
            counter("assistant.error")
            log_event("assistant.error", error=str(e), model=GEMINI_MODEL)
            raise AssistantUnavailableError(f"Completion failed: {e}") from e

        return self._parse_response(response_text)

    def _parse_response(self, response_text: str) -> AssistantReply:
        """Parse the model's JSON reply, falling back to the raw text."""
        try:
            json_text = response_text.strip()
            if json_text.startswith("```"):
                counter("assistant.code_fence_fallback")
                json_text = re.sub(r"^```(?:json)?\n?", "", json_text)
                json_text = re.sub(r"\n?```$", "", json_text)

            validated = _ReplySchema.model_validate(json.loads(json_text))
            return AssistantReply(
                response=validated.response,
                suggestions=validated.suggestions[:3],
            )

        except (json.JSONDecodeError, ValueError) as e:
            logger.warning("Failed to parse assistant response: %s", e)
            counter("assistant.parse_error")
            text = response_text.strip()
            if not text:
                raise AssistantUnavailableError("Empty completion") from e
            return AssistantReply(response=text)


class CannedAssistant:
    """Deterministic offline backend."""

    RESPONSE = (
        "Message received. I have logged it for the EVS team and will flag any "
        "follow-up tasks or coverage needs."
    )
    SUGGESTIONS = [
        "Confirm the location with the sender",
        "Check who is on shift nearby",
        "Follow up once the request is complete",
    ]

    async def complete(self, prompt: str, context: dict[str, Any]) -> AssistantReply:
        return AssistantReply(response=self.RESPONSE, suggestions=list(self.SUGGESTIONS))


def build_assistant(use_llm: bool = USE_LLM) -> CompletionBackend:
    """Pick the completion backend for this process."""
    if use_llm:
        logger.info("Using Gemini assistant (model=%s)", GEMINI_MODEL)
        return GeminiAssistant()
    logger.info("EVSHUB_USE_LLM is off, using canned assistant replies")
    return CannedAssistant()
