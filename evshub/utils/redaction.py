"""
Redaction helpers applied to staff messages before they are logged or sent
to the completion backend.

Provides:
- redact(): Hash sensitive strings for correlation without exposure
- redact_content(): Truncated preview + hash for log lines
- redact_pii(): Mask contact details inside free text
- sanitize_for_prompt(): Remove potential prompt injection patterns
"""

from __future__ import annotations

import re
from hashlib import sha256

# Patterns that could be used for prompt injection
INJECTION_PATTERNS = [
    r"ignore\s+(previous|above|all)\s+instructions?",
    r"disregard\s+(previous|above|all)\s+instructions?",
    r"new\s+instructions?:",
    r"system\s*:",
    r"assistant\s*:",
    r"\[INST\]",
    r"\[/INST\]",
]
INJECTION_REGEX = re.compile("|".join(INJECTION_PATTERNS), re.IGNORECASE)

EMAIL_REGEX = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
PHONE_REGEX = re.compile(r"\+?1?[-.\s]?\(?[0-9]{3}\)?[-.\s][0-9]{3}[-.\s][0-9]{4}")


def redact(value: str | None) -> str:
    """
    Return a stable hash representation of a sensitive string.
    """
    if not value:
        return "hash:missing"
    digest = sha256(value.encode("utf-8")).hexdigest()[:12]
    return f"hash:{digest}"


def redact_content(content: str | None, max_length: int = 40) -> str:
    """
    Partially redact message content for logging while preserving debuggability.

    Example:
        "URGENT: leak in Room 204, please fix immediately" ->
        "URGENT: leak in Room 204, please fix imm... (h:1a2b3c)"
    """
    if not content:
        return "(empty)"

    visible = redact_pii(content)
    if len(visible) > max_length:
        visible = visible[:max_length] + "..."

    digest = sha256(content.encode("utf-8")).hexdigest()[:6]
    return f"{visible} (h:{digest})"


def redact_pii(text: str | None, max_length: int = 2000) -> str:
    """
    Mask email addresses and phone numbers in free text.

    Room and floor numbers are left alone since location extraction and
    hotspot analysis depend on them.
    """
    if not text:
        return ""

    text = EMAIL_REGEX.sub("[EMAIL]", text)
    text = PHONE_REGEX.sub("[PHONE]", text)

    return text[:max_length]


def sanitize_for_prompt(text: str, max_length: int = 1000) -> str:
    """
    Sanitize user-provided text before including it in LLM prompts.

    Removes known injection patterns, truncates, and strips characters that
    could break the prompt layout.
    """
    if not text:
        return ""

    text = text[:max_length]
    text = INJECTION_REGEX.sub("[REDACTED]", text)
    text = re.sub(r"[<>{}|\\]", "", text)

    return text.strip()
