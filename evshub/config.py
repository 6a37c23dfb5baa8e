"""Centralized configuration for the EVS Hub backend.

Re-exports everything from evshub.infrastructure.settings so callers have a
single import point, then adds typed constants for database, LLM,
rate-limiting, API and communication-intelligence settings.  Environment
variable overrides use safe defaults so the app starts without extra env
configuration.
"""

from __future__ import annotations

import os

from evshub.infrastructure.settings import *  # noqa: F401, F403 re-export

# --- App ---
APP_VERSION: str = "0.1.0"

# --- Database ---
DB_POOL_SIZE: int = int(os.getenv("EVSHUB_DB_POOL_SIZE", "5"))
DB_POOL_TIMEOUT: float = float(os.getenv("EVSHUB_DB_POOL_TIMEOUT", "5.0"))
DB_CONNECT_TIMEOUT: float = float(os.getenv("EVSHUB_DB_CONNECT_TIMEOUT", "30.0"))
DB_TEMP_CONN_MAX: int = int(os.getenv("EVSHUB_DB_TEMP_CONN_MAX", "10"))
DB_RETRY_MAX: int = int(os.getenv("EVSHUB_DB_RETRY_MAX", "5"))
DB_RETRY_BASE_DELAY: float = float(os.getenv("EVSHUB_DB_RETRY_BASE_DELAY", "0.1"))
DB_RETRY_MAX_DELAY: float = float(os.getenv("EVSHUB_DB_RETRY_MAX_DELAY", "2.0"))
DB_RETRY_JITTER: float = float(os.getenv("EVSHUB_DB_RETRY_JITTER", "0.1"))

# --- LLM ---
LLM_TIMEOUT_SECONDS: int = int(os.getenv("EVSHUB_LLM_TIMEOUT", "30"))
LLM_MAX_RETRIES: int = int(os.getenv("EVSHUB_LLM_MAX_RETRIES", "3"))

# --- Rate Limiting ---
RATE_LIMIT_RPM: int = int(os.getenv("EVSHUB_RATE_LIMIT_RPM", "120"))
RATE_LIMIT_RPH: int = int(os.getenv("EVSHUB_RATE_LIMIT_RPH", "3000"))
RATE_LIMIT_MAX_IPS: int = 10000

# --- API ---
API_MESSAGES_LIMIT_DEFAULT: int = 50
API_MESSAGES_LIMIT_MAX: int = 500
API_CONTENT_MAX_CHARS: int = 5000

# --- Communication intelligence ---
MESSAGE_STORE_CAPACITY: int = int(os.getenv("EVSHUB_MESSAGE_STORE_CAPACITY", "1000"))
CONTEXT_MEMORY_DEPTH: int = 10
RECENT_CONTEXT_MESSAGES: int = 5
INSIGHT_BUFFER_CAPACITY: int = 20
INSIGHTS_QUERY_SIZE: int = 10
WORKFLOW_STATS_WINDOW: int = 10
LOCATION_CLUSTER_WINDOW_MINUTES: int = 30
PATTERN_ANALYSIS_INTERVAL_SECONDS: float = float(
    os.getenv("EVSHUB_PATTERN_ANALYSIS_INTERVAL", "30")
)
INSIGHT_CONFIDENCE_THRESHOLD: float = 0.7

# --- Deadlines ---
END_OF_DAY_HOUR: int = 17
NEXT_MORNING_HOUR: int = 9
