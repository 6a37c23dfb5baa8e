"""
In-process telemetry helpers.

These wrappers do not ship metrics anywhere; they provide structured
logging and in-memory counters/latencies so tests and the /debug/stats
endpoint can observe ingestion and workflow activity.

Latency samples are kept per metric in a bounded window (the newest
LATENCY_SAMPLE_LIMIT timings), so a long-running hub does not grow a
sample list for every message it ingests.
"""

from __future__ import annotations

import contextlib
import logging
import threading
import time
from collections import deque
from collections.abc import Iterator
from typing import Any

logger = logging.getLogger("evshub.telemetry")

LATENCY_SAMPLE_LIMIT = 1000

_LOCK = threading.Lock()
_COUNTERS: dict[str, int] = {}
_LATENCIES: dict[str, deque[float]] = {}


def _normalize_latency_name(metric_name: str) -> str:
    if metric_name.endswith("_ms"):
        return metric_name
    if metric_name.endswith(".latency"):
        return f"{metric_name}_ms"
    return metric_name


def log_event(event_name: str, **fields: Any) -> None:
    """
    Structured log event. Caller must ensure message content is redacted.

    Side Effects:
        - Writes to logger (info level)
    """
    logger.info("event=%s %s", event_name, fields)


def counter(name: str, increment: int = 1) -> int:
    """
    Increment an in-memory counter and emit a debug log.

    Side Effects:
        - Modifies _COUNTERS dict (in-memory state)
        - Writes to logger (debug level)
    """
    with _LOCK:
        value = _COUNTERS.get(name, 0) + increment
        _COUNTERS[name] = value
    logger.debug("counter=%s value=%s", name, value)
    return value


def get_counter(name: str) -> int:
    with _LOCK:
        return _COUNTERS.get(name, 0)


def get_counters() -> dict[str, int]:
    with _LOCK:
        return dict(_COUNTERS)


@contextlib.contextmanager
def time_block(metric_name: str) -> Iterator[None]:
    """
    Context manager for timing code blocks in milliseconds.

    Side Effects:
        - Records the timing in the metric's bounded sample window
        - Writes to logger (debug level) with timing
    """
    start = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = (time.perf_counter() - start) * 1000
        normalized = _normalize_latency_name(metric_name)
        logger.debug("timing=%s ms=%.3f", normalized, elapsed_ms)

        with _LOCK:
            samples = _LATENCIES.get(normalized)
            if samples is None:
                samples = _LATENCIES[normalized] = deque(maxlen=LATENCY_SAMPLE_LIMIT)
            samples.append(elapsed_ms)


def get_latency_stats(metric_name: str) -> dict[str, float]:
    """
    Latency statistics (min, max, avg, p50, p95) over the metric's retained
    samples. ``count`` is the size of that window, not a lifetime total.
    """
    normalized = _normalize_latency_name(metric_name)
    with _LOCK:
        samples = list(_LATENCIES.get(normalized, ()))
    if not samples:
        return {"count": 0, "min": 0.0, "max": 0.0, "avg": 0.0, "p50": 0.0, "p95": 0.0}

    sorted_samples = sorted(samples)
    count = len(sorted_samples)

    return {
        "count": count,
        "min": sorted_samples[0],
        "max": sorted_samples[-1],
        "avg": sum(sorted_samples) / count,
        "p50": sorted_samples[int(count * 0.50)],
        "p95": sorted_samples[min(int(count * 0.95), count - 1)],
    }


def reset_telemetry() -> None:
    """
    Clear all counters and latencies (useful for tests).

    Side Effects:
        - Clears _COUNTERS and _LATENCIES dicts (in-memory state)
    """
    with _LOCK:
        _COUNTERS.clear()
        _LATENCIES.clear()
