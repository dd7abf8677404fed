"""Runtime constants and environment overrides for proclock."""

from __future__ import annotations

import os

ACQUIRE_TIMEOUT_SECONDS = 3.0
ACQUIRE_POLL_INTERVAL_SECONDS = 0.05
ACQUIRE_THREAD_PREFIX = "proclock-acquire"

LOG_LEVEL_ENV = "PROCLOCK_LOG_LEVEL"
LOG_LEVELS = ("DEBUG", "INFO", "WARN", "ERROR")
DEFAULT_LOG_LEVEL = "WARN"


def log_level() -> str:
    """Return the minimum log level, honoring PROCLOCK_LOG_LEVEL."""
    raw = os.getenv(LOG_LEVEL_ENV, "").strip().upper()
    if raw == "WARNING":
        raw = "WARN"
    if raw in LOG_LEVELS:
        return raw
    return DEFAULT_LOG_LEVEL
