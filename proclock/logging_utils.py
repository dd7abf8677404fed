"""stderr logger helpers for proclock."""

from __future__ import annotations

import sys
from datetime import datetime, timezone

from .config import LOG_LEVELS, log_level


def utc_timestamp() -> str:
    """Return an RFC3339 UTC timestamp with second precision."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


class ProcLockLogger:
    """Simple structured logger writing to stderr only.

    The threshold is read on every call so PROCLOCK_LOG_LEVEL can be changed
    at runtime.
    """

    def _emit(self, level: str, message: str) -> None:
        if LOG_LEVELS.index(level) < LOG_LEVELS.index(log_level()):
            return
        print(f"[PROCLOCK {utc_timestamp()}] {level}: {message}", file=sys.stderr, flush=True)

    def debug(self, message: str) -> None:
        self._emit("DEBUG", message)

    def info(self, message: str) -> None:
        self._emit("INFO", message)

    def warn(self, message: str) -> None:
        self._emit("WARN", message)

    def error(self, message: str) -> None:
        self._emit("ERROR", message)


LOGGER = ProcLockLogger()
