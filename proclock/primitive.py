"""Advisory file-lock primitives used by ProcessFileLock."""

from __future__ import annotations

import fcntl
import os
import threading
from pathlib import Path
from typing import Protocol

from .errors import AlreadyLockedError, NotLockedError


class AdvisoryLock(Protocol):
    """Exclusive advisory lock bound to a single path.

    ``try_lock`` must raise ``AlreadyLockedError`` when another holder owns the
    lock and let every other failure propagate unchanged. ``unlock`` must raise
    ``NotLockedError`` when this binding does not hold the lock.
    """

    @property
    def locked(self) -> bool: ...

    def lock(self) -> None: ...

    def try_lock(self) -> None: ...

    def unlock(self) -> None: ...


class FlockLock:
    """``fcntl.flock`` lock on an existing file.

    Each instance opens its own file description, so two instances in one
    process exclude each other the same way two processes do. The file is
    never created here: a missing file is an error.
    """

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._fd: int | None = None
        self._guard = threading.Lock()

    @property
    def locked(self) -> bool:
        return self._fd is not None

    def lock(self) -> None:
        """Block until the lock is granted."""
        if self.locked:
            raise AlreadyLockedError(f"{self.path} is already locked by this handle")
        fd = os.open(self.path, os.O_RDWR)
        try:
            fcntl.flock(fd, fcntl.LOCK_EX)
        except BaseException:
            os.close(fd)
            raise
        with self._guard:
            self._fd = fd

    def try_lock(self) -> None:
        """Take the lock without blocking."""
        with self._guard:
            if self._fd is not None:
                raise AlreadyLockedError(f"{self.path} is already locked by this handle")
            fd = os.open(self.path, os.O_RDWR)
            try:
                fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
            except BlockingIOError as exc:
                os.close(fd)
                raise AlreadyLockedError(f"{self.path} is locked") from exc
            except BaseException:
                os.close(fd)
                raise
            self._fd = fd

    def unlock(self) -> None:
        with self._guard:
            if self._fd is None:
                raise NotLockedError(f"{self.path} is not locked by this handle")
            fd, self._fd = self._fd, None
        try:
            fcntl.flock(fd, fcntl.LOCK_UN)
        finally:
            os.close(fd)

