"""File lock helpers for cross-process coordination."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator

from . import config
from .errors import (
    AcquireError,
    AcquireTimeout,
    AlreadyLockedError,
    DeletionError,
    LockDestroyedError,
    ProcLockError,
    ProvisioningError,
    ReleaseError,
    TryAcquireError,
)
from .logging_utils import LOGGER
from .primitive import AdvisoryLock, FlockLock

PrimitiveFactory = Callable[[Path], AdvisoryLock]


def provision_lock_file(path: Path) -> None:
    """Create an empty lock file at path unless one already exists."""
    try:
        if path.exists():
            return
        path.touch(exist_ok=True)
    except OSError as exc:
        raise ProvisioningError(f"failed to create lock file at {path}: {exc}") from exc


class _AcquireAttempt(threading.Thread):
    """Background poll loop for a single acquire call.

    The worker only uses the non-blocking primitive call, so a cancelled
    attempt stops within one poll interval and never leaves a lock behind.
    """

    def __init__(self, primitive: AdvisoryLock, path: Path) -> None:
        super().__init__(name=f"{config.ACQUIRE_THREAD_PREFIX}:{path}", daemon=True)
        self._primitive = primitive
        self._cancel = threading.Event()
        self._done = threading.Event()
        self.acquired = False
        self.error: Exception | None = None

    def run(self) -> None:
        try:
            while not self._cancel.is_set():
                try:
                    self._primitive.try_lock()
                except AlreadyLockedError:
                    self._cancel.wait(config.ACQUIRE_POLL_INTERVAL_SECONDS)
                    continue
                self.acquired = True
                return
        except Exception as exc:
            self.error = exc
        finally:
            self._done.set()

    def wait(self, timeout: float) -> bool:
        return self._done.wait(timeout)

    def abandon(self) -> Exception | None:
        """Stop the worker and undo a grant that raced the deadline."""
        self._cancel.set()
        self.join()
        if not self.acquired:
            return self.error
        LOGGER.warn("Lock granted after the acquire deadline; releasing it.")
        try:
            self._primitive.unlock()
        except Exception as exc:
            LOGGER.error(f"Failed to release late lock grant: {exc}")
            return exc
        return None


class ProcessFileLock:
    """Exclusive lock shared by every process that opens the same file path.

    Construction creates the backing file when missing. The handle moves
    between unlocked and locked through ``acquire``/``try_acquire`` and
    ``release``; ``destroy`` releases the lock, removes the file and retires
    the handle.
    """

    def __init__(self, path: Path | str, primitive_factory: PrimitiveFactory = FlockLock) -> None:
        self.path = Path(path)
        provision_lock_file(self.path)
        self._primitive = primitive_factory(self.path)
        self._destroyed = False

    @property
    def locked(self) -> bool:
        """Whether this handle currently holds the lock."""
        return self._primitive.locked

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def acquire(self) -> None:
        """Block until the lock is granted or the acquire deadline passes."""
        self._check_usable()
        self._check_not_held(AcquireError)
        attempt = _AcquireAttempt(self._primitive, self.path)
        attempt.start()
        if attempt.wait(config.ACQUIRE_TIMEOUT_SECONDS):
            if attempt.error is not None:
                LOGGER.error(f"Failed to acquire lock on {self.path}: {attempt.error}")
                raise AcquireError(f"failed to acquire lock on {self.path}: {attempt.error}") from attempt.error
            LOGGER.debug(f"Acquired lock on {self.path}")
            return

        late_error = attempt.abandon()
        LOGGER.warn(f"Timed out after {config.ACQUIRE_TIMEOUT_SECONDS:g}s waiting for lock on {self.path}")
        raise AcquireTimeout(f"timeout occurred while acquiring lock on {self.path}") from late_error

    def acquire_blocking(self) -> None:
        """Block until the lock is granted, with no deadline."""
        self._check_usable()
        self._check_not_held(AcquireError)
        try:
            self._primitive.lock()
        except Exception as exc:
            LOGGER.error(f"Failed to acquire lock on {self.path}: {exc}")
            raise AcquireError(f"failed to acquire lock on {self.path}: {exc}") from exc
        LOGGER.debug(f"Acquired lock on {self.path}")

    def try_acquire(self) -> bool:
        """Try the lock once. Returns False when another holder owns it.

        Calling it while this handle already holds the lock is an error, not
        contention.
        """
        self._check_usable()
        self._check_not_held(TryAcquireError)
        try:
            self._primitive.try_lock()
        except AlreadyLockedError:
            return False
        except Exception as exc:
            LOGGER.error(f"Failed to try lock on {self.path}: {exc}")
            raise TryAcquireError(f"failed to acquire lock on {self.path}: {exc}") from exc
        LOGGER.debug(f"Acquired lock on {self.path}")
        return True

    def release(self) -> None:
        self._check_usable()
        try:
            self._primitive.unlock()
        except Exception as exc:
            LOGGER.error(f"Failed to release lock on {self.path}: {exc}")
            raise ReleaseError(f"failed to release lock on {self.path}: {exc}") from exc
        LOGGER.debug(f"Released lock on {self.path}")

    def destroy(self) -> None:
        """Release the lock and delete the backing file.

        A failed release leaves the file in place.
        """
        self.release()
        try:
            self.path.unlink()
        except OSError as exc:
            LOGGER.error(f"Failed to delete lock file {self.path}: {exc}")
            raise DeletionError(f"failed to delete lock file {self.path}: {exc}") from exc
        self._destroyed = True
        LOGGER.info(f"Destroyed lock file {self.path}")

    def _check_usable(self) -> None:
        if self._destroyed:
            raise LockDestroyedError(f"lock handle for {self.path} was destroyed")

    def _check_not_held(self, error_cls: type[ProcLockError]) -> None:
        if self.locked:
            raise error_cls(f"lock on {self.path} is already held by this handle")

    def __enter__(self) -> ProcessFileLock:
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self._release_on_exit(body_failed=exc_type is not None)

    def _release_on_exit(self, *, body_failed: bool) -> None:
        """Release after a with-block; a destroyed handle needs nothing.

        When the block raised, a release failure is logged and the block's
        exception propagates unchanged.
        """
        if self._destroyed:
            return
        if not body_failed:
            self.release()
            return
        try:
            self.release()
        except ReleaseError as exc:
            LOGGER.warn(f"Release failure on {self.path} superseded by the block's own error: {exc}")


@contextmanager
def exclusive_lock(lock_path: Path | str, *, wait_forever: bool = False) -> Iterator[ProcessFileLock]:
    """Acquire an exclusive advisory file lock, creating parent directories."""
    lock_path = Path(lock_path)
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    lock = ProcessFileLock(lock_path)
    if wait_forever:
        lock.acquire_blocking()
    else:
        lock.acquire()
    try:
        yield lock
    except BaseException:
        lock._release_on_exit(body_failed=True)
        raise
    lock._release_on_exit(body_failed=False)
