"""Custom errors for proclock."""


class ProcLockError(Exception):
    """Base proclock exception."""


class ProvisioningError(ProcLockError):
    """Raised when the backing lock file cannot be created."""


class AcquireError(ProcLockError):
    """Raised when a blocking acquire fails for a reason other than contention."""


class AcquireTimeout(ProcLockError):
    """Raised when a blocking acquire does not complete before its deadline."""


class TryAcquireError(ProcLockError):
    """Raised when a non-blocking acquire fails for a reason other than contention."""


class ReleaseError(ProcLockError):
    """Raised when the lock cannot be released."""


class DeletionError(ProcLockError):
    """Raised when the backing lock file cannot be removed."""


class LockDestroyedError(ProcLockError):
    """Raised when a destroyed lock handle is used again."""


class AlreadyLockedError(ProcLockError):
    """Raised by a primitive when the lock is held by another holder."""


class NotLockedError(ProcLockError):
    """Raised by a primitive when unlocking a lock it does not hold."""
