"""Advisory locks on repository entries.

Locks are ``flock(2)`` exclusive locks held through an open descriptor of
the locked path. They are cooperative: they only exclude other callers of
this module, in this process or any other.
"""

from __future__ import annotations

import fcntl
import os
from pathlib import Path

from core.errors import CasIOError, CasLockContentionError


def try_lock_path(path: Path, operation: str = "lock") -> int | None:
    """Take an exclusive non-blocking lock on a path.

    Args:
        path: File or directory to lock.
        operation: Operation label for error context.

    Returns:
        Descriptor holding the lock, or None when another holder owns the
        lock or the path no longer exists.

    Raises:
        CasIOError: If the path cannot be opened or locked for another reason.
    """
    try:
        fd = os.open(path, os.O_RDONLY)
    except FileNotFoundError:
        return None
    except OSError as error:
        raise CasIOError(f"Failed to open {path} for locking: {error}.", operation=operation, path=path) from error

    try:
        fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
    except BlockingIOError:
        os.close(fd)
        return None
    except OSError as error:
        os.close(fd)
        raise CasIOError(f"Failed to lock {path}: {error}.", operation=operation, path=path) from error
    return fd


def lock_path(path: Path, operation: str = "lock") -> int:
    """Take an exclusive lock on a path or fail.

    Raises:
        CasLockContentionError: If another holder owns the lock or the path vanished.
        CasIOError: If the path cannot be opened or locked for another reason.
    """
    fd = try_lock_path(path, operation=operation)
    if fd is None:
        raise CasLockContentionError(
            f"Could not lock {path}: held by another session or removed.",
            operation=operation,
            path=path,
        )
    return fd


def unlock(fd: int, path: Path, operation: str = "unlock") -> None:
    """Release a lock taken by try_lock_path and close its descriptor."""
    try:
        fcntl.flock(fd, fcntl.LOCK_UN)
    except OSError as error:
        os.close(fd)
        raise CasIOError(f"Failed to unlock {path}: {error}.", operation=operation, path=path) from error
    try:
        os.close(fd)
    except OSError as error:
        raise CasIOError(
            f"Failed to close lock handle for {path}: {error}.", operation=operation, path=path
        ) from error
