"""ocicas exception hierarchy.

Every error carries a taxonomy kind plus the operation and path that
produced it, so callers can branch on ``error.kind`` and still print a
precise diagnostic. Underlying causes are kept through exception chaining.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path


class ErrorKind(str, Enum):
    """Failure categories shared by every storage backend."""

    INVALID = "invalid"
    NOT_FOUND = "not_found"
    CLOBBER = "clobber"
    LOCK_CONTENTION = "lock_contention"
    IO_FAILURE = "io_failure"
    CANCELLED = "cancelled"
    CLOSED = "closed"


class OciCasError(Exception):
    """Base exception for all ocicas failures."""

    kind: ErrorKind = ErrorKind.IO_FAILURE

    def __init__(
        self,
        message: str,
        operation: str | None = None,
        path: str | Path | None = None,
    ) -> None:
        self.message = message
        self.operation = operation
        self.path = str(path) if path is not None else None
        super().__init__(_render(message, operation))


class CasInvalidError(OciCasError):
    """Raised for malformed layouts, digests, names, or payloads."""

    kind = ErrorKind.INVALID


class CasConfigError(CasInvalidError):
    """Raised for invalid runtime configuration."""


class CasIntegrityError(CasInvalidError):
    """Raised when blob content does not hash to the digest it is stored under."""

    def __init__(
        self,
        expected: str,
        actual: str,
        operation: str | None = None,
        path: str | Path | None = None,
    ) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Blob content at {path} hashes to {actual}, expected {expected}. "
            "The store is corrupt; delete and re-put the blob.",
            operation=operation,
            path=path,
        )


class CasNotFoundError(OciCasError):
    """Raised when a blob or reference is absent."""

    kind = ErrorKind.NOT_FOUND


class CasCorruptReferenceError(CasNotFoundError):
    """Raised when a reference file exists but cannot be decoded."""


class CasClobberError(OciCasError):
    """Raised when a reference already points at a different descriptor."""

    kind = ErrorKind.CLOBBER


class CasLockContentionError(OciCasError):
    """Raised when an advisory lock is held by another session."""

    kind = ErrorKind.LOCK_CONTENTION


class CasIOError(OciCasError):
    """Raised for filesystem failures not covered by another kind."""

    kind = ErrorKind.IO_FAILURE


class CasCancelledError(OciCasError):
    """Raised when a write is interrupted by the caller's cancel event."""

    kind = ErrorKind.CANCELLED


class CasClosedError(OciCasError):
    """Raised when an engine handle is used after close."""

    kind = ErrorKind.CLOSED


def _render(message: str, operation: str | None) -> str:
    if operation is None:
        return message
    return f"{operation}: {message}"
