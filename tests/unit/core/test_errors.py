"""Unit tests for the error hierarchy."""

from __future__ import annotations

from core.errors import (
    CasCorruptReferenceError,
    CasIntegrityError,
    CasInvalidError,
    CasIOError,
    CasNotFoundError,
    ErrorKind,
    OciCasError,
)


def test_errors_carry_operation_and_path_context() -> None:
    """Every error should expose the operation and path that produced it."""
    error = CasIOError("disk full.", operation="put_blob", path="/repo/blobs")

    assert (error.kind, error.operation, error.path, str(error)) == (
        ErrorKind.IO_FAILURE,
        "put_blob",
        "/repo/blobs",
        "put_blob: disk full.",
    )


def test_corrupt_reference_is_a_not_found_condition() -> None:
    """Callers matching NotFound should also see corrupt references."""
    error = CasCorruptReferenceError("bad json.", operation="get_reference")

    assert isinstance(error, CasNotFoundError)
    assert error.kind is ErrorKind.NOT_FOUND


def test_integrity_error_is_invalid_kind() -> None:
    """Integrity mismatches should be reported as invalid content."""
    error = CasIntegrityError(expected="sha256:aa", actual="sha256:bb", path="/repo/blob")

    assert isinstance(error, CasInvalidError)
    assert isinstance(error, OciCasError)
    assert error.expected == "sha256:aa"
