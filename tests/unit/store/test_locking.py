"""Unit tests for advisory locking helpers."""

from __future__ import annotations

import pytest

from core.errors import CasLockContentionError
from store.locking import lock_path, try_lock_path, unlock


def test_second_lock_on_same_path_is_refused(tmp_path) -> None:
    """Locks are exclusive across open descriptors, even in one process."""
    first = try_lock_path(tmp_path)
    assert first is not None

    second = try_lock_path(tmp_path)

    assert second is None
    unlock(first, tmp_path)


def test_lock_is_available_after_unlock(tmp_path) -> None:
    """Releasing a lock should let the next caller take it."""
    first = lock_path(tmp_path)
    unlock(first, tmp_path)

    second = try_lock_path(tmp_path)

    assert second is not None
    unlock(second, tmp_path)


def test_lock_path_raises_on_contention(tmp_path) -> None:
    """lock_path should report contention as an error."""
    holder = lock_path(tmp_path)

    with pytest.raises(CasLockContentionError):
        lock_path(tmp_path)

    unlock(holder, tmp_path)


def test_try_lock_missing_path_returns_none(tmp_path) -> None:
    """A path removed underneath the caller is treated as unavailable."""
    assert try_lock_path(tmp_path / "gone") is None
