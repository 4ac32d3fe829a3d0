"""Garbage collection of abandoned staging workspaces.

Everything directly under the repository root other than the layout marker
and the two mandatory containers is presumed to be a staging workspace.
Entries whose lock can be taken belong to no live session and are removed.
"""

from __future__ import annotations

import os
import shutil
from pathlib import Path

from core.constants import RESERVED_ENTRY_NAMES
from core.errors import CasIOError
from core.logging_config import get_logger
from core.types import CleanReport
from store.locking import try_lock_path, unlock

_LOGGER = get_logger(__name__)


def clean_root(root: Path) -> CleanReport:
    """Remove unlocked non-layout entries under a repository root.

    Published blobs and references are never inspected. Entries that are
    locked by a live session, or that vanish while being examined, are
    left alone. Dangling symlinks cannot be locked and are removed.

    Args:
        root: Repository root.

    Returns:
        Names of removed and skipped entries.

    Raises:
        CasIOError: If the root cannot be listed or an entry cannot be removed.
    """
    try:
        with os.scandir(root) as entries:
            candidates = sorted(entry.name for entry in entries if entry.name not in RESERVED_ENTRY_NAMES)
    except OSError as error:
        raise CasIOError(f"Failed to list {root}: {error}.", operation="clean", path=root) from error

    removed: list[str] = []
    skipped: list[str] = []
    for name in candidates:
        path = root / name
        lock_fd = try_lock_path(path, operation="clean")
        if lock_fd is None:
            if path.is_symlink() and not path.exists():
                _remove_entry(path)
                removed.append(name)
                _LOGGER.info("garbage_removed", path=str(path))
            elif os.path.lexists(path):
                skipped.append(name)
                _LOGGER.debug("garbage_skipped_locked", path=str(path))
            continue
        try:
            _remove_entry(path)
        finally:
            unlock(lock_fd, path, operation="clean")
        removed.append(name)
        _LOGGER.info("garbage_removed", path=str(path))
    return CleanReport(removed=tuple(removed), skipped=tuple(skipped))


def _remove_entry(path: Path) -> None:
    """Remove a file or a directory tree."""
    try:
        if path.is_dir() and not path.is_symlink():
            shutil.rmtree(path)
        else:
            path.unlink(missing_ok=True)
    except FileNotFoundError:
        return
    except OSError as error:
        raise CasIOError(f"Failed to remove garbage path {path}: {error}.", operation="clean", path=path) from error
