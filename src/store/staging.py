"""Per-session staging workspace.

Content is written into a locked ``tmp-*`` directory under the repository
root and then renamed into the blob or reference namespace. The lock keeps
the garbage collector away for as long as the owning session is open.
"""

from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path
from typing import BinaryIO

from core.config import CasConfig
from core.constants import STAGING_DIR_PREFIX
from core.errors import CasIOError
from core.logging_config import get_logger
from store.locking import lock_path, unlock

_LOGGER = get_logger(__name__)


class StagingWorkspace:
    """Lazily provisioned, lock-protected scratch directory for one session."""

    def __init__(self, root: Path, config: CasConfig) -> None:
        self._root = root
        self._config = config
        self._path: Path | None = None
        self._lock_fd: int | None = None

    @property
    def path(self) -> Path | None:
        """Return the workspace directory, or None before the first write."""
        return self._path

    def ensure(self) -> Path:
        """Create and lock the workspace on first use.

        Returns:
            Workspace directory path.

        Raises:
            CasIOError: If the directory cannot be created or opened.
            CasLockContentionError: If the fresh directory cannot be locked.
        """
        if self._path is not None:
            return self._path
        try:
            created = Path(tempfile.mkdtemp(prefix=STAGING_DIR_PREFIX, dir=self._root))
        except OSError as error:
            raise CasIOError(
                f"Failed to create staging directory in {self._root}: {error}.",
                operation="ensure_staging",
                path=self._root,
            ) from error
        self._lock_fd = lock_path(created, operation="ensure_staging")
        self._path = created
        _LOGGER.debug("staging_workspace_created", path=str(created))
        return created

    def create_file(self, prefix: str) -> tuple[Path, BinaryIO]:
        """Open a uniquely named file inside the workspace for writing.

        Args:
            prefix: File name prefix.

        Returns:
            Pair of staged file path and its open binary handle.
        """
        workspace = self.ensure()
        try:
            fd, staged_name = tempfile.mkstemp(prefix=prefix, dir=workspace)
        except OSError as error:
            raise CasIOError(
                f"Failed to create staged file in {workspace}: {error}.",
                operation="stage",
                path=workspace,
            ) from error
        return Path(staged_name), os.fdopen(fd, "wb")

    def finish_file(self, staged_path: Path, handle: BinaryIO) -> None:
        """Flush, optionally fsync, and close a staged file."""
        try:
            handle.flush()
            if self._config.durable_writes:
                os.fsync(handle.fileno())
        except OSError as error:
            raise CasIOError(
                f"Failed to flush staged file {staged_path}: {error}.",
                operation="stage",
                path=staged_path,
            ) from error
        finally:
            handle.close()

    def publish(self, staged_path: Path, destination: Path, operation: str) -> None:
        """Atomically move a staged file to its published location.

        Args:
            staged_path: Closed staged file inside the workspace.
            destination: Final path inside the blob or reference namespace.
            operation: Operation label for error context.

        Raises:
            CasIOError: If the rename or directory sync fails.
        """
        try:
            os.replace(staged_path, destination)
        except OSError as error:
            raise CasIOError(
                f"Failed to publish {staged_path} to {destination}: {error}.",
                operation=operation,
                path=destination,
            ) from error
        if self._config.durable_writes:
            _fsync_directory(destination.parent, operation)

    def release(self) -> None:
        """Unlock and remove the workspace along with unpublished files."""
        if self._path is None:
            return
        path = self._path
        lock_fd = self._lock_fd
        self._path = None
        self._lock_fd = None
        if lock_fd is not None:
            unlock(lock_fd, path, operation="close")
        try:
            shutil.rmtree(path)
        except FileNotFoundError:
            pass
        except OSError as error:
            raise CasIOError(
                f"Failed to remove staging directory {path}: {error}.",
                operation="close",
                path=path,
            ) from error
        _LOGGER.debug("staging_workspace_removed", path=str(path))


def _fsync_directory(directory: Path, operation: str) -> None:
    """Persist a rename by syncing its parent directory."""
    try:
        fd = os.open(directory, os.O_RDONLY)
    except OSError as error:
        raise CasIOError(
            f"Failed to open {directory} for sync: {error}.", operation=operation, path=directory
        ) from error
    try:
        os.fsync(fd)
    except OSError as error:
        raise CasIOError(
            f"Failed to sync directory {directory}: {error}.", operation=operation, path=directory
        ) from error
    finally:
        os.close(fd)
