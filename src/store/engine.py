"""Engine lifecycle and backend protocol.

This module exposes the capability set every storage backend offers and
the directory-backed engine that implements it. A DirEngine handle owns
its repository path, its lazily created staging workspace, and that
workspace's lock, and releases all three on close.
"""

from __future__ import annotations

from pathlib import Path
from threading import Event
from types import TracebackType
from typing import BinaryIO, Protocol, runtime_checkable

from core.config import CasConfig
from core.errors import CasClosedError
from core.logging_config import get_logger
from core.types import CleanReport, Descriptor, Digest
from store.blob_store import BlobSource, BlobStore
from store.garbage import clean_root
from store.layout import create_layout, validate_layout
from store.ref_store import ReferenceStore
from store.staging import StagingWorkspace

_LOGGER = get_logger(__name__)


@runtime_checkable
class CasEngine(Protocol):
    """Content-addressable store operations consumed by image tooling."""

    def put_blob(self, source: BlobSource, cancel_event: Event | None = None) -> tuple[Digest, int]:
        """Store a blob and return its digest and size."""
        ...

    def put_blob_json(self, value: object, cancel_event: Event | None = None) -> tuple[Digest, int]:
        """Store the JSON encoding of a value as a blob."""
        ...

    def put_reference(self, name: str, descriptor: Descriptor) -> None:
        """Point a name at a descriptor, refusing to repoint it."""
        ...

    def get_blob(self, digest: Digest) -> BinaryIO:
        """Open a blob for reading."""
        ...

    def get_reference(self, name: str) -> Descriptor:
        """Return the descriptor a name points at."""
        ...

    def delete_blob(self, digest: Digest) -> None:
        """Remove a blob if present."""
        ...

    def delete_reference(self, name: str) -> None:
        """Remove a reference if present."""
        ...

    def list_blobs(self) -> set[Digest]:
        """Return all stored blob digests."""
        ...

    def list_references(self) -> set[str]:
        """Return all stored reference names."""
        ...

    def clean(self) -> CleanReport:
        """Remove garbage left behind by sessions that are gone."""
        ...

    def close(self) -> None:
        """Release session resources."""
        ...


class DirEngine:
    """Directory-backed engine handle for one session.

    Handles are not thread-safe; callers sharing one across threads must
    serialize writes themselves.
    """

    def __init__(self, path: Path, config: CasConfig) -> None:
        """Create a handle without validating the layout.

        Args:
            path: Repository root.
            config: Engine configuration.
        """
        self._path = path
        self._config = config
        self._staging = StagingWorkspace(path, config)
        self._blobs = BlobStore(path, self._staging, config)
        self._refs = ReferenceStore(path, self._staging)
        self._closed = False

    @property
    def path(self) -> Path:
        """Return the repository root."""
        return self._path

    @property
    def staging_path(self) -> Path | None:
        """Return this session's staging workspace, or None before any write."""
        return self._staging.path

    def put_blob(self, source: BlobSource, cancel_event: Event | None = None) -> tuple[Digest, int]:
        """Store a blob and return its digest and size.

        Args:
            source: Binary readable or bytes-like payload.
            cancel_event: Optional event that aborts the copy when set.

        Returns:
            Pair of content digest and byte count.
        """
        self._ensure_open("put_blob")
        return self._blobs.put(source, cancel_event=cancel_event)

    def put_blob_json(self, value: object, cancel_event: Event | None = None) -> tuple[Digest, int]:
        """Store the JSON encoding of a value as a blob.

        Repeated calls with structurally equal values may yield different
        digests when mapping key order differs.
        """
        self._ensure_open("put_blob_json")
        return self._blobs.put_json(value, cancel_event=cancel_event)

    def put_reference(self, name: str, descriptor: Descriptor) -> None:
        """Point a name at a descriptor.

        Raises:
            CasClobberError: If the name already holds a different descriptor.
        """
        self._ensure_open("put_reference")
        self._refs.put(name, descriptor)

    def get_blob(self, digest: Digest) -> BinaryIO:
        """Open a blob for reading; the caller must close the reader.

        Raises:
            CasNotFoundError: If the blob is absent.
        """
        self._ensure_open("get_blob")
        return self._blobs.get(digest)

    def get_reference(self, name: str) -> Descriptor:
        """Return the descriptor a name points at.

        Raises:
            CasNotFoundError: If the reference is absent or corrupt.
        """
        self._ensure_open("get_reference")
        return self._refs.get(name)

    def delete_blob(self, digest: Digest) -> None:
        """Remove a blob; absent blobs are not an error."""
        self._ensure_open("delete_blob")
        self._blobs.delete(digest)

    def delete_reference(self, name: str) -> None:
        """Remove a reference; absent references are not an error."""
        self._ensure_open("delete_reference")
        self._refs.delete(name)

    def list_blobs(self) -> set[Digest]:
        """Return all stored blob digests."""
        self._ensure_open("list_blobs")
        return self._blobs.list()

    def list_references(self) -> set[str]:
        """Return all stored reference names."""
        self._ensure_open("list_references")
        return self._refs.list()

    def clean(self) -> CleanReport:
        """Remove staging workspaces of sessions that are no longer alive.

        Safe to run while other sessions, including this one, are writing.
        """
        self._ensure_open("clean")
        return clean_root(self._path)

    def close(self) -> None:
        """Unlock and remove this session's staging workspace.

        Raises:
            CasClosedError: If the handle was already closed.
        """
        self._ensure_open("close")
        self._closed = True
        self._staging.release()
        _LOGGER.debug("engine_closed", path=str(self._path))

    def __enter__(self) -> "DirEngine":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        if not self._closed:
            self.close()

    def _ensure_open(self, operation: str) -> None:
        if self._closed:
            raise CasClosedError(
                f"Engine for {self._path} is closed; open a new handle.",
                operation=operation,
                path=self._path,
            )


def open_engine(path: str | Path, config: CasConfig | None = None) -> DirEngine:
    """Open an existing repository.

    Args:
        path: Repository root.
        config: Optional engine configuration; defaults apply when omitted.

    Returns:
        Engine handle with no staging workspace yet.

    Raises:
        CasInvalidError: If the layout is missing, malformed, or unsupported.
        CasIOError: If the layout cannot be read.
    """
    root = Path(path)
    validate_layout(root)
    return DirEngine(root, config or CasConfig())


def create_engine(path: str | Path, config: CasConfig | None = None) -> None:
    """Create an empty repository; open it afterwards with open_engine.

    Raises:
        CasInvalidError: If the path already exists.
        CasIOError: If the layout cannot be written.
    """
    create_layout(Path(path), config or CasConfig())
