"""Content-addressed blob storage.

Blobs live at ``blobs/<algorithm>/<hex>``. Writes stream through a hasher
into the staging workspace and are renamed into place once the digest is
known, so a published blob is never half-written.
"""

from __future__ import annotations

import hashlib
import io
import os
from pathlib import Path
from threading import Event
from typing import Any, BinaryIO, Union

from core.config import CasConfig
from core.constants import BLOB_ALGORITHM, STAGED_BLOB_PREFIX
from core.errors import CasCancelledError, CasInvalidError, CasIOError, CasNotFoundError
from core.logging_config import get_logger
from core.types import Digest
from store.codec import encode_json
from store.layout import blob_dir, blob_path
from store.staging import StagingWorkspace
from store.verified_reader import VerifiedBlobReader

_LOGGER = get_logger(__name__)

BlobSource = Union[BinaryIO, bytes, bytearray, memoryview]


class BlobStore:
    """Blob namespace of one repository root."""

    def __init__(self, root: Path, staging: StagingWorkspace, config: CasConfig) -> None:
        self._root = root
        self._staging = staging
        self._config = config

    def put(self, source: BlobSource, cancel_event: Event | None = None) -> tuple[Digest, int]:
        """Store a blob and return its digest and size.

        Storing content that is already present succeeds; success means the
        content is now stored under the digest, not that this call created it.

        Args:
            source: Binary readable or bytes-like payload.
            cancel_event: Optional event checked between copied chunks.

        Returns:
            Pair of content digest and byte count.

        Raises:
            CasCancelledError: If cancel_event was set during the copy.
            CasIOError: If staging or publishing fails.
        """
        reader = _as_reader(source)
        staged_path, handle = self._staging.create_file(STAGED_BLOB_PREFIX)
        hasher = hashlib.new(BLOB_ALGORITHM)
        try:
            size = self._copy(reader, handle, hasher, staged_path, cancel_event)
        except BaseException:
            # The partial file stays in the workspace until the session closes.
            handle.close()
            raise
        self._staging.finish_file(staged_path, handle)

        digest = Digest(BLOB_ALGORITHM, hasher.hexdigest())
        destination = blob_path(self._root, digest)
        self._staging.publish(staged_path, destination, operation="put_blob")
        _LOGGER.debug("blob_published", digest=str(digest), size=size)
        return digest, size

    def _copy(
        self,
        reader: BinaryIO,
        handle: BinaryIO,
        hasher: Any,
        staged_path: Path,
        cancel_event: Event | None,
    ) -> int:
        """Copy reader into the staged file chunk by chunk, returning the size."""
        size = 0
        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise CasCancelledError(
                    f"Blob write cancelled after {size} bytes; staged file {staged_path} abandoned.",
                    operation="put_blob",
                    path=staged_path,
                )
            try:
                chunk = reader.read(self._config.copy_chunk_size)
                if not chunk:
                    return size
                handle.write(chunk)
            except OSError as error:
                raise CasIOError(
                    f"Failed to copy blob content into {staged_path}: {error}.",
                    operation="put_blob",
                    path=staged_path,
                ) from error
            hasher.update(chunk)
            size += len(chunk)

    def put_json(self, value: object, cancel_event: Event | None = None) -> tuple[Digest, int]:
        """Store the JSON encoding of a value as a blob.

        The encoding keeps mapping insertion order, so two structurally equal
        values are not guaranteed to produce the same digest.

        Raises:
            CasInvalidError: If the value is not JSON-serializable.
        """
        return self.put(encode_json(value), cancel_event=cancel_event)

    def get(self, digest: Digest) -> BinaryIO:
        """Open a blob for reading; the caller must close the reader.

        Raises:
            CasInvalidError: If the digest algorithm is unsupported.
            CasNotFoundError: If no blob is stored under the digest.
        """
        path = blob_path(self._root, digest)
        try:
            handle = path.open("rb")
        except FileNotFoundError as error:
            raise CasNotFoundError(f"Blob {digest} not found.", operation="get_blob", path=path) from error
        except OSError as error:
            raise CasIOError(f"Failed to open blob {digest}: {error}.", operation="get_blob", path=path) from error
        if self._config.verify_on_read:
            return io.BufferedReader(VerifiedBlobReader(handle, digest, path))
        return handle

    def delete(self, digest: Digest) -> None:
        """Remove a blob; removing an absent blob succeeds."""
        path = blob_path(self._root, digest)
        try:
            path.unlink(missing_ok=True)
        except OSError as error:
            raise CasIOError(f"Failed to remove blob {digest}: {error}.", operation="delete_blob", path=path) from error

    def list(self) -> set[Digest]:
        """Return the digests of all published blobs."""
        directory = blob_dir(self._root)
        digests: set[Digest] = set()
        try:
            with os.scandir(directory) as entries:
                for entry in entries:
                    try:
                        digests.add(Digest(BLOB_ALGORITHM, entry.name))
                    except CasInvalidError:
                        _LOGGER.warning("blob_entry_ignored", path=entry.path)
        except FileNotFoundError:
            return digests
        except OSError as error:
            raise CasIOError(
                f"Failed to list blobs in {directory}: {error}.", operation="list_blobs", path=directory
            ) from error
        return digests


def _as_reader(source: BlobSource) -> BinaryIO:
    if isinstance(source, (bytes, bytearray, memoryview)):
        return io.BytesIO(bytes(source))
    return source
