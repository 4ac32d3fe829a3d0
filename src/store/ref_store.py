"""Named reference storage.

Each reference is one JSON-encoded descriptor at ``refs/<name>``. A name is
never silently repointed: writing a different descriptor over an existing
one raises CasClobberError.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

from core.constants import STAGED_REF_PREFIX
from core.errors import (
    CasClobberError,
    CasCorruptReferenceError,
    CasInvalidError,
    CasIOError,
    CasNotFoundError,
)
from core.logging_config import get_logger
from core.types import Descriptor
from store.codec import descriptor_from_payload, descriptor_to_payload, encode_json
from store.layout import ref_dir, ref_path
from store.staging import StagingWorkspace

_LOGGER = get_logger(__name__)


class ReferenceStore:
    """Reference namespace of one repository root."""

    def __init__(self, root: Path, staging: StagingWorkspace) -> None:
        self._root = root
        self._staging = staging

    def put(self, name: str, descriptor: Descriptor) -> None:
        """Point a name at a descriptor.

        Writing the descriptor a name already holds is a no-op. The check and
        the publish are not atomic together: two writers racing on an absent
        name both publish and the last rename wins.

        Raises:
            CasClobberError: If the name holds a different descriptor.
            CasCorruptReferenceError: If the existing reference cannot be decoded.
            CasInvalidError: If the name is not a valid reference name.
            CasIOError: If staging or publishing fails.
        """
        destination = ref_path(self._root, name)
        self._staging.ensure()
        try:
            existing = self.get(name)
        except CasCorruptReferenceError:
            raise
        except CasNotFoundError:
            existing = None
        if existing is not None:
            if existing != descriptor:
                raise CasClobberError(
                    f"Reference '{name}' already points at {existing.digest}; "
                    "delete it before pointing it elsewhere.",
                    operation="put_reference",
                    path=destination,
                )
            _LOGGER.debug("reference_unchanged", name=name)
            return

        staged_path, handle = self._staging.create_file(f"{STAGED_REF_PREFIX}{name}-")
        try:
            handle.write(encode_json(descriptor_to_payload(descriptor)))
        except OSError as error:
            handle.close()
            raise CasIOError(
                f"Failed to write staged reference {staged_path}: {error}.",
                operation="put_reference",
                path=staged_path,
            ) from error
        self._staging.finish_file(staged_path, handle)
        self._staging.publish(staged_path, destination, operation="put_reference")
        _LOGGER.debug("reference_published", name=name, digest=str(descriptor.digest))

    def get(self, name: str) -> Descriptor:
        """Read the descriptor a name points at.

        Raises:
            CasNotFoundError: If the name has no reference.
            CasCorruptReferenceError: If the reference file cannot be decoded.
        """
        path = ref_path(self._root, name)
        try:
            content = path.read_bytes()
        except FileNotFoundError as error:
            raise CasNotFoundError(
                f"Reference '{name}' not found.", operation="get_reference", path=path
            ) from error
        except OSError as error:
            raise CasIOError(
                f"Failed to read reference '{name}': {error}.", operation="get_reference", path=path
            ) from error
        try:
            return descriptor_from_payload(json.loads(content))
        except (json.JSONDecodeError, UnicodeDecodeError, CasInvalidError) as error:
            raise CasCorruptReferenceError(
                f"Reference '{name}' is corrupt: {error}. Delete and recreate it.",
                operation="get_reference",
                path=path,
            ) from error

    def delete(self, name: str) -> None:
        """Remove a reference; removing an absent reference succeeds."""
        path = ref_path(self._root, name)
        try:
            path.unlink(missing_ok=True)
        except OSError as error:
            raise CasIOError(
                f"Failed to remove reference '{name}': {error}.", operation="delete_reference", path=path
            ) from error

    def list(self) -> set[str]:
        """Return the names of all published references."""
        directory = ref_dir(self._root)
        try:
            with os.scandir(directory) as entries:
                return {entry.name for entry in entries if entry.is_file(follow_symlinks=False)}
        except OSError as error:
            raise CasIOError(
                f"Failed to list references in {directory}: {error}.",
                operation="list_references",
                path=directory,
            ) from error
