"""Image layout validation, creation, and path derivation.

This module owns the fixed directory structure of a repository root:
the ``oci-layout`` marker, the ``blobs/<algorithm>`` container, and the
``refs`` container. Every path the engine touches is derived here.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

from core.config import CasConfig
from core.constants import (
    BLOB_ALGORITHM,
    BLOB_DIR_NAME,
    DIRECTORY_MODE,
    IMAGE_LAYOUT_VERSION,
    LAYOUT_FILE_NAME,
    REF_DIR_NAME,
)
from core.errors import CasInvalidError, CasIOError
from core.logging_config import get_logger
from core.types import Digest, ImageLayout
from store.codec import encode_json, image_layout_from_payload, image_layout_to_payload

_LOGGER = get_logger(__name__)


def blob_dir(root: Path) -> Path:
    """Return the directory holding blobs of the supported algorithm."""
    return root / BLOB_DIR_NAME / BLOB_ALGORITHM


def ref_dir(root: Path) -> Path:
    """Return the directory holding reference files."""
    return root / REF_DIR_NAME


def blob_path(root: Path, digest: Digest) -> Path:
    """Return the canonical path of a blob.

    Args:
        root: Repository root.
        digest: Syntactically valid digest.

    Returns:
        ``<root>/blobs/<algorithm>/<hex>``.

    Raises:
        CasInvalidError: If the digest uses an algorithm this store does not hold.
    """
    if digest.algorithm != BLOB_ALGORITHM:
        raise CasInvalidError(
            f"Unsupported digest algorithm '{digest.algorithm}': this store only holds {BLOB_ALGORITHM}.",
            operation="blob_path",
        )
    return blob_dir(root) / digest.hex


def ref_path(root: Path, name: str) -> Path:
    """Return the path of a reference file.

    Args:
        root: Repository root.
        name: Reference name.

    Returns:
        ``<root>/refs/<name>``.

    Raises:
        CasInvalidError: If the name would not be a direct child of ``refs``.
    """
    if (
        not name
        or name in {".", ".."}
        or "/" in name
        or "\x00" in name
        or (os.altsep is not None and os.altsep in name)
    ):
        raise CasInvalidError(
            f"Invalid reference name '{name}': names must be a single path component.",
            operation="ref_path",
        )
    return ref_dir(root) / name


def validate_layout(root: Path) -> None:
    """Confirm that a directory is a well-formed repository.

    Args:
        root: Repository root.

    Raises:
        CasInvalidError: If the marker is missing, unparsable, or has an
            unsupported version, or a mandatory container is missing.
        CasIOError: If the filesystem cannot be read.
    """
    layout_path = root / LAYOUT_FILE_NAME
    try:
        content = layout_path.read_bytes()
    except (FileNotFoundError, NotADirectoryError) as error:
        raise CasInvalidError(
            f"Missing {LAYOUT_FILE_NAME} at {layout_path}. Create the repository before opening it.",
            operation="validate",
            path=layout_path,
        ) from error
    except OSError as error:
        raise CasIOError(
            f"Failed to read {LAYOUT_FILE_NAME} at {layout_path}: {error}.",
            operation="validate",
            path=layout_path,
        ) from error

    try:
        layout = image_layout_from_payload(json.loads(content))
    except (json.JSONDecodeError, UnicodeDecodeError) as error:
        raise CasInvalidError(
            f"Failed to parse {LAYOUT_FILE_NAME} at {layout_path}: {error}.",
            operation="validate",
            path=layout_path,
        ) from error
    except CasInvalidError as error:
        raise CasInvalidError(error.message, operation="validate", path=layout_path) from error

    if layout.image_layout_version != IMAGE_LAYOUT_VERSION:
        raise CasInvalidError(
            f"Unsupported image layout version '{layout.image_layout_version}' at {layout_path}: "
            f"expected '{IMAGE_LAYOUT_VERSION}'.",
            operation="validate",
            path=layout_path,
        )

    # TODO: also reject blobs/ holding other algorithms and refs/ holding directories.
    _require_directory(root / BLOB_DIR_NAME)
    _require_directory(ref_dir(root))


def create_layout(root: Path, config: CasConfig) -> None:
    """Create an empty repository at a path that does not exist yet.

    Missing parents are created; the root itself must not exist.

    Args:
        root: Repository root to create.
        config: Engine configuration.

    Raises:
        CasInvalidError: If the root already exists.
        CasIOError: If any directory or the marker cannot be written.
    """
    try:
        root.parent.mkdir(mode=DIRECTORY_MODE, parents=True, exist_ok=True)
    except OSError as error:
        raise CasIOError(
            f"Failed to create parent directory of {root}: {error}.",
            operation="create",
            path=root.parent,
        ) from error
    try:
        root.mkdir(mode=DIRECTORY_MODE)
    except FileExistsError as error:
        raise CasInvalidError(
            f"Cannot create repository at {root}: path already exists.",
            operation="create",
            path=root,
        ) from error
    except OSError as error:
        raise CasIOError(
            f"Failed to create repository directory {root}: {error}.",
            operation="create",
            path=root,
        ) from error

    for directory in (root / BLOB_DIR_NAME, blob_dir(root), ref_dir(root)):
        try:
            directory.mkdir(mode=DIRECTORY_MODE)
        except OSError as error:
            raise CasIOError(
                f"Failed to create {directory}: {error}.", operation="create", path=directory
            ) from error

    layout_path = root / LAYOUT_FILE_NAME
    payload = encode_json(image_layout_to_payload(ImageLayout(IMAGE_LAYOUT_VERSION)))
    try:
        with layout_path.open("xb") as handle:
            handle.write(payload)
            if config.durable_writes:
                handle.flush()
                os.fsync(handle.fileno())
    except OSError as error:
        raise CasIOError(
            f"Failed to write {LAYOUT_FILE_NAME} at {layout_path}: {error}.",
            operation="create",
            path=layout_path,
        ) from error
    _LOGGER.info("layout_created", root=str(root), version=IMAGE_LAYOUT_VERSION)


def _require_directory(path: Path) -> None:
    """Raise CasInvalidError unless path is an existing directory."""
    try:
        is_directory = path.is_dir()
        exists = is_directory or path.exists()
    except OSError as error:
        raise CasIOError(f"Failed to stat {path}: {error}.", operation="validate", path=path) from error
    if not exists:
        raise CasInvalidError(
            f"Missing mandatory directory {path}.", operation="validate", path=path
        )
    if not is_directory:
        raise CasInvalidError(
            f"Expected {path} to be a directory.", operation="validate", path=path
        )
