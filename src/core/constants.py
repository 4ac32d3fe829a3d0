"""Core constants used across ocicas modules.

This module centralizes on-disk layout names and engine defaults.
Keeping values here avoids magic literals in storage logic.
"""

from __future__ import annotations

# The meaning of this field is not pinned down by the image layout format,
# so the one value we write is also the only one we accept.
IMAGE_LAYOUT_VERSION = "1.0.0"
BLOB_DIR_NAME = "blobs"
REF_DIR_NAME = "refs"
LAYOUT_FILE_NAME = "oci-layout"
RESERVED_ENTRY_NAMES = frozenset({BLOB_DIR_NAME, REF_DIR_NAME, LAYOUT_FILE_NAME})
BLOB_ALGORITHM = "sha256"
STAGING_DIR_PREFIX = "tmp-"
STAGED_BLOB_PREFIX = "blob-"
STAGED_REF_PREFIX = "ref."
DIRECTORY_MODE = 0o755
DEFAULT_COPY_CHUNK_SIZE = 1024 * 1024
DURABLE_WRITES_ENV = "OCICAS_DURABLE_WRITES"
VERIFY_ON_READ_ENV = "OCICAS_VERIFY_ON_READ"
COPY_CHUNK_SIZE_ENV = "OCICAS_COPY_CHUNK_SIZE"
