"""Shared typed models.

This module defines the immutable values exchanged between the storage
engine and its callers: digests, descriptors, the image layout marker,
and garbage collection reports.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Mapping

from core.errors import CasInvalidError

_ALGORITHM_PATTERN = re.compile(r"^[a-z0-9]+(?:[+._-][a-z0-9]+)*$")
_ENCODED_PATTERN = re.compile(r"^[a-zA-Z0-9=_-]+$")
_HEX_PATTERN = re.compile(r"^[a-f0-9]+$")
_REGISTERED_HEX_LENGTHS = {"sha256": 64, "sha384": 96, "sha512": 128}


@dataclass(frozen=True)
class Digest:
    """Content identifier of the form ``algorithm:hex``.

    Attributes:
        algorithm: Hash algorithm name, e.g. ``sha256``.
        hex: Encoded hash of the content.
    """

    algorithm: str
    hex: str

    def __post_init__(self) -> None:
        if not _ALGORITHM_PATTERN.match(self.algorithm):
            raise CasInvalidError(
                f"Invalid digest algorithm '{self.algorithm}'.", operation="parse_digest"
            )
        if not _ENCODED_PATTERN.match(self.hex):
            raise CasInvalidError(
                f"Invalid digest encoding '{self.hex}' for {self.algorithm}.",
                operation="parse_digest",
            )
        expected_length = _REGISTERED_HEX_LENGTHS.get(self.algorithm)
        if expected_length is None:
            return
        if len(self.hex) != expected_length or not _HEX_PATTERN.match(self.hex):
            raise CasInvalidError(
                f"Invalid {self.algorithm} digest '{self.hex}': "
                f"expected {expected_length} lowercase hex characters.",
                operation="parse_digest",
            )

    @classmethod
    def parse(cls, value: str) -> "Digest":
        """Parse an ``algorithm:hex`` string.

        Args:
            value: Serialized digest.

        Returns:
            Validated digest.

        Raises:
            CasInvalidError: If the value is not a well-formed digest.
        """
        algorithm, separator, encoded = value.partition(":")
        if not separator:
            raise CasInvalidError(
                f"Invalid digest '{value}': expected algorithm:hex.", operation="parse_digest"
            )
        return cls(algorithm=algorithm, hex=encoded)

    def __str__(self) -> str:
        return f"{self.algorithm}:{self.hex}"


@dataclass(frozen=True)
class Descriptor:
    """Pointer to a blob, stored as the target of a reference.

    Attributes:
        media_type: Media type of the referenced content.
        digest: Digest of the referenced blob.
        size: Blob size in bytes.
        annotations: Arbitrary string metadata; empty when absent.
        urls: Optional alternate download locations.
    """

    media_type: str
    digest: Digest
    size: int
    annotations: Mapping[str, str] = field(default_factory=dict)
    urls: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        # Normalize so that structurally equal descriptors compare equal.
        object.__setattr__(self, "annotations", dict(self.annotations or {}))
        object.__setattr__(self, "urls", tuple(self.urls or ()))

    def __hash__(self) -> int:
        return hash((self.media_type, self.digest, self.size, tuple(sorted(self.annotations.items())), self.urls))


@dataclass(frozen=True)
class ImageLayout:
    """Versioned marker identifying the on-disk format."""

    image_layout_version: str


@dataclass(frozen=True)
class CleanReport:
    """Result of one garbage collection pass.

    Attributes:
        removed: Root entries that were deleted.
        skipped: Root entries left alone because another session holds their lock.
    """

    removed: tuple[str, ...] = ()
    skipped: tuple[str, ...] = ()
