"""Blob reader that re-hashes content as it is consumed."""

from __future__ import annotations

import hashlib
import io
from pathlib import Path
from typing import BinaryIO

from core.errors import CasIntegrityError
from core.types import Digest


class VerifiedBlobReader(io.RawIOBase):
    """Wrap an open blob and check its digest once EOF is reached.

    Partial reads are not verified; only a reader that hits EOF raises
    CasIntegrityError on mismatch.
    """

    def __init__(self, handle: BinaryIO, expected: Digest, path: Path) -> None:
        super().__init__()
        self._handle = handle
        self._expected = expected
        self._path = path
        self._hasher = hashlib.new(expected.algorithm)
        self._verified = False

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: bytearray | memoryview) -> int:  # type: ignore[override]
        chunk = self._handle.read(len(buffer))
        if chunk:
            buffer[: len(chunk)] = chunk
            self._hasher.update(chunk)
            return len(chunk)
        self._verify()
        return 0

    def close(self) -> None:
        if not self.closed:
            self._handle.close()
        super().close()

    def _verify(self) -> None:
        if self._verified:
            return
        self._verified = True
        actual = Digest(self._expected.algorithm, self._hasher.hexdigest())
        if actual != self._expected:
            raise CasIntegrityError(
                expected=str(self._expected),
                actual=str(actual),
                operation="get_blob",
                path=self._path,
            )
