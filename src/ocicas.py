"""Public SDK surface for ocicas.

This module provides a stable import path for engine users.
It re-exports the engine entry points, typed models, and errors.
"""

from __future__ import annotations

from core.config import CasConfig
from core.constants import IMAGE_LAYOUT_VERSION
from core.errors import (
    CasCancelledError,
    CasClobberError,
    CasClosedError,
    CasConfigError,
    CasCorruptReferenceError,
    CasIntegrityError,
    CasInvalidError,
    CasIOError,
    CasLockContentionError,
    CasNotFoundError,
    ErrorKind,
    OciCasError,
)
from core.types import CleanReport, Descriptor, Digest, ImageLayout
from store.engine import CasEngine, DirEngine, create_engine, open_engine

__all__ = [
    "IMAGE_LAYOUT_VERSION",
    "CasCancelledError",
    "CasClobberError",
    "CasClosedError",
    "CasConfig",
    "CasConfigError",
    "CasCorruptReferenceError",
    "CasEngine",
    "CasIntegrityError",
    "CasInvalidError",
    "CasIOError",
    "CasLockContentionError",
    "CasNotFoundError",
    "CleanReport",
    "Descriptor",
    "Digest",
    "DirEngine",
    "ErrorKind",
    "ImageLayout",
    "OciCasError",
    "create_engine",
    "open_engine",
]
