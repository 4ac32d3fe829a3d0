"""Runtime configuration model for ocicas.

This module owns all environment variable parsing and validation.
The storage engine consumes a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os

from core.constants import (
    COPY_CHUNK_SIZE_ENV,
    DEFAULT_COPY_CHUNK_SIZE,
    DURABLE_WRITES_ENV,
    VERIFY_ON_READ_ENV,
)
from core.errors import CasConfigError

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True)
class CasConfig:
    """Validated engine configuration.

    Attributes:
        durable_writes: Fsync staged files and destination directories on publish.
        verify_on_read: Re-hash blob content while it is read back.
        copy_chunk_size: Bytes copied per step when staging a blob.
    """

    durable_writes: bool = True
    verify_on_read: bool = False
    copy_chunk_size: int = DEFAULT_COPY_CHUNK_SIZE

    def __post_init__(self) -> None:
        if self.copy_chunk_size <= 0:
            raise CasConfigError(
                f"Invalid copy_chunk_size {self.copy_chunk_size}: expected a positive integer."
            )

    @classmethod
    def from_env(cls) -> "CasConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            CasConfigError: If environment values are invalid.
        """
        return cls(
            durable_writes=_parse_flag(DURABLE_WRITES_ENV, default=True),
            verify_on_read=_parse_flag(VERIFY_ON_READ_ENV, default=False),
            copy_chunk_size=_parse_chunk_size(
                os.getenv(COPY_CHUNK_SIZE_ENV, str(DEFAULT_COPY_CHUNK_SIZE))
            ),
        )


def _parse_flag(env_name: str, default: bool) -> bool:
    """Parse a boolean environment flag.

    Args:
        env_name: Environment variable name.
        default: Value used when the variable is unset.

    Returns:
        Parsed flag value.

    Raises:
        CasConfigError: If the value is not a recognized boolean.
    """
    raw_value = os.getenv(env_name)
    if raw_value is None:
        return default
    normalized = raw_value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise CasConfigError(
        f"Invalid {env_name} value: expected one of 1/0/true/false, got '{raw_value}'. "
        f"Set {env_name} to a boolean value."
    )


def _parse_chunk_size(raw_value: str) -> int:
    """Parse the copy chunk size environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Parsed chunk size; positivity is checked by CasConfig.

    Raises:
        CasConfigError: If value is not an integer.
    """
    try:
        return int(raw_value)
    except ValueError as error:
        raise CasConfigError(
            f"Invalid {COPY_CHUNK_SIZE_ENV} value: "
            f"expected integer, got '{raw_value}'. "
            f"Set {COPY_CHUNK_SIZE_ENV} to a byte count."
        ) from error
