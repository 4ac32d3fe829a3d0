"""Unit tests for core config parsing."""

from __future__ import annotations

import pytest

from core.config import CasConfig
from core.constants import DEFAULT_COPY_CHUNK_SIZE
from core.errors import CasConfigError, ErrorKind


def test_defaults_keep_write_time_trust(monkeypatch: pytest.MonkeyPatch) -> None:
    """Unset environment should yield durable writes without read verification."""
    monkeypatch.delenv("OCICAS_DURABLE_WRITES", raising=False)
    monkeypatch.delenv("OCICAS_VERIFY_ON_READ", raising=False)
    monkeypatch.delenv("OCICAS_COPY_CHUNK_SIZE", raising=False)

    config = CasConfig.from_env()

    assert config == CasConfig(
        durable_writes=True,
        verify_on_read=False,
        copy_chunk_size=DEFAULT_COPY_CHUNK_SIZE,
    )


def test_from_env_reads_flags(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should parse boolean flags case-insensitively."""
    monkeypatch.setenv("OCICAS_DURABLE_WRITES", "off")
    monkeypatch.setenv("OCICAS_VERIFY_ON_READ", "TRUE")

    config = CasConfig.from_env()

    assert (config.durable_writes, config.verify_on_read) == (False, True)


def test_from_env_reads_chunk_size(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should parse the copy chunk size."""
    monkeypatch.setenv("OCICAS_COPY_CHUNK_SIZE", "4096")

    config = CasConfig.from_env()

    assert config.copy_chunk_size == 4096


def test_from_env_raises_for_invalid_flag(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fail for unrecognized boolean values."""
    monkeypatch.setenv("OCICAS_VERIFY_ON_READ", "maybe")

    with pytest.raises(CasConfigError) as error_info:
        CasConfig.from_env()

    assert error_info.value.kind is ErrorKind.INVALID


def test_from_env_raises_for_non_numeric_chunk_size(monkeypatch: pytest.MonkeyPatch) -> None:
    """Config should fail for a non-numeric chunk size."""
    monkeypatch.setenv("OCICAS_COPY_CHUNK_SIZE", "large")

    with pytest.raises(CasConfigError):
        CasConfig.from_env()


def test_rejects_non_positive_chunk_size() -> None:
    """Config should refuse a chunk size that would never make progress."""
    with pytest.raises(CasConfigError):
        CasConfig(copy_chunk_size=0)
