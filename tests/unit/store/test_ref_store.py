"""Unit tests for named reference storage."""

from __future__ import annotations

import hashlib

import pytest

from core.config import CasConfig
from core.errors import (
    CasClobberError,
    CasCorruptReferenceError,
    CasInvalidError,
    CasNotFoundError,
    ErrorKind,
)
from core.types import Descriptor, Digest
from store.layout import create_layout
from store.ref_store import ReferenceStore
from store.staging import StagingWorkspace


def _descriptor(content: bytes = b"{}\n", media_type: str = "application/json") -> Descriptor:
    return Descriptor(
        media_type=media_type,
        digest=Digest("sha256", hashlib.sha256(content).hexdigest()),
        size=len(content),
    )


def _store(tmp_path) -> tuple[ReferenceStore, StagingWorkspace]:
    config = CasConfig(durable_writes=False)
    root = tmp_path / "image"
    create_layout(root, config)
    staging = StagingWorkspace(root, config)
    return ReferenceStore(root, staging), staging


def test_put_then_get_returns_descriptor(tmp_path) -> None:
    """A stored reference should resolve to the same descriptor."""
    store, staging = _store(tmp_path)
    descriptor = _descriptor()

    store.put("latest", descriptor)

    assert store.get("latest") == descriptor
    staging.release()


def test_put_writes_json_descriptor_file(tmp_path) -> None:
    """Reference files should hold the JSON descriptor."""
    store, staging = _store(tmp_path)
    descriptor = _descriptor()

    store.put("latest", descriptor)

    content = (tmp_path / "image" / "refs" / "latest").read_text()
    assert content.endswith("\n")
    assert f'"digest": "{descriptor.digest}"' in content
    staging.release()


def test_put_same_descriptor_twice_is_a_no_op(tmp_path) -> None:
    """Re-putting an identical descriptor should succeed silently."""
    store, staging = _store(tmp_path)
    descriptor = _descriptor()
    store.put("latest", descriptor)
    ref_file = tmp_path / "image" / "refs" / "latest"
    before = ref_file.stat().st_ino

    store.put("latest", _descriptor())

    assert ref_file.stat().st_ino == before
    staging.release()


def test_put_different_descriptor_raises_clobber(tmp_path) -> None:
    """A differing descriptor must not overwrite the existing reference."""
    store, staging = _store(tmp_path)
    original = _descriptor()
    store.put("latest", original)

    with pytest.raises(CasClobberError) as error_info:
        store.put("latest", _descriptor(b"other"))

    assert error_info.value.kind is ErrorKind.CLOBBER
    assert store.get("latest") == original
    staging.release()


def test_get_missing_reference_raises_not_found(tmp_path) -> None:
    """Absent references should raise CasNotFoundError."""
    store, _ = _store(tmp_path)

    with pytest.raises(CasNotFoundError):
        store.get("latest")


def test_get_corrupt_reference_is_reported(tmp_path) -> None:
    """Undecodable reference files should raise CasCorruptReferenceError."""
    store, _ = _store(tmp_path)
    (tmp_path / "image" / "refs" / "broken").write_text("{not json")

    with pytest.raises(CasCorruptReferenceError):
        store.get("broken")


def test_put_does_not_overwrite_corrupt_reference(tmp_path) -> None:
    """A corrupt existing reference should surface instead of being replaced."""
    store, staging = _store(tmp_path)
    ref_file = tmp_path / "image" / "refs" / "broken"
    ref_file.write_text('{"mediaType": 1}')

    with pytest.raises(CasCorruptReferenceError):
        store.put("broken", _descriptor())

    assert ref_file.read_text() == '{"mediaType": 1}'
    staging.release()


def test_put_rejects_invalid_name(tmp_path) -> None:
    """Names that escape refs should be rejected before staging."""
    store, staging = _store(tmp_path)

    with pytest.raises(CasInvalidError):
        store.put("../escape", _descriptor())

    assert staging.path is None


def test_delete_is_idempotent(tmp_path) -> None:
    """Deleting present and absent references should both succeed."""
    store, staging = _store(tmp_path)
    store.put("latest", _descriptor())

    store.delete("latest")
    store.delete("latest")

    with pytest.raises(CasNotFoundError):
        store.get("latest")
    staging.release()


def test_list_matches_published_references(tmp_path) -> None:
    """Listing should reflect puts and deletes exactly."""
    store, staging = _store(tmp_path)
    store.put("v1", _descriptor())
    store.put("v2", _descriptor(b"two"))
    store.put("v3", _descriptor(b"three"))
    store.delete("v2")

    names = store.list()

    assert names == {"v1", "v3"}
    staging.release()


def test_delete_then_put_different_descriptor_succeeds(tmp_path) -> None:
    """Repointing a name requires deleting it first."""
    store, staging = _store(tmp_path)
    store.put("latest", _descriptor())
    store.delete("latest")
    replacement = _descriptor(b"new")

    store.put("latest", replacement)

    assert store.get("latest") == replacement
    staging.release()
