"""Unit tests for the per-session staging workspace."""

from __future__ import annotations

from core.config import CasConfig
from store.layout import create_layout
from store.locking import try_lock_path, unlock
from store.staging import StagingWorkspace


def _workspace(tmp_path) -> StagingWorkspace:
    root = tmp_path / "image"
    create_layout(root, CasConfig(durable_writes=False))
    return StagingWorkspace(root, CasConfig(durable_writes=False))


def test_workspace_is_created_lazily(tmp_path) -> None:
    """No directory should exist until the first write."""
    workspace = _workspace(tmp_path)

    assert workspace.path is None
    assert sorted(p.name for p in (tmp_path / "image").iterdir()) == ["blobs", "oci-layout", "refs"]


def test_ensure_reuses_the_same_directory(tmp_path) -> None:
    """Subsequent writes should reuse the provisioned workspace."""
    workspace = _workspace(tmp_path)

    first = workspace.ensure()
    second = workspace.ensure()

    assert first == second
    assert first.name.startswith("tmp-")
    workspace.release()


def test_workspace_is_locked_while_held(tmp_path) -> None:
    """Other lockers should be refused while the workspace is alive."""
    workspace = _workspace(tmp_path)
    path = workspace.ensure()

    contender = try_lock_path(path)

    assert contender is None
    workspace.release()


def test_release_unlocks_and_removes_staged_files(tmp_path) -> None:
    """Release should delete the directory including unpublished files."""
    workspace = _workspace(tmp_path)
    staged_path, handle = workspace.create_file("blob-")
    handle.write(b"unpublished")
    handle.close()
    path = workspace.path

    workspace.release()

    assert path is not None and not path.exists()
    assert not staged_path.exists()
    assert workspace.path is None


def test_release_without_provisioning_is_a_no_op(tmp_path) -> None:
    """Sessions that never wrote have nothing to release."""
    workspace = _workspace(tmp_path)

    workspace.release()

    assert workspace.path is None


def test_publish_moves_staged_file(tmp_path) -> None:
    """Publish should rename the staged file into its destination."""
    workspace = _workspace(tmp_path)
    staged_path, handle = workspace.create_file("ref.")
    handle.write(b"{}\n")
    workspace.finish_file(staged_path, handle)
    destination = tmp_path / "image" / "refs" / "latest"

    workspace.publish(staged_path, destination, operation="put_reference")

    assert destination.read_bytes() == b"{}\n"
    assert not staged_path.exists()
    workspace.release()


def test_durable_publish_moves_staged_file(tmp_path) -> None:
    """Durable mode should fsync without changing publish results."""
    root = tmp_path / "image"
    create_layout(root, CasConfig())
    workspace = StagingWorkspace(root, CasConfig(durable_writes=True))
    staged_path, handle = workspace.create_file("blob-")
    handle.write(b"data")
    workspace.finish_file(staged_path, handle)
    destination = root / "refs" / "durable"

    workspace.publish(staged_path, destination, operation="put_reference")

    assert destination.read_bytes() == b"data"
    workspace.release()


def test_released_workspace_can_be_locked_by_others(tmp_path) -> None:
    """A new workspace path is free of locks only after release."""
    workspace = _workspace(tmp_path)
    path = workspace.ensure()
    workspace.release()
    path.mkdir()

    fd = try_lock_path(path)

    assert fd is not None
    unlock(fd, path)
