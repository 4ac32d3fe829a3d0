"""Pytest configuration for repository test runs."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest


def pytest_sessionstart() -> None:
    """Add src directory to sys.path for test imports."""
    project_root = Path(__file__).resolve().parent.parent
    src_path = project_root / "src"
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))


@pytest.fixture
def layout_root(tmp_path: Path) -> Path:
    """Create an empty image layout without fsync overhead."""
    from core.config import CasConfig
    from store.layout import create_layout

    root = tmp_path / "image"
    create_layout(root, CasConfig(durable_writes=False))
    return root
