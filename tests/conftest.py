"""Pytest configuration and shared fixtures."""

from pathlib import Path
from typing import Callable, Dict

import pytest


@pytest.fixture
def fixtures_path() -> Path:
    """Return the path to test fixtures."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def vulnerable_server_path(fixtures_path: Path) -> Path:
    """Return the path to the vulnerable MCP server fixture."""
    return fixtures_path / "vulnerable_server"


@pytest.fixture
def safe_server_path(fixtures_path: Path) -> Path:
    """Return the path to the safe MCP server fixture."""
    return fixtures_path / "safe_server"


@pytest.fixture
def make_project(tmp_path: Path) -> Callable[[Dict[str, str]], Path]:
    """Build a project tree under tmp_path from {relative path: content}."""
    def _make(files: Dict[str, str]) -> Path:
        root = tmp_path / "project"
        root.mkdir(exist_ok=True)
        for rel, content in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return root
    return _make
