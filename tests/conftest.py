"""Pytest configuration and shared fixtures."""

import pytest
from pathlib import Path

from snapvcs.core import Repository


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Create a temporary directory for testing."""
    return tmp_path


@pytest.fixture
def temp_repo(tmp_path: Path) -> Path:
    """Create a temporary workspace with a few sample files."""
    repo = tmp_path / "test_repo"
    repo.mkdir()

    (repo / "wug.txt").write_text("This is a wug.\n")
    (repo / "notwug.txt").write_text("This is not a wug.\n")

    data = repo / "data"
    data.mkdir()
    (data / "input.csv").write_text("x,y\n1,2\n3,4\n")

    return repo


@pytest.fixture
def repo(temp_repo: Path) -> Repository:
    """An initialized repository over ``temp_repo``."""
    repository = Repository(temp_repo)
    repository.init()
    return repository
