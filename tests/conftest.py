"""
Pytest configuration and fixtures for clipvault tests.

This module provides shared fixtures used across unit and integration tests.
"""

import tempfile
from pathlib import Path
from typing import Generator

import pytest

from clipvault.store import HistoryStore


class FakeClock:
    """Millisecond clock that advances by `step` on every read."""

    def __init__(self, start: int = 1_700_000_000_000, step: int = 1) -> None:
        self.now = start
        self.step = step
        self.last: int | None = None

    def __call__(self) -> int:
        self.now += self.step
        self.last = self.now
        return self.now


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def clock() -> FakeClock:
    """A deterministic, strictly increasing clock."""
    return FakeClock()


@pytest.fixture
def db_path(temp_dir: Path) -> Path:
    """Path for a fresh history database."""
    return temp_dir / "data.sqlite"


@pytest.fixture
def store(db_path: Path, clock: FakeClock) -> Generator[HistoryStore, None, None]:
    """Create a history store driven by the fake clock."""
    history_store = HistoryStore(db_path, clock=clock)
    yield history_store
    history_store.close()


@pytest.fixture
def sample_config_yaml() -> str:
    """Return a small config YAML for testing."""
    return """
capacity: 100
eviction_margin: 10
search_limit: 5
highlight_open: "[["
highlight_close: "]]"
"""
