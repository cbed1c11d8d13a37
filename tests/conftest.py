"""Pytest configuration and shared fixtures for my-memory tests.

This module provides reusable fixtures for testing:
- env_setup: (autouse) Clears MY_MEMORY_* / DATABASE_PATH so host settings
  never leak into tests
- temp_dir: Temporary directory for file operations
- store: In-memory SQLiteStore
- engine: KnowledgeEngine over the in-memory store

Usage:
    def test_something(engine):
        ada = engine.create_entity(type="Person", name="Ada")
"""

import os
import tempfile
from collections.abc import Generator
from pathlib import Path

import pytest

from my_memory.engine import KnowledgeEngine, SummaryService
from my_memory.storage import SQLiteStore

_ENV_VARS = (
    "MY_MEMORY_DATABASE_PATH",
    "MY_MEMORY_BUSY_TIMEOUT_MS",
    "MY_MEMORY_LOG_LEVEL",
    "DATABASE_PATH",
)


@pytest.fixture(autouse=True)
def env_setup() -> Generator[None, None, None]:
    """Remove configuration variables for the duration of each test.

    Tests that exercise configuration set what they need via monkeypatch.
    """
    original = {k: os.environ.get(k) for k in _ENV_VARS}
    for key in _ENV_VARS:
        os.environ.pop(key, None)
    yield
    for key, value in original.items():
        if value is None:
            os.environ.pop(key, None)
        else:
            os.environ[key] = value


# Configure pytest-asyncio
pytest_plugins = ["pytest_asyncio"]


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test file operations.

    Yields:
        Path: Path to the temporary directory (cleaned up after test)
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def store() -> Generator[SQLiteStore, None, None]:
    """Provide an in-memory SQLiteStore, closed after the test."""
    s = SQLiteStore(Path(":memory:"))
    yield s
    s.close()


@pytest.fixture
def engine(store: SQLiteStore) -> KnowledgeEngine:
    """Provide a KnowledgeEngine over the in-memory store."""
    return KnowledgeEngine(store)


@pytest.fixture
def summary_service(engine: KnowledgeEngine) -> SummaryService:
    """Provide a SummaryService over the in-memory engine."""
    return SummaryService(engine)
