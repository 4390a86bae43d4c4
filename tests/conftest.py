"""Pytest configuration and shared fixtures for all tests."""

import itertools
import sys
from pathlib import Path

import pytest

# Add src to path for all test modules
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from querylog.query_history import QueryHistory  # noqa: E402
from querylog.storage import InMemoryBackend, StorageConfig  # noqa: E402


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Set up the test environment."""
    import os

    os.environ.setdefault("QUERYLOG_ENV", "test")
    os.environ.setdefault("QUERYLOG_STORAGE_TYPE", "memory")

    yield


@pytest.fixture
def timestamps():
    """A timestamp factory yielding 't1', 't2', ... so ordering is visible in assertions."""
    counter = itertools.count(1)
    return lambda: f"t{next(counter)}"


@pytest.fixture
def backend():
    """An empty in-memory backend."""
    return InMemoryBackend(StorageConfig(type="memory"))


@pytest.fixture
def history(backend, timestamps):
    """A QueryHistory over the in-memory backend with predictable timestamps."""
    return QueryHistory(backend, timeout_seconds=1.0, timestamp_factory=timestamps)


def pytest_collection_modifyitems(config, items):  # noqa: ARG001
    """Modify test items during collection."""
    # Mark tests based on their location
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "server" in str(item.fspath):
            item.add_marker(pytest.mark.server)
