"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests: handlers over every
backend, stores, and managers. No network; SQLite stands in for the
relational backend.
"""

import os
import pytest

os.environ.setdefault("PYSESSION_LOG_LEVEL", "WARNING")

TEST_SECRET = "sdhfjasdfasjdhfjhsajdhfjhasdfsdksdf"


@pytest.fixture
def memory_table():
    """Create an empty shared memory table."""
    from pysession.handlers.memory import MemorySessionTable
    return MemorySessionTable()


@pytest.fixture
def memory_handler(memory_table):
    """Create a MemorySessionHandler."""
    from pysession.handlers.memory import MemorySessionHandler
    return MemorySessionHandler(memory_table)


@pytest.fixture
def session_dir(tmp_path):
    """Directory for file-backed sessions."""
    return tmp_path / "sessions"


@pytest.fixture
def file_handler(session_dir):
    """Create a FileSessionHandler under a temp directory."""
    from pysession.handlers.file import FileSessionHandler
    return FileSessionHandler(str(session_dir))


@pytest.fixture
def database_url(tmp_path):
    """SQLite URL for a throwaway database file."""
    return f"sqlite:///{tmp_path / 'sessions.db'}"


@pytest.fixture
def session_table(database_url):
    """Create a SessionTable over SQLite."""
    from pysession.handlers.database import SessionTable

    table = SessionTable(database_url, "sessions")
    yield table
    table.dispose()


@pytest.fixture
def database_handler(session_table):
    """Create a DatabaseSessionHandler."""
    from pysession.handlers.database import DatabaseSessionHandler
    return DatabaseSessionHandler(session_table)


@pytest.fixture(params=["memory", "file", "database"])
def any_handler(request):
    """Each built-in handler in turn."""
    return request.getfixturevalue(f"{request.param}_handler")


@pytest.fixture
def store(memory_handler):
    """Create an unstarted Store over memory."""
    from pysession.store.store import Store
    return Store("pysession", memory_handler)


@pytest.fixture
def memory_config():
    """Config for the memory driver with the gc lottery disabled."""
    from pysession.config import SessionConfig
    return SessionConfig(driver="memory", lottery=(0, 100), secret=TEST_SECRET)


@pytest.fixture
async def session_manager(memory_config):
    """Create a SessionManager over memory."""
    from pysession.manager.manager import SessionManager

    manager = SessionManager(memory_config)
    yield manager
    await manager.close()
