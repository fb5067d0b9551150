"""Shared pytest fixtures for all tests."""

import sqlite3
import pytest
from pathlib import Path

from config import Config, get_migrations_dir
from db.manager import apply_pending_migrations
from services.base import Services
from services.store import CategoryStore
from services.mutations import MutationController
from tests.helpers import FakeRemote, make_category


@pytest.fixture
def test_db():
    """Create an in-memory SQLite database for testing.

    The connection may be used from worker threads, since the async backend
    runs sqlite calls off the event loop.

    Yields:
        sqlite3.Connection: Connection to in-memory database.
    """
    conn = sqlite3.connect(":memory:", check_same_thread=False)
    conn.execute("PRAGMA foreign_keys = ON")
    yield conn
    conn.close()


@pytest.fixture
def test_config(tmp_path):
    """Create a test configuration pointing to a temporary directory."""
    return Config(
        base_dir=tmp_path / "curio",
        db_data_dir=tmp_path / "curio" / "db",
        db_filename="test.db",
        log_level="DEBUG",
        log_dir=tmp_path / "curio" / "logs",
        system_categories=["Favorites"],
    )


@pytest.fixture
def db_manager_with_schema(test_db):
    """Create a DatabaseManager with schema already set up.

    Args:
        test_db: In-memory database connection fixture.

    Returns:
        A database manager backed by the in-memory connection.
    """
    apply_pending_migrations(test_db, get_migrations_dir())

    class TestDatabaseManager:
        """Test database manager that uses in-memory connection."""

        def __init__(self, conn):
            self.conn = conn

        def connect(self):
            return _TestConnectionContext(self.conn)

        def get_db_path(self):
            return Path(":memory:")

        def get_migrations_dir(self):
            return get_migrations_dir()

    class _TestConnectionContext:
        """Context manager for test database connections."""

        def __init__(self, conn):
            self.conn = conn

        def __enter__(self):
            return self.conn

        def __exit__(self, exc_type, exc_val, exc_tb):
            # Don't close the connection - let the fixture handle it
            pass

    return TestDatabaseManager(test_db)


@pytest.fixture
def services(test_config, db_manager_with_schema):
    """Create a Services container with test database."""
    return Services(test_config, db_manager=db_manager_with_schema)


@pytest.fixture
def sample_categories():
    """Three categories in service order, two sharing a game count."""
    return [
        make_category("Zelda", game_count=5, created_at="2024-01-03T00:00:00.000000Z"),
        make_category("Apex", game_count=5, created_at="2024-01-01T00:00:00.000000Z"),
        make_category("Bingo", game_count=2, created_at="2024-01-02T00:00:00.000000Z"),
    ]


@pytest.fixture
def fake_remote(sample_categories):
    return FakeRemote(sample_categories)


@pytest.fixture
def store(fake_remote):
    return CategoryStore(fake_remote)


@pytest.fixture
def controller(fake_remote, store):
    return MutationController(fake_remote, store)
