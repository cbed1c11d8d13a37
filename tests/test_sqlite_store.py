"""Tests for the SQLite storage layer.

This module tests SQLiteStore functionality including:
- Schema creation and reopening an existing database
- The execute / fetch_one / fetch_many statement interface
- Error mapping (SQLiteStoreError, StoreContentionError)
- Advisory foreign keys (dangling references are accepted)
"""

import sqlite3
from pathlib import Path

import pytest

from my_memory.storage.sqlite_store import (
    SQLiteStore,
    SQLiteStoreError,
    StoreContentionError,
)

# ============================================================================
# Schema
# ============================================================================


class TestSchema:
    """Test database initialization."""

    def test_creates_tables(self, store: SQLiteStore) -> None:
        """Test that all three record tables exist after init."""
        rows = store.fetch_many(
            "SELECT name FROM sqlite_master WHERE type = 'table' ORDER BY name"
        )
        names = {row["name"] for row in rows}

        assert {"entities", "observations", "relations"} <= names

    def test_creates_parent_directory(self, tmp_path: Path) -> None:
        """Test that a missing parent directory is created."""
        db_path = tmp_path / "nested" / "dir" / "memory.sqlite"

        s = SQLiteStore(db_path)
        s.close()

        assert db_path.exists()

    def test_reopen_keeps_data(self, tmp_path: Path) -> None:
        """Test that rows survive closing and reopening the database."""
        db_path = tmp_path / "memory.sqlite"

        s = SQLiteStore(db_path)
        s.execute(
            "INSERT INTO entities (id, type, name) VALUES (?, ?, ?)",
            ("entity_1", "Person", "Ada"),
        )
        s.close()

        reopened = SQLiteStore(db_path)
        row = reopened.fetch_one("SELECT name FROM entities WHERE id = ?", ("entity_1",))
        reopened.close()

        assert row["name"] == "Ada"

    def test_uses_wal_journal(self, tmp_path: Path) -> None:
        """Test that file databases run in WAL mode."""
        s = SQLiteStore(tmp_path / "memory.sqlite")
        row = s.fetch_one("PRAGMA journal_mode")
        s.close()

        assert row[0].lower() == "wal"

    def test_unopenable_path_raises(self, tmp_path: Path) -> None:
        """Test that a path that cannot be opened raises SQLiteStoreError."""
        # A directory cannot be opened as a database file
        with pytest.raises(SQLiteStoreError):
            SQLiteStore(tmp_path)

    def test_column_defaults(self, store: SQLiteStore) -> None:
        """Test schema defaults for importance, notes and properties."""
        store.execute(
            "INSERT INTO entities (id, type, name) VALUES (?, ?, ?)",
            ("entity_1", "Person", "Ada"),
        )
        store.execute(
            "INSERT INTO observations (id, entity_id, type, value) VALUES (?, ?, ?, ?)",
            ("obs_1", "entity_1", "fact", "likes tea"),
        )
        store.execute(
            "INSERT INTO relations (id, source_entity_id, target_entity_id, type) "
            "VALUES (?, ?, ?, ?)",
            ("rel_1", "entity_1", "entity_2", "knows"),
        )

        entity = store.fetch_one("SELECT * FROM entities")
        observation = store.fetch_one("SELECT * FROM observations")
        relation = store.fetch_one("SELECT * FROM relations")

        assert entity["importance_score"] == 50
        assert entity["created_at"]
        assert observation["notes"] == ""
        assert relation["properties"] == "{}"


# ============================================================================
# Statement Interface
# ============================================================================


class TestStatements:
    """Test execute, fetch_one and fetch_many."""

    def test_execute_reports_rowcount(self, store: SQLiteStore) -> None:
        """Test that execute returns the number of affected rows."""
        for i in range(3):
            store.execute(
                "INSERT INTO entities (id, type, name) VALUES (?, ?, ?)",
                (f"entity_{i}", "Person", f"P{i}"),
            )

        result = store.execute("DELETE FROM entities WHERE type = ?", ("Person",))

        assert result.rowcount == 3

    def test_fetch_one_returns_none_when_empty(self, store: SQLiteStore) -> None:
        """Test that fetch_one returns None when nothing matches."""
        assert store.fetch_one("SELECT * FROM entities WHERE id = ?", ("nope",)) is None

    def test_fetch_many_returns_all_rows(self, store: SQLiteStore) -> None:
        """Test that fetch_many returns every matching row."""
        for i in range(4):
            store.execute(
                "INSERT INTO entities (id, type, name) VALUES (?, ?, ?)",
                (f"entity_{i}", "Place", f"P{i}"),
            )

        rows = store.fetch_many("SELECT id FROM entities ORDER BY id")

        assert [row["id"] for row in rows] == [f"entity_{i}" for i in range(4)]

    def test_invalid_statement_raises_store_error(self, store: SQLiteStore) -> None:
        """Test that SQL errors surface as SQLiteStoreError."""
        with pytest.raises(SQLiteStoreError):
            store.execute("INSERT INTO no_such_table VALUES (1)")

        with pytest.raises(SQLiteStoreError):
            store.fetch_many("SELECT * FROM no_such_table")

    def test_duplicate_id_raises_store_error(self, store: SQLiteStore) -> None:
        """Test that a primary key conflict raises SQLiteStoreError."""
        statement = "INSERT INTO entities (id, type, name) VALUES (?, ?, ?)"
        store.execute(statement, ("entity_1", "Person", "Ada"))

        with pytest.raises(SQLiteStoreError):
            store.execute(statement, ("entity_1", "Person", "Grace"))

    def test_foreign_keys_not_enforced(self, store: SQLiteStore) -> None:
        """Test that observations may reference an entity that does not exist."""
        store.execute(
            "INSERT INTO observations (id, entity_id, type, value) VALUES (?, ?, ?, ?)",
            ("obs_1", "entity_missing", "fact", "orphan"),
        )

        row = store.fetch_one("SELECT entity_id FROM observations WHERE id = ?", ("obs_1",))
        assert row["entity_id"] == "entity_missing"


# ============================================================================
# Contention
# ============================================================================


class TestContention:
    """Test behaviour when another connection holds the write lock."""

    def test_locked_write_raises_contention_error(self, tmp_path: Path) -> None:
        """Test that a write blocked past the busy timeout raises StoreContentionError."""
        db_path = tmp_path / "memory.sqlite"
        s = SQLiteStore(db_path, busy_timeout_ms=50)

        blocker = sqlite3.connect(str(db_path), isolation_level=None)
        blocker.execute("BEGIN EXCLUSIVE")
        try:
            with pytest.raises(StoreContentionError):
                s.execute(
                    "INSERT INTO entities (id, type, name) VALUES (?, ?, ?)",
                    ("entity_1", "Person", "Ada"),
                )
        finally:
            blocker.execute("ROLLBACK")
            blocker.close()

        # The store is usable again once the lock is released
        result = s.execute(
            "INSERT INTO entities (id, type, name) VALUES (?, ?, ?)",
            ("entity_1", "Person", "Ada"),
        )
        s.close()
        assert result.rowcount == 1

    def test_contention_error_is_store_error(self) -> None:
        """Test that callers catching SQLiteStoreError also catch contention."""
        assert issubclass(StoreContentionError, SQLiteStoreError)
