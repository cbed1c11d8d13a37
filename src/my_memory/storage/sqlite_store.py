"""SQLite storage layer for the my-memory knowledge store.

This module owns the on-disk database and exposes a minimal statement
interface used by the query engine:
- execute: run a write statement and report affected rows
- fetch_one: run a query and return the first row (or None)
- fetch_many: run a query and return all rows

Tables:
- entities: named, typed things being tracked
- observations: facts attached to one entity (entity_id)
- relations: directed edges between two entities (source/target)

Foreign keys are declared for documentation only. Referential integrity is
not enforced by the database: dangling references are allowed and cascading
deletes are issued explicitly by the engine.

Example:
    >>> store = SQLiteStore(Path("data/my-memory.sqlite"))
    >>> store.execute("DELETE FROM observations WHERE id = ?", ("obs_1",)).rowcount
    0
"""

import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence

from my_memory.constants import DEFAULT_BUSY_TIMEOUT_MS, DEFAULT_DATABASE_PATH

# MCP servers must never write to stdout (corrupts JSON-RPC)
logger = logging.getLogger(__name__)

Params = Sequence[Any]


@dataclass
class ExecuteResult:
    """Outcome of a write statement.

    Attributes:
        rowcount: Number of rows inserted, updated or deleted
        lastrowid: Rowid of the last inserted row (if any)
    """

    rowcount: int
    lastrowid: Optional[int] = None


class SQLiteStoreError(Exception):
    """Custom exception for SQLite storage errors."""

    pass


class StoreContentionError(SQLiteStoreError):
    """The database lock was not acquired within the busy timeout."""

    pass


def _is_contention(error: sqlite3.OperationalError) -> bool:
    message = str(error).lower()
    return "database is locked" in message or "database is busy" in message


class SQLiteStore:
    """SQLite storage for entities, observations and relations.

    One instance is created at process startup and shared by every engine
    operation. The connection runs in WAL mode so readers never block the
    writer, and writers wait up to ``busy_timeout_ms`` for the lock before
    failing with StoreContentionError.

    Args:
        db_path: Path to SQLite database file.
                 Defaults to data/my-memory.sqlite
        busy_timeout_ms: Lock wait before a write fails (default: 5000)

    Attributes:
        db_path: Path to database file
        busy_timeout_ms: Lock wait in milliseconds
        _conn: SQLite connection
    """

    def __init__(
        self,
        db_path: Optional[Path] = None,
        busy_timeout_ms: int = DEFAULT_BUSY_TIMEOUT_MS,
    ):
        """Initialize SQLite storage.

        Args:
            db_path: Path to database file. Defaults to data/my-memory.sqlite
            busy_timeout_ms: Lock wait in milliseconds

        Raises:
            SQLiteStoreError: If database initialization fails
        """
        self.db_path = Path(db_path) if db_path is not None else Path(DEFAULT_DATABASE_PATH)
        self.busy_timeout_ms = busy_timeout_ms
        in_memory = str(self.db_path) == ":memory:"

        try:
            if not in_memory:
                self.db_path.parent.mkdir(parents=True, exist_ok=True)

            self._conn = sqlite3.connect(
                str(self.db_path),
                timeout=busy_timeout_ms / 1000,
                check_same_thread=False,
            )
            self._conn.row_factory = sqlite3.Row
            # Foreign keys are advisory: declared in the schema, never enforced
            self._conn.execute("PRAGMA foreign_keys = OFF")
            # WAL mode lets readers proceed while a single writer holds the lock
            self._conn.execute("PRAGMA journal_mode = WAL")
            self._conn.execute(f"PRAGMA busy_timeout = {int(busy_timeout_ms)}")

            self._init_schema()

        except Exception as e:
            raise SQLiteStoreError(f"Failed to initialize SQLite storage: {e}") from e

        logger.info(f"SQLiteStore opened at {self.db_path}")

    def _init_schema(self) -> None:
        """Initialize database schema."""
        cursor = self._conn.cursor()

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS entities (
                id TEXT PRIMARY KEY,
                type TEXT NOT NULL,
                name TEXT NOT NULL,
                importance_score INTEGER NOT NULL DEFAULT 50,
                created_at TEXT NOT NULL DEFAULT CURRENT_TIMESTAMP
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS observations (
                id TEXT PRIMARY KEY,
                entity_id TEXT NOT NULL,
                type TEXT NOT NULL,
                value TEXT NOT NULL,
                notes TEXT NOT NULL DEFAULT '',
                importance_score INTEGER NOT NULL DEFAULT 50,
                timestamp INTEGER NOT NULL DEFAULT 0,
                FOREIGN KEY (entity_id) REFERENCES entities (id)
            )
        """
        )

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS relations (
                id TEXT PRIMARY KEY,
                source_entity_id TEXT NOT NULL,
                target_entity_id TEXT NOT NULL,
                type TEXT NOT NULL,
                importance_score INTEGER NOT NULL DEFAULT 50,
                properties TEXT NOT NULL DEFAULT '{}',
                FOREIGN KEY (source_entity_id) REFERENCES entities (id),
                FOREIGN KEY (target_entity_id) REFERENCES entities (id)
            )
        """
        )

        # Indexes for the filter and ordering columns
        cursor.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_entities_type
            ON entities(type)
        """
        )
        cursor.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_entities_importance
            ON entities(importance_score DESC)
        """
        )
        cursor.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_observations_entity
            ON observations(entity_id)
        """
        )
        cursor.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_observations_importance
            ON observations(importance_score DESC, timestamp DESC)
        """
        )
        cursor.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_relations_source
            ON relations(source_entity_id)
        """
        )
        cursor.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_relations_target
            ON relations(target_entity_id)
        """
        )

        self._conn.commit()

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()

    # =========================================================================
    # Statement Interface
    # =========================================================================

    def execute(self, statement: str, params: Params = ()) -> ExecuteResult:
        """Run a write statement and commit it.

        Args:
            statement: SQL statement with ? placeholders
            params: Values bound to the placeholders

        Returns:
            ExecuteResult with the affected row count

        Raises:
            StoreContentionError: If the write lock was not acquired in time
            SQLiteStoreError: If the statement fails
        """
        try:
            cursor = self._conn.execute(statement, tuple(params))
            self._conn.commit()
            return ExecuteResult(rowcount=cursor.rowcount, lastrowid=cursor.lastrowid)

        except sqlite3.OperationalError as e:
            self._conn.rollback()
            if _is_contention(e):
                logger.warning(f"Write lock not acquired within {self.busy_timeout_ms}ms")
                raise StoreContentionError(
                    f"Database is busy: write lock not acquired within {self.busy_timeout_ms}ms"
                ) from e
            raise SQLiteStoreError(f"Failed to execute statement: {e}") from e

        except sqlite3.Error as e:
            self._conn.rollback()
            raise SQLiteStoreError(f"Failed to execute statement: {e}") from e

    def fetch_one(self, statement: str, params: Params = ()) -> Optional[sqlite3.Row]:
        """Run a query and return its first row.

        Args:
            statement: SQL query with ? placeholders
            params: Values bound to the placeholders

        Returns:
            The first row, or None if the query matched nothing

        Raises:
            SQLiteStoreError: If the query fails
        """
        try:
            return self._conn.execute(statement, tuple(params)).fetchone()
        except sqlite3.OperationalError as e:
            if _is_contention(e):
                raise StoreContentionError(f"Database is busy: {e}") from e
            raise SQLiteStoreError(f"Failed to fetch row: {e}") from e
        except sqlite3.Error as e:
            raise SQLiteStoreError(f"Failed to fetch row: {e}") from e

    def fetch_many(self, statement: str, params: Params = ()) -> list[sqlite3.Row]:
        """Run a query and return all rows.

        Args:
            statement: SQL query with ? placeholders
            params: Values bound to the placeholders

        Returns:
            List of rows (empty if nothing matched)

        Raises:
            SQLiteStoreError: If the query fails
        """
        try:
            return self._conn.execute(statement, tuple(params)).fetchall()
        except sqlite3.OperationalError as e:
            if _is_contention(e):
                raise StoreContentionError(f"Database is busy: {e}") from e
            raise SQLiteStoreError(f"Failed to fetch rows: {e}") from e
        except sqlite3.Error as e:
            raise SQLiteStoreError(f"Failed to fetch rows: {e}") from e
