"""Storage layer for my-memory.

This module provides the single embedded SQLite database behind the
knowledge store:
- Idempotent schema creation for entities, observations and relations
- WAL journaling for concurrent readers and a single writer
- A bounded lock wait that surfaces as StoreContentionError

Example:
    >>> from my_memory.storage import SQLiteStore
    >>> store = SQLiteStore(Path(":memory:"))
    >>> row = store.fetch_one("SELECT COUNT(*) AS n FROM entities")
"""

from my_memory.storage.sqlite_store import (
    ExecuteResult,
    SQLiteStore,
    SQLiteStoreError,
    StoreContentionError,
)

__all__ = [
    "ExecuteResult",
    "SQLiteStore",
    "SQLiteStoreError",
    "StoreContentionError",
]
