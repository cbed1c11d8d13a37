"""MCP tools module for my-memory.

This module provides the tool implementations for the my-memory MCP server:

- record_tools: Entity, observation and relation CRUD
- query_tools: Entity summaries and importance search

Each tool module provides a class that encapsulates tool implementations
with dependencies injected via constructor.

Example:
    >>> from my_memory.tools import RecordTools, QueryTools
    >>> records = RecordTools(engine=engine)
    >>> result = await records.create_entity(type="Person", name="Ada")
"""

from my_memory.tools.query_tools import QueryTools
from my_memory.tools.record_tools import RecordTools

__all__ = [
    "RecordTools",
    "QueryTools",
]
