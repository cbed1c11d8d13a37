"""Query tools for the my-memory MCP server.

This module provides MCP tools for read-side digests:
- get_entity_summary: Text summary of an entity and its top observations
- search_by_importance: Records at or above an importance threshold
"""

import logging
from typing import Any, Optional

from my_memory.engine import SummaryService, coerce_kind
from my_memory.tools.responses import failure_response, success_response
from my_memory.types import ImportanceSearchResult

# MCP servers must never write to stdout (corrupts JSON-RPC)
logger = logging.getLogger(__name__)

# Response key per kind for single-kind searches
_RESULT_KEYS = {
    "entity": "entities",
    "observation": "observations",
    "relation": "relations",
}


class QueryTools:
    """Tool implementations for summaries and importance search.

    Args:
        summary_service: SummaryService for digests and search

    Example:
        >>> tools = QueryTools(SummaryService(engine))
        >>> result = await tools.get_entity_summary(entity_id)
        >>> print(result["data"]["summary"])
    """

    def __init__(self, summary_service: SummaryService) -> None:
        """Initialize QueryTools with summary dependency.

        Args:
            summary_service: SummaryService for digests and search
        """
        self._summary = summary_service

    async def get_entity_summary(self, entity_id: str) -> dict[str, Any]:
        """Summarize an entity.

        A missing entity is not an error: the summary text says so.

        Returns:
            Dictionary with:
            - success: Boolean indicating operation success
            - data: Dictionary with entity_id and summary text
            - error: Error message if operation failed
        """
        try:
            summary = self._summary.summarize(entity_id)
            return success_response({"entity_id": entity_id, "summary": summary})
        except Exception as e:
            return failure_response("get_entity_summary", e)

    async def search_by_importance(
        self,
        min_score: float,
        kind: Optional[str] = None,
        include_details: bool = False,
    ) -> dict[str, Any]:
        """Find records with importance at or above min_score.

        Returns:
            Dictionary with:
            - success: Boolean indicating operation success
            - data: Dictionary keyed by entities/observations/relations
              (only the requested kind when kind is given), plus min_score
            - error: Error message if operation failed
        """
        try:
            result = self._summary.search_by_importance(
                min_score, kind=kind or None, include_details=include_details
            )
            if isinstance(result, ImportanceSearchResult):
                data: dict[str, Any] = result.to_wire()
            else:
                key = _RESULT_KEYS[coerce_kind(kind).value]
                data = {key: [record.to_wire() for record in result]}
            data["min_score"] = min_score
            return success_response(data)
        except Exception as e:
            return failure_response("search_by_importance", e)
