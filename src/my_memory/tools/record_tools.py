"""Record tools for the my-memory MCP server.

This module provides MCP tools for record CRUD:
- create_entity / get_entities
- create_observation / get_observations
- create_relation / get_relations
- update_record: partial update of one record of any kind
- delete_records: delete by id, entity scope or importance range

Records in responses use camelCase keys (entityId, importanceScore...).
"""

import logging
from typing import Any, Optional

from my_memory.engine import KnowledgeEngine, coerce_kind
from my_memory.tools.responses import failure_response, success_response
from my_memory.types import DeleteSelector

# MCP servers must never write to stdout (corrupts JSON-RPC)
logger = logging.getLogger(__name__)


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    """MCP clients often send "" for an omitted optional string."""
    return value if value else None


class RecordTools:
    """Tool implementations for entity, observation and relation CRUD.

    Architectural justification:
    - Thin wrapper around KnowledgeEngine for MCP compatibility
    - Every engine error becomes a {"success": False, "error": ...} response
    - Records are serialized with their wire (camelCase) field names

    Args:
        engine: KnowledgeEngine for all record operations

    Example:
        >>> tools = RecordTools(engine)
        >>> result = await tools.create_entity(type="Person", name="Ada")
        >>> print(result["data"]["id"])
    """

    def __init__(self, engine: KnowledgeEngine) -> None:
        """Initialize RecordTools with engine dependency.

        Args:
            engine: KnowledgeEngine for all record operations
        """
        self._engine = engine

    # =========================================================================
    # Entities
    # =========================================================================

    async def create_entity(
        self,
        type: str,
        name: str,
        importance_score: Optional[int] = None,
    ) -> dict[str, Any]:
        """Create a new entity.

        Returns:
            Dictionary with:
            - success: Boolean indicating operation success
            - data: The created entity
            - error: Error message if operation failed
        """
        try:
            entity = self._engine.create_entity(
                type=type, name=name, importance_score=importance_score
            )
            return success_response(entity.to_wire())
        except Exception as e:
            return failure_response("create_entity", e)

    async def get_entities(
        self,
        type: Optional[str] = None,
        min_importance: Optional[float] = None,
        include_details: bool = False,
    ) -> dict[str, Any]:
        """List entities, most important first.

        Returns:
            Dictionary with:
            - success: Boolean indicating operation success
            - data: Dictionary with entities and total
            - error: Error message if operation failed
        """
        try:
            entities = self._engine.get_entities(
                type=_blank_to_none(type),
                min_importance=min_importance,
                include_details=include_details,
            )
            return success_response(
                {"entities": [e.to_wire() for e in entities], "total": len(entities)}
            )
        except Exception as e:
            return failure_response("get_entities", e)

    # =========================================================================
    # Observations
    # =========================================================================

    async def create_observation(
        self,
        entity_id: str,
        type: str,
        value: str,
        notes: Optional[str] = None,
        importance_score: Optional[int] = None,
        timestamp: Optional[int] = None,
    ) -> dict[str, Any]:
        """Attach a new observation to an entity.

        Returns:
            Dictionary with:
            - success: Boolean indicating operation success
            - data: The created observation
            - error: Error message if operation failed
        """
        try:
            observation = self._engine.create_observation(
                entity_id=entity_id,
                type=type,
                value=value,
                notes=notes,
                importance_score=importance_score,
                timestamp=timestamp,
            )
            return success_response(observation.to_wire())
        except Exception as e:
            return failure_response("create_observation", e)

    async def get_observations(
        self,
        entity_id: Optional[str] = None,
        min_importance: Optional[float] = None,
        include_details: bool = False,
    ) -> dict[str, Any]:
        """List observations, most important then most recent first.

        Returns:
            Dictionary with:
            - success: Boolean indicating operation success
            - data: Dictionary with observations and total
            - error: Error message if operation failed
        """
        try:
            observations = self._engine.get_observations(
                entity_id=_blank_to_none(entity_id),
                min_importance=min_importance,
                include_details=include_details,
            )
            return success_response(
                {
                    "observations": [o.to_wire() for o in observations],
                    "total": len(observations),
                }
            )
        except Exception as e:
            return failure_response("get_observations", e)

    # =========================================================================
    # Relations
    # =========================================================================

    async def create_relation(
        self,
        source_entity_id: str,
        target_entity_id: str,
        type: str,
        importance_score: Optional[int] = None,
        properties: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """Create a directed relation between two entities.

        Returns:
            Dictionary with:
            - success: Boolean indicating operation success
            - data: The created relation
            - error: Error message if operation failed
        """
        try:
            relation = self._engine.create_relation(
                source_entity_id=source_entity_id,
                target_entity_id=target_entity_id,
                type=type,
                importance_score=importance_score,
                properties=properties,
            )
            return success_response(relation.to_wire())
        except Exception as e:
            return failure_response("create_relation", e)

    async def get_relations(
        self,
        source_entity_id: Optional[str] = None,
        min_importance: Optional[float] = None,
        include_details: bool = False,
    ) -> dict[str, Any]:
        """List relations, most important first.

        Returns:
            Dictionary with:
            - success: Boolean indicating operation success
            - data: Dictionary with relations and total
            - error: Error message if operation failed
        """
        try:
            relations = self._engine.get_relations(
                source_entity_id=_blank_to_none(source_entity_id),
                min_importance=min_importance,
                include_details=include_details,
            )
            return success_response(
                {"relations": [r.to_wire() for r in relations], "total": len(relations)}
            )
        except Exception as e:
            return failure_response("get_relations", e)

    # =========================================================================
    # Update / Delete
    # =========================================================================

    async def update_record(
        self,
        kind: str,
        record_id: str,
        fields: dict[str, Any],
    ) -> dict[str, Any]:
        """Partially update one record.

        Args:
            kind: entity, observation or relation
            record_id: Id of the record to update
            fields: Fields to change; omitted, None or blank (name, type,
                value) fields keep their value

        Returns:
            Dictionary with:
            - success: Boolean indicating operation success
            - data: The record after the update
            - error: Error message if operation failed
        """
        fields = dict(fields)
        for name in ("name", "type", "value"):
            if name in fields:
                fields[name] = _blank_to_none(fields[name])

        try:
            record = self._engine.update(kind, record_id, fields)
            return success_response(record.to_wire())
        except Exception as e:
            return failure_response(f"update {kind}", e)

    async def delete_records(
        self,
        kind: str,
        id: Optional[str] = None,
        entity_id: Optional[str] = None,
        min_importance: Optional[int] = None,
        max_importance: Optional[int] = None,
        cascade: bool = False,
    ) -> dict[str, Any]:
        """Delete records selected by id, entity scope or importance range.

        Args:
            kind: entity, observation or relation
            id: Exact record id
            entity_id: Entity scope (see KnowledgeEngine.delete)
            min_importance: Inclusive lower importance bound
            max_importance: Inclusive upper importance bound
            cascade: Also delete dependent records

        Returns:
            Dictionary with:
            - success: Boolean indicating operation success
            - data: Dictionary with per-kind deleted counts and total
            - error: Error message if operation failed
        """
        try:
            result = self._engine.delete(
                coerce_kind(kind),
                DeleteSelector(
                    id=_blank_to_none(id),
                    entity_id=_blank_to_none(entity_id),
                    min_importance=min_importance,
                    max_importance=max_importance,
                    cascade=cascade,
                ),
            )
            return success_response(result.to_wire())
        except Exception as e:
            return failure_response(f"delete {kind}", e)
