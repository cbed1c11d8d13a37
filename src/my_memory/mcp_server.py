"""my-memory MCP server module.

This module provides the FastMCP server instance and tool registration for
my-memory, a knowledge store of entities, observations and relations.

The server exposes tools for:
- Entities (create_entity, get_entities, update_entity, delete_entities)
- Observations (create_observation, get_observations, update_observation,
  delete_observations)
- Relations (create_relation, get_relations, update_relation, delete_relations)
- Digests (get_entity_summary, search_by_importance)

Architectural justification:
- Uses FastMCP for MCP protocol compliance
- All logging goes to stderr (never stdout) for stdio transport
- Tool classes never raise: failures come back as {"success": False, "error": ...}

CRITICAL: MCP servers using stdio transport must NEVER write to stdout
as it corrupts JSON-RPC messages. All logging goes to stderr.
"""

import logging
from typing import Any, Optional

from mcp.server.fastmcp import FastMCP

# MCP servers must never write to stdout (corrupts JSON-RPC)
logger = logging.getLogger(__name__)

# Initialize FastMCP server
mcp = FastMCP("my-memory")


# ==============================================================================
# Global Tool Instances (initialized in main/__main__.py)
# ==============================================================================

# These are set by the main entry point after component initialization
record_tools: Optional[Any] = None
query_tools: Optional[Any] = None

_NOT_INITIALIZED = {"success": False, "error": "Server not initialized"}


def set_tool_instances(records: Any, query: Any) -> None:
    """Set global tool instances after initialization.

    Called by __main__.py after components are initialized.

    Args:
        records: RecordTools instance
        query: QueryTools instance
    """
    global record_tools, query_tools
    record_tools = records
    query_tools = query


# ==============================================================================
# Entity Tools
# ==============================================================================


@mcp.tool()
async def create_entity(
    type: str,
    name: str,
    importance_score: Optional[int] = None,
) -> dict[str, Any]:
    """Create a new entity.

    Args:
        type: Entity type (Person, Place, Project...)
        name: Entity name
        importance_score: Importance from 0 to 100 (default: 50)

    Returns:
        Dictionary with:
        - success: Boolean indicating operation success
        - data: The created entity
        - error: Error message if operation failed
    """
    if record_tools is None:
        return dict(_NOT_INITIALIZED)

    return await record_tools.create_entity(
        type=type, name=name, importance_score=importance_score
    )


@mcp.tool()
async def get_entities(
    type: Optional[str] = None,
    min_importance: Optional[float] = None,
    include_details: bool = False,
) -> dict[str, Any]:
    """List entities, most important first.

    Args:
        type: Only entities of this type (optional)
        min_importance: Only entities with importance >= this value (optional)
        include_details: Attach each entity's top observations (default: False)

    Returns:
        Dictionary with:
        - success: Boolean indicating operation success
        - data: Dictionary with entities and total
        - error: Error message if operation failed
    """
    if record_tools is None:
        return dict(_NOT_INITIALIZED)

    return await record_tools.get_entities(
        type=type, min_importance=min_importance, include_details=include_details
    )


@mcp.tool()
async def update_entity(
    entity_id: str,
    name: Optional[str] = None,
    type: Optional[str] = None,
    importance_score: Optional[int] = None,
) -> dict[str, Any]:
    """Update an entity. Only the supplied fields change.

    Args:
        entity_id: ID of the entity to update
        name: New name (optional)
        type: New type (optional)
        importance_score: New importance from 0 to 100 (optional)

    Returns:
        Dictionary with:
        - success: Boolean indicating operation success
        - data: The entity after the update
        - error: Error message if operation failed
    """
    if record_tools is None:
        return dict(_NOT_INITIALIZED)

    return await record_tools.update_record(
        "entity",
        entity_id,
        {"name": name, "type": type, "importance_score": importance_score},
    )


@mcp.tool()
async def delete_entities(
    id: Optional[str] = None,
    min_importance: Optional[int] = None,
    max_importance: Optional[int] = None,
    cascade: bool = False,
) -> dict[str, Any]:
    """Delete entities by ID or importance range.

    At least one selection criterion is required.

    Args:
        id: ID of the entity to delete
        min_importance: Delete entities with importance >= this value
        max_importance: Delete entities with importance <= this value
        cascade: Also delete the entities' observations and every relation
                 touching them (default: False)

    Returns:
        Dictionary with:
        - success: Boolean indicating operation success
        - data: Dictionary with deleted counts per kind and total
        - error: Error message if operation failed
    """
    if record_tools is None:
        return dict(_NOT_INITIALIZED)

    return await record_tools.delete_records(
        "entity",
        id=id,
        min_importance=min_importance,
        max_importance=max_importance,
        cascade=cascade,
    )


# ==============================================================================
# Observation Tools
# ==============================================================================


@mcp.tool()
async def create_observation(
    entity_id: str,
    type: str,
    value: str,
    notes: Optional[str] = None,
    importance_score: Optional[int] = None,
    timestamp: Optional[int] = None,
) -> dict[str, Any]:
    """Add an observation to an entity.

    Args:
        entity_id: ID of the entity the observation is about
        type: Observation type
        value: Observation content
        notes: Additional notes (optional)
        importance_score: Importance from 0 to 100 (default: 50)
        timestamp: Unix epoch seconds (default: now)

    Returns:
        Dictionary with:
        - success: Boolean indicating operation success
        - data: The created observation
        - error: Error message if operation failed
    """
    if record_tools is None:
        return dict(_NOT_INITIALIZED)

    return await record_tools.create_observation(
        entity_id=entity_id,
        type=type,
        value=value,
        notes=notes,
        importance_score=importance_score,
        timestamp=timestamp,
    )


@mcp.tool()
async def get_observations(
    entity_id: Optional[str] = None,
    min_importance: Optional[float] = None,
    include_details: bool = False,
) -> dict[str, Any]:
    """List observations, most important then most recent first.

    Args:
        entity_id: Only observations of this entity (optional)
        min_importance: Only observations with importance >= this value (optional)
        include_details: Include the parent entity's name and type (default: False)

    Returns:
        Dictionary with:
        - success: Boolean indicating operation success
        - data: Dictionary with observations and total
        - error: Error message if operation failed
    """
    if record_tools is None:
        return dict(_NOT_INITIALIZED)

    return await record_tools.get_observations(
        entity_id=entity_id, min_importance=min_importance, include_details=include_details
    )


@mcp.tool()
async def update_observation(
    observation_id: str,
    type: Optional[str] = None,
    value: Optional[str] = None,
    notes: Optional[str] = None,
    importance_score: Optional[int] = None,
) -> dict[str, Any]:
    """Update an observation. Only the supplied fields change.

    Args:
        observation_id: ID of the observation to update
        type: New type (optional)
        value: New content (optional)
        notes: New notes (optional)
        importance_score: New importance from 0 to 100 (optional)

    Returns:
        Dictionary with:
        - success: Boolean indicating operation success
        - data: The observation after the update
        - error: Error message if operation failed
    """
    if record_tools is None:
        return dict(_NOT_INITIALIZED)

    return await record_tools.update_record(
        "observation",
        observation_id,
        {"type": type, "value": value, "notes": notes, "importance_score": importance_score},
    )


@mcp.tool()
async def delete_observations(
    id: Optional[str] = None,
    entity_id: Optional[str] = None,
    min_importance: Optional[int] = None,
    max_importance: Optional[int] = None,
) -> dict[str, Any]:
    """Delete observations by ID, parent entity or importance range.

    At least one selection criterion is required.

    Args:
        id: ID of the observation to delete
        entity_id: Delete all observations of this entity
        min_importance: Delete observations with importance >= this value
        max_importance: Delete observations with importance <= this value

    Returns:
        Dictionary with:
        - success: Boolean indicating operation success
        - data: Dictionary with deleted counts per kind and total
        - error: Error message if operation failed
    """
    if record_tools is None:
        return dict(_NOT_INITIALIZED)

    return await record_tools.delete_records(
        "observation",
        id=id,
        entity_id=entity_id,
        min_importance=min_importance,
        max_importance=max_importance,
    )


# ==============================================================================
# Relation Tools
# ==============================================================================


@mcp.tool()
async def create_relation(
    source_entity_id: str,
    target_entity_id: str,
    type: str,
    importance_score: Optional[int] = None,
    properties: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    """Create a directed relation between two entities.

    Args:
        source_entity_id: ID of the source entity
        target_entity_id: ID of the target entity
        type: Relation type
        importance_score: Importance from 0 to 100 (default: 50)
        properties: Arbitrary relation properties (optional)

    Returns:
        Dictionary with:
        - success: Boolean indicating operation success
        - data: The created relation
        - error: Error message if operation failed
    """
    if record_tools is None:
        return dict(_NOT_INITIALIZED)

    return await record_tools.create_relation(
        source_entity_id=source_entity_id,
        target_entity_id=target_entity_id,
        type=type,
        importance_score=importance_score,
        properties=properties,
    )


@mcp.tool()
async def get_relations(
    source_entity_id: Optional[str] = None,
    min_importance: Optional[float] = None,
    include_details: bool = False,
) -> dict[str, Any]:
    """List relations, most important first.

    Args:
        source_entity_id: Only relations from this entity (optional)
        min_importance: Only relations with importance >= this value (optional)
        include_details: Include both endpoints' names and types (default: False)

    Returns:
        Dictionary with:
        - success: Boolean indicating operation success
        - data: Dictionary with relations and total
        - error: Error message if operation failed
    """
    if record_tools is None:
        return dict(_NOT_INITIALIZED)

    return await record_tools.get_relations(
        source_entity_id=source_entity_id,
        min_importance=min_importance,
        include_details=include_details,
    )


@mcp.tool()
async def update_relation(
    relation_id: str,
    type: Optional[str] = None,
    importance_score: Optional[int] = None,
    properties: Optional[dict[str, Any]] = None,
) -> dict[str, Any]:
    """Update a relation. Only the supplied fields change.

    Args:
        relation_id: ID of the relation to update
        type: New type (optional)
        importance_score: New importance from 0 to 100 (optional)
        properties: Replacement properties map (optional)

    Returns:
        Dictionary with:
        - success: Boolean indicating operation success
        - data: The relation after the update
        - error: Error message if operation failed
    """
    if record_tools is None:
        return dict(_NOT_INITIALIZED)

    return await record_tools.update_record(
        "relation",
        relation_id,
        {"type": type, "importance_score": importance_score, "properties": properties},
    )


@mcp.tool()
async def delete_relations(
    id: Optional[str] = None,
    entity_id: Optional[str] = None,
    min_importance: Optional[int] = None,
    max_importance: Optional[int] = None,
    cascade: bool = False,
) -> dict[str, Any]:
    """Delete relations by ID, connected entity or importance range.

    At least one selection criterion is required.

    Args:
        id: ID of the relation to delete
        entity_id: Delete every relation where this entity is source or target
        min_importance: Delete relations with importance >= this value
        max_importance: Delete relations with importance <= this value
        cascade: With entity_id, also delete the entities at the other end of
                 the deleted relations (never entity_id itself)

    Returns:
        Dictionary with:
        - success: Boolean indicating operation success
        - data: Dictionary with deleted counts per kind and total
        - error: Error message if operation failed
    """
    if record_tools is None:
        return dict(_NOT_INITIALIZED)

    return await record_tools.delete_records(
        "relation",
        id=id,
        entity_id=entity_id,
        min_importance=min_importance,
        max_importance=max_importance,
        cascade=cascade,
    )


# ==============================================================================
# Summary and Search Tools
# ==============================================================================


@mcp.tool()
async def get_entity_summary(entity_id: str) -> dict[str, Any]:
    """Summarize an entity and its most important observations.

    Args:
        entity_id: ID of the entity to summarize

    Returns:
        Dictionary with:
        - success: Boolean indicating operation success
        - data: Dictionary with entity_id and summary text
        - error: Error message if operation failed
    """
    if query_tools is None:
        return dict(_NOT_INITIALIZED)

    return await query_tools.get_entity_summary(entity_id)


@mcp.tool()
async def search_by_importance(
    min_score: float,
    kind: Optional[str] = None,
    include_details: bool = False,
) -> dict[str, Any]:
    """Find records with importance at or above a threshold.

    Args:
        min_score: Minimum importance score (inclusive)
        kind: entity, observation or relation (default: all three)
        include_details: Return detailed projections (default: False)

    Returns:
        Dictionary with:
        - success: Boolean indicating operation success
        - data: Dictionary keyed by entities/observations/relations
        - error: Error message if operation failed
    """
    if query_tools is None:
        return dict(_NOT_INITIALIZED)

    return await query_tools.search_by_importance(
        min_score, kind=kind, include_details=include_details
    )
