"""Record types for the my-memory knowledge store.

This module defines the three record kinds and their projections:
- Entity / EntityWithDetails: a tracked thing, optionally with its top
  observations
- Observation / ObservationWithDetails: a fact about one entity, optionally
  with the parent's name and type
- Relation / RelationWithDetails: a directed edge, optionally with both
  endpoints' names and types

Python attributes are snake_case. Records serialize with camelCase keys
(``entityId``, ``importanceScore``...) via ``to_wire()``, which is the shape
returned by the MCP tools.
"""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from my_memory.constants import DEFAULT_IMPORTANCE


class RecordKind(str, Enum):
    """The three kinds of records held by the store."""

    ENTITY = "entity"
    OBSERVATION = "observation"
    RELATION = "relation"


class _Record(BaseModel):
    """Shared configuration for stored records."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_wire(self) -> dict[str, Any]:
        """Serialize with camelCase keys for tool responses."""
        return self.model_dump(by_alias=True)


# =============================================================================
# Entities
# =============================================================================


class Entity(_Record):
    """A named, typed thing being tracked (person, place, project...).

    Attributes:
        id: Unique identifier (entity_<epoch-ms>_<hex>)
        type: Free-form category
        name: Display name
        importance_score: 0-100, higher sorts first
        created_at: Insert time assigned by the store (UTC, immutable)
    """

    id: str
    type: str
    name: str
    importance_score: int = DEFAULT_IMPORTANCE
    created_at: Optional[str] = None


class Observation(_Record):
    """A timestamped, importance-scored fact attached to one entity.

    Attributes:
        id: Unique identifier (obs_<epoch-ms>_<hex>)
        entity_id: Parent entity (soft reference, may dangle)
        type: Free-form category
        value: The observed fact
        notes: Optional free text (empty string when absent)
        importance_score: 0-100, higher sorts first
        timestamp: Unix epoch seconds
    """

    id: str
    entity_id: str
    type: str
    value: str
    notes: str = ""
    importance_score: int = DEFAULT_IMPORTANCE
    timestamp: int = 0


class Relation(_Record):
    """A directed, typed edge between two entities.

    Attributes:
        id: Unique identifier (rel_<epoch-ms>_<hex>)
        source_entity_id: Edge origin (soft reference)
        target_entity_id: Edge destination (soft reference)
        type: Free-form relation label
        importance_score: 0-100, higher sorts first
        properties: Arbitrary JSON map attached to the edge
    """

    id: str
    source_entity_id: str
    target_entity_id: str
    type: str
    importance_score: int = DEFAULT_IMPORTANCE
    properties: dict[str, Any] = Field(default_factory=dict)


# =============================================================================
# Detailed projections
# =============================================================================


class EntityWithDetails(Entity):
    """Entity plus its highest-importance observations."""

    observations: list[Observation] = Field(default_factory=list)


class ObservationWithDetails(Observation):
    """Observation plus the parent entity's name and type.

    Both are None when the parent entity no longer exists.
    """

    entity_name: Optional[str] = None
    entity_type: Optional[str] = None


class RelationWithDetails(Relation):
    """Relation plus the name and type of both endpoints."""

    source_entity_name: Optional[str] = None
    source_entity_type: Optional[str] = None
    target_entity_name: Optional[str] = None
    target_entity_type: Optional[str] = None
