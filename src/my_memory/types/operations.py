"""Operation types for the my-memory query engine.

- EntityUpdate / ObservationUpdate / RelationUpdate: per-kind allow-lists for
  partial updates
- DeleteSelector: which rows a delete targets
- DeleteResult: per-kind counts of removed rows
- ImportanceSearchResult: cross-kind importance search output
"""

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from my_memory.types.records import (
    Entity,
    EntityWithDetails,
    Observation,
    ObservationWithDetails,
    Relation,
    RelationWithDetails,
)

# =============================================================================
# Partial updates
# =============================================================================


class _PartialUpdate(BaseModel):
    """Fields omitted (or None) keep their stored value.

    Unknown keys are dropped, so each subclass is the allow-list for its kind.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def changes(self) -> dict[str, Any]:
        """Return the supplied fields keyed by column name."""
        return self.model_dump(exclude_none=True)


class EntityUpdate(_PartialUpdate):
    """Updatable entity fields."""

    name: Optional[str] = None
    type: Optional[str] = None
    importance_score: Optional[int] = None


class ObservationUpdate(_PartialUpdate):
    """Updatable observation fields."""

    type: Optional[str] = None
    value: Optional[str] = None
    notes: Optional[str] = None
    importance_score: Optional[int] = None


class RelationUpdate(_PartialUpdate):
    """Updatable relation fields."""

    type: Optional[str] = None
    importance_score: Optional[int] = None
    properties: Optional[dict[str, Any]] = None


# =============================================================================
# Deletes
# =============================================================================


@dataclass
class DeleteSelector:
    """Selection criteria for a delete. Supplied criteria are conjoined.

    Attributes:
        id: Exact record id
        entity_id: Entity scope. For entities this is the entity itself, for
            observations the parent, for relations either endpoint.
        min_importance: Inclusive lower importance bound
        max_importance: Inclusive upper importance bound
        cascade: Also delete dependent records (entities and relations only)
    """

    id: Optional[str] = None
    entity_id: Optional[str] = None
    min_importance: Optional[int] = None
    max_importance: Optional[int] = None
    cascade: bool = False

    def is_empty(self) -> bool:
        """Check whether no selection criterion was supplied."""
        return (
            self.id is None
            and self.entity_id is None
            and self.min_importance is None
            and self.max_importance is None
        )


@dataclass
class DeleteResult:
    """Number of rows removed per record kind.

    Attributes:
        entities: Entities deleted
        observations: Observations deleted
        relations: Relations deleted
    """

    entities: int = 0
    observations: int = 0
    relations: int = 0

    @property
    def total(self) -> int:
        return self.entities + self.observations + self.relations

    def to_wire(self) -> dict[str, int]:
        return {
            "entities": self.entities,
            "observations": self.observations,
            "relations": self.relations,
            "total": self.total,
        }


# =============================================================================
# Search
# =============================================================================

EntityRecord = Union[Entity, EntityWithDetails]
ObservationRecord = Union[Observation, ObservationWithDetails]
RelationRecord = Union[Relation, RelationWithDetails]
AnyRecord = Union[EntityRecord, ObservationRecord, RelationRecord]


@dataclass
class ImportanceSearchResult:
    """Records of every kind at or above an importance threshold.

    Attributes:
        entities: Matching entities, importance descending
        observations: Matching observations, importance then timestamp descending
        relations: Matching relations, importance descending
    """

    entities: list[EntityRecord] = field(default_factory=list)
    observations: list[ObservationRecord] = field(default_factory=list)
    relations: list[RelationRecord] = field(default_factory=list)

    def to_wire(self) -> dict[str, list[dict[str, Any]]]:
        return {
            "entities": [e.to_wire() for e in self.entities],
            "observations": [o.to_wire() for o in self.observations],
            "relations": [r.to_wire() for r in self.relations],
        }
