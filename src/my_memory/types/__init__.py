"""Type system for my-memory.

The key types are:
- Entity, Observation, Relation: base records
- EntityWithDetails, ObservationWithDetails, RelationWithDetails: records
  enriched with joined summaries of related records
- RecordKind: Enum naming the three kinds
- EntityUpdate, ObservationUpdate, RelationUpdate: partial update allow-lists
- DeleteSelector, DeleteResult: delete inputs and per-kind counts
- ImportanceSearchResult: cross-kind importance search output

Example:
    >>> from my_memory.types import Entity
    >>> entity = Entity(id="entity_1", type="Person", name="Ada")
    >>> entity.to_wire()["importanceScore"]
    50
"""

from my_memory.types.operations import (
    AnyRecord,
    DeleteResult,
    DeleteSelector,
    EntityRecord,
    EntityUpdate,
    ImportanceSearchResult,
    ObservationRecord,
    ObservationUpdate,
    RelationRecord,
    RelationUpdate,
)
from my_memory.types.records import (
    Entity,
    EntityWithDetails,
    Observation,
    ObservationWithDetails,
    RecordKind,
    Relation,
    RelationWithDetails,
)

__all__ = [
    # Records
    "Entity",
    "Observation",
    "Relation",
    "RecordKind",
    # Detailed projections
    "EntityWithDetails",
    "ObservationWithDetails",
    "RelationWithDetails",
    # Operation types
    "EntityUpdate",
    "ObservationUpdate",
    "RelationUpdate",
    "DeleteSelector",
    "DeleteResult",
    "ImportanceSearchResult",
    # Aliases
    "AnyRecord",
    "EntityRecord",
    "ObservationRecord",
    "RelationRecord",
]
