"""Query and mutation engine for the my-memory knowledge store.

This module turns record operations into parameterized SQL against the
SQLiteStore:
- create: validate required fields, generate an id, apply defaults, insert
- read/list: conjunctive filters (type or parent id, minimum importance),
  importance-weighted ordering, optional detailed projections
- update: partial updates restricted to each kind's allow-list
- delete: by id, by entity scope or by importance range, with optional
  cascade across observations and relations

Ordering is always importance_score descending. Observations break ties on
timestamp descending, and every kind finally falls back to insertion order
(rowid) so repeated reads return identical lists.

Cascading deletes run as a sequence of independent statements. A failure
part-way through can leave a partial deletion behind.
"""

import json
import logging
import re
import time
from typing import Any, Optional, Union
from uuid import uuid4

from pydantic import ValidationError as PydanticValidationError

from my_memory.constants import (
    DEFAULT_IMPORTANCE,
    DETAIL_OBSERVATION_LIMIT,
    ENTITY_ID_PREFIX,
    MAX_IMPORTANCE,
    MIN_IMPORTANCE,
    OBSERVATION_ID_PREFIX,
    RELATION_ID_PREFIX,
)
from my_memory.engine.errors import (
    DataCorruptionError,
    NoFieldsError,
    NoSelectorError,
    NotFoundError,
    ValidationError,
)
from my_memory.storage.sqlite_store import SQLiteStore
from my_memory.types import (
    AnyRecord,
    DeleteResult,
    DeleteSelector,
    Entity,
    EntityRecord,
    EntityUpdate,
    EntityWithDetails,
    Observation,
    ObservationRecord,
    ObservationUpdate,
    ObservationWithDetails,
    RecordKind,
    Relation,
    RelationRecord,
    RelationUpdate,
    RelationWithDetails,
)

# MCP servers must never write to stdout (corrupts JSON-RPC)
logger = logging.getLogger(__name__)

# =============================================================================
# Statement fragments
# =============================================================================

_TABLES = {
    RecordKind.ENTITY: "entities",
    RecordKind.OBSERVATION: "observations",
    RecordKind.RELATION: "relations",
}

_ENTITY_SELECT = """
    SELECT e.id, e.type, e.name, e.importance_score, e.created_at
    FROM entities e"""
_ENTITY_ORDER = "ORDER BY e.importance_score DESC, e.rowid ASC"

_OBSERVATION_COLUMNS = """
    o.id, o.entity_id, o.type, o.value, o.notes, o.importance_score, o.timestamp"""
_OBSERVATION_SELECT = f"""
    SELECT {_OBSERVATION_COLUMNS}
    FROM observations o"""
_OBSERVATION_DETAIL_SELECT = f"""
    SELECT {_OBSERVATION_COLUMNS},
           e.name AS entity_name, e.type AS entity_type
    FROM observations o
    LEFT JOIN entities e ON e.id = o.entity_id"""
_OBSERVATION_ORDER = "ORDER BY o.importance_score DESC, o.timestamp DESC, o.rowid ASC"

_RELATION_COLUMNS = """
    r.id, r.source_entity_id, r.target_entity_id, r.type,
    r.importance_score, r.properties"""
_RELATION_SELECT = f"""
    SELECT {_RELATION_COLUMNS}
    FROM relations r"""
_RELATION_DETAIL_SELECT = f"""
    SELECT {_RELATION_COLUMNS},
           s.name AS source_entity_name, s.type AS source_entity_type,
           t.name AS target_entity_name, t.type AS target_entity_type
    FROM relations r
    LEFT JOIN entities s ON s.id = r.source_entity_id
    LEFT JOIN entities t ON t.id = r.target_entity_id"""
_RELATION_ORDER = "ORDER BY r.importance_score DESC, r.rowid ASC"

# Required create fields per kind
_REQUIRED_FIELDS = {
    RecordKind.ENTITY: ("type", "name"),
    RecordKind.OBSERVATION: ("entity_id", "type", "value"),
    RecordKind.RELATION: ("source_entity_id", "target_entity_id", "type"),
}

# Partial update allow-lists per kind
_UPDATE_MODELS = {
    RecordKind.ENTITY: EntityUpdate,
    RecordKind.OBSERVATION: ObservationUpdate,
    RecordKind.RELATION: RelationUpdate,
}

# Plural spellings accepted wherever a kind is named
_KIND_ALIASES = {
    "entities": RecordKind.ENTITY,
    "observations": RecordKind.OBSERVATION,
    "relations": RecordKind.RELATION,
}

# Keep IN (...) lists well under SQLite's bound-variable limit
_IN_CHUNK_SIZE = 500

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


# =============================================================================
# Helpers
# =============================================================================


def generate_id(prefix: str) -> str:
    """Generate a record id: <prefix>_<epoch-ms>_<random hex>."""
    return f"{prefix}_{int(time.time() * 1000)}_{uuid4().hex[:12]}"


def coerce_kind(kind: Union[RecordKind, str]) -> RecordKind:
    """Resolve a kind name (singular or plural) to a RecordKind.

    Raises:
        ValidationError: If the kind is not recognized
    """
    if isinstance(kind, RecordKind):
        return kind
    name = str(kind).strip().lower()
    if name in _KIND_ALIASES:
        return _KIND_ALIASES[name]
    try:
        return RecordKind(name)
    except ValueError:
        valid = ", ".join(k.value for k in RecordKind)
        raise ValidationError(f"Unknown record kind '{kind}'. Must be one of: {valid}") from None


def _snake_case(key: str) -> str:
    return _CAMEL_BOUNDARY.sub("_", key).lower()


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _check_importance(value: Any, field: str = "importance_score") -> int:
    """Validate an importance score and return it as an int."""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer, got {value!r}")
    if not MIN_IMPORTANCE <= value <= MAX_IMPORTANCE:
        raise ValidationError(
            f"{field} must be between {MIN_IMPORTANCE} and {MAX_IMPORTANCE}, got {value}"
        )
    return value


def _serialize_properties(properties: Any) -> str:
    if not isinstance(properties, dict):
        raise ValidationError(f"properties must be an object, got {type(properties).__name__}")
    try:
        return json.dumps(properties)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"properties must be JSON-serializable: {e}") from e


def _parse_properties(raw: Optional[str], relation_id: str) -> dict[str, Any]:
    if raw is None or raw == "":
        return {}
    try:
        value = json.loads(raw)
    except json.JSONDecodeError as e:
        raise DataCorruptionError(
            f"Relation {relation_id} has unreadable properties: {e}"
        ) from e
    if not isinstance(value, dict):
        raise DataCorruptionError(
            f"Relation {relation_id} properties are not an object: {raw!r}"
        )
    return value


def _where(conditions: list[str]) -> str:
    return " WHERE " + " AND ".join(conditions) if conditions else ""


def _placeholders(count: int) -> str:
    return ", ".join("?" for _ in range(count))


class KnowledgeEngine:
    """Create, read, update and delete entities, observations and relations.

    The engine holds no state besides the store it was constructed with.
    Every public method maps to one or more parameterized statements.

    Args:
        store: SQLiteStore shared for the lifetime of the process

    Example:
        >>> engine = KnowledgeEngine(SQLiteStore(Path(":memory:")))
        >>> ada = engine.create_entity(type="Person", name="Ada", importance_score=80)
        >>> engine.get_entities(min_importance=60)[0].name
        'Ada'
    """

    def __init__(self, store: SQLiteStore) -> None:
        self._store = store

    # =========================================================================
    # Create
    # =========================================================================

    def create(self, kind: Union[RecordKind, str], fields: dict[str, Any]) -> AnyRecord:
        """Create a record of any kind from a field mapping.

        Keys may be snake_case or camelCase; unknown keys are ignored.

        Args:
            kind: Record kind
            fields: Field values for the new record

        Returns:
            The record as persisted

        Raises:
            ValidationError: If the kind is unknown or required fields are missing
        """
        kind = coerce_kind(kind)
        values = {_snake_case(key): value for key, value in (fields or {}).items()}
        self._require(kind, values)

        if kind is RecordKind.ENTITY:
            return self.create_entity(
                type=values["type"],
                name=values["name"],
                importance_score=values.get("importance_score"),
            )
        if kind is RecordKind.OBSERVATION:
            return self.create_observation(
                entity_id=values["entity_id"],
                type=values["type"],
                value=values["value"],
                notes=values.get("notes"),
                importance_score=values.get("importance_score"),
                timestamp=values.get("timestamp"),
            )
        return self.create_relation(
            source_entity_id=values["source_entity_id"],
            target_entity_id=values["target_entity_id"],
            type=values["type"],
            importance_score=values.get("importance_score"),
            properties=values.get("properties"),
        )

    def create_entity(
        self,
        type: str,
        name: str,
        importance_score: Optional[int] = None,
    ) -> Entity:
        """Create an entity.

        Args:
            type: Entity category (Person, Place...)
            name: Entity name
            importance_score: 0-100 (default: 50)

        Returns:
            The entity as persisted, including its created_at

        Raises:
            ValidationError: If type or name is missing, or the score is invalid
        """
        self._require(RecordKind.ENTITY, {"type": type, "name": name})
        score = DEFAULT_IMPORTANCE if importance_score is None else _check_importance(importance_score)

        entity_id = generate_id(ENTITY_ID_PREFIX)
        self._store.execute(
            "INSERT INTO entities (id, type, name, importance_score) VALUES (?, ?, ?, ?)",
            (entity_id, type, name, score),
        )
        logger.info(f"Created entity {entity_id} ({type}: {name})")
        return self._reread(RecordKind.ENTITY, entity_id)

    def create_observation(
        self,
        entity_id: str,
        type: str,
        value: str,
        notes: Optional[str] = None,
        importance_score: Optional[int] = None,
        timestamp: Optional[int] = None,
    ) -> Observation:
        """Create an observation attached to an entity.

        The parent entity is not required to exist.

        Args:
            entity_id: Parent entity id
            type: Observation category
            value: The observed fact
            notes: Optional free text (default: "")
            importance_score: 0-100 (default: 50)
            timestamp: Unix epoch seconds (default: now)

        Returns:
            The observation as persisted

        Raises:
            ValidationError: If required fields are missing or values are invalid
        """
        self._require(
            RecordKind.OBSERVATION,
            {"entity_id": entity_id, "type": type, "value": value},
        )
        score = DEFAULT_IMPORTANCE if importance_score is None else _check_importance(importance_score)
        if timestamp is None:
            timestamp = int(time.time())
        elif isinstance(timestamp, bool) or not isinstance(timestamp, (int, float)):
            raise ValidationError(f"timestamp must be epoch seconds, got {timestamp!r}")

        observation_id = generate_id(OBSERVATION_ID_PREFIX)
        self._store.execute(
            """
            INSERT INTO observations
            (id, entity_id, type, value, notes, importance_score, timestamp)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                observation_id,
                entity_id,
                type,
                value,
                notes if notes is not None else "",
                score,
                int(timestamp),
            ),
        )
        logger.info(f"Created observation {observation_id} for entity {entity_id}")
        return self._reread(RecordKind.OBSERVATION, observation_id)

    def create_relation(
        self,
        source_entity_id: str,
        target_entity_id: str,
        type: str,
        importance_score: Optional[int] = None,
        properties: Optional[dict[str, Any]] = None,
    ) -> Relation:
        """Create a directed relation between two entities.

        Neither endpoint is required to exist.

        Args:
            source_entity_id: Edge origin
            target_entity_id: Edge destination
            type: Relation label
            importance_score: 0-100 (default: 50)
            properties: JSON-serializable map (default: {})

        Returns:
            The relation as persisted

        Raises:
            ValidationError: If required fields are missing or values are invalid
        """
        self._require(
            RecordKind.RELATION,
            {
                "source_entity_id": source_entity_id,
                "target_entity_id": target_entity_id,
                "type": type,
            },
        )
        score = DEFAULT_IMPORTANCE if importance_score is None else _check_importance(importance_score)
        serialized = _serialize_properties(properties if properties is not None else {})

        relation_id = generate_id(RELATION_ID_PREFIX)
        self._store.execute(
            """
            INSERT INTO relations
            (id, source_entity_id, target_entity_id, type, importance_score, properties)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (relation_id, source_entity_id, target_entity_id, type, score, serialized),
        )
        logger.info(
            f"Created relation {relation_id} ({source_entity_id} -[{type}]-> {target_entity_id})"
        )
        return self._reread(RecordKind.RELATION, relation_id)

    # =========================================================================
    # Read
    # =========================================================================

    def list_records(
        self,
        kind: Union[RecordKind, str],
        type: Optional[str] = None,
        parent_id: Optional[str] = None,
        min_importance: Optional[float] = None,
        include_details: bool = False,
    ) -> list[AnyRecord]:
        """List records of any kind.

        Args:
            kind: Record kind
            type: Exact type filter (entities only)
            parent_id: entity_id for observations, source_entity_id for relations
            min_importance: Inclusive importance threshold
            include_details: Return detailed projections

        Raises:
            ValidationError: If the kind is unknown or a filter does not apply to it
        """
        kind = coerce_kind(kind)
        if kind is RecordKind.ENTITY:
            if parent_id:
                raise ValidationError("Entities cannot be filtered by parent id")
            return self.get_entities(type, min_importance, include_details)

        if type:
            raise ValidationError(f"{kind.value.capitalize()}s cannot be filtered by type")
        if kind is RecordKind.OBSERVATION:
            return self.get_observations(parent_id, min_importance, include_details)
        return self.get_relations(parent_id, min_importance, include_details)

    def get_entities(
        self,
        type: Optional[str] = None,
        min_importance: Optional[float] = None,
        include_details: bool = False,
    ) -> list[EntityRecord]:
        """List entities, most important first.

        With include_details each entity carries its top observations, fetched
        with one extra query per entity.

        Args:
            type: Exact type filter
            min_importance: Inclusive importance threshold
            include_details: Attach top observations

        Returns:
            List of Entity (or EntityWithDetails)
        """
        conditions: list[str] = []
        params: list[Any] = []

        if type:
            conditions.append("e.type = ?")
            params.append(type)
        if min_importance is not None:
            conditions.append("e.importance_score >= ?")
            params.append(min_importance)

        rows = self._store.fetch_many(
            f"{_ENTITY_SELECT}{_where(conditions)} {_ENTITY_ORDER}",
            params,
        )
        entities = [Entity(**dict(row)) for row in rows]
        if not include_details:
            return entities

        return [
            EntityWithDetails(
                **entity.model_dump(),
                observations=self.top_observations(entity.id, DETAIL_OBSERVATION_LIMIT),
            )
            for entity in entities
        ]

    def get_observations(
        self,
        entity_id: Optional[str] = None,
        min_importance: Optional[float] = None,
        include_details: bool = False,
    ) -> list[ObservationRecord]:
        """List observations, most important then most recent first.

        Args:
            entity_id: Parent entity filter
            min_importance: Inclusive importance threshold
            include_details: Join the parent entity's name and type

        Returns:
            List of Observation (or ObservationWithDetails)
        """
        conditions: list[str] = []
        params: list[Any] = []

        if entity_id:
            conditions.append("o.entity_id = ?")
            params.append(entity_id)
        if min_importance is not None:
            conditions.append("o.importance_score >= ?")
            params.append(min_importance)

        select = _OBSERVATION_DETAIL_SELECT if include_details else _OBSERVATION_SELECT
        rows = self._store.fetch_many(
            f"{select}{_where(conditions)} {_OBSERVATION_ORDER}",
            params,
        )
        model = ObservationWithDetails if include_details else Observation
        return [model(**dict(row)) for row in rows]

    def get_relations(
        self,
        source_entity_id: Optional[str] = None,
        min_importance: Optional[float] = None,
        include_details: bool = False,
    ) -> list[RelationRecord]:
        """List relations, most important first.

        Args:
            source_entity_id: Source entity filter
            min_importance: Inclusive importance threshold
            include_details: Join both endpoints' names and types

        Returns:
            List of Relation (or RelationWithDetails)

        Raises:
            DataCorruptionError: If stored properties cannot be parsed
        """
        conditions: list[str] = []
        params: list[Any] = []

        if source_entity_id:
            conditions.append("r.source_entity_id = ?")
            params.append(source_entity_id)
        if min_importance is not None:
            conditions.append("r.importance_score >= ?")
            params.append(min_importance)

        select = _RELATION_DETAIL_SELECT if include_details else _RELATION_SELECT
        rows = self._store.fetch_many(
            f"{select}{_where(conditions)} {_RELATION_ORDER}",
            params,
        )
        model = RelationWithDetails if include_details else Relation
        return [model(**self._relation_fields(row)) for row in rows]

    def get_entity(self, entity_id: str) -> Optional[Entity]:
        """Get one entity by id, or None."""
        row = self._store.fetch_one(f"{_ENTITY_SELECT} WHERE e.id = ?", (entity_id,))
        return Entity(**dict(row)) if row else None

    def get_observation(self, observation_id: str) -> Optional[Observation]:
        """Get one observation by id, or None."""
        row = self._store.fetch_one(f"{_OBSERVATION_SELECT} WHERE o.id = ?", (observation_id,))
        return Observation(**dict(row)) if row else None

    def get_relation(self, relation_id: str) -> Optional[Relation]:
        """Get one relation by id, or None."""
        row = self._store.fetch_one(f"{_RELATION_SELECT} WHERE r.id = ?", (relation_id,))
        return Relation(**self._relation_fields(row)) if row else None

    def top_observations(self, entity_id: str, limit: int) -> list[Observation]:
        """Get an entity's highest-importance observations."""
        rows = self._store.fetch_many(
            f"{_OBSERVATION_SELECT} WHERE o.entity_id = ? {_OBSERVATION_ORDER} LIMIT ?",
            (entity_id, limit),
        )
        return [Observation(**dict(row)) for row in rows]

    # =========================================================================
    # Update
    # =========================================================================

    def update(
        self,
        kind: Union[RecordKind, str],
        record_id: str,
        fields: dict[str, Any],
    ) -> AnyRecord:
        """Apply a partial update to one record.

        Only fields in the kind's allow-list are written; omitted or None
        fields keep their stored value.

        Args:
            kind: Record kind
            record_id: Id of the record to update
            fields: New values (snake_case or camelCase keys)

        Returns:
            The record as read after the update

        Raises:
            ValidationError: If the kind is unknown or a value is invalid
            NoFieldsError: If no allowed field was supplied
            NotFoundError: If no record has this id
        """
        kind = coerce_kind(kind)
        if _is_blank(record_id):
            raise ValidationError(f"An id is required to update a {kind.value}")

        values = {_snake_case(key): value for key, value in (fields or {}).items()}
        # Checked before model validation, which would coerce True or "80" to int
        if values.get("importance_score") is not None:
            values["importance_score"] = _check_importance(values["importance_score"])

        try:
            changes = _UPDATE_MODELS[kind].model_validate(values).changes()
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid {kind.value} update: {e}") from e

        if not changes:
            allowed = ", ".join(_UPDATE_MODELS[kind].model_fields)
            raise NoFieldsError(f"No {kind.value} fields to update. Allowed fields: {allowed}")

        for name in ("name", "type", "value"):
            if name in changes and _is_blank(changes[name]):
                raise ValidationError(f"{name} cannot be empty")
        if "properties" in changes:
            changes["properties"] = _serialize_properties(changes["properties"])

        set_clause = ", ".join(f"{column} = ?" for column in changes)
        result = self._store.execute(
            f"UPDATE {_TABLES[kind]} SET {set_clause} WHERE id = ?",
            [*changes.values(), record_id],
        )
        if result.rowcount == 0:
            raise NotFoundError(f"No {kind.value} found with id {record_id}")

        logger.info(f"Updated {kind.value} {record_id}: {', '.join(changes)}")
        return self._reread(kind, record_id)

    def update_entity(self, entity_id: str, **fields: Any) -> Entity:
        """Partially update an entity (name, type, importance_score)."""
        return self.update(RecordKind.ENTITY, entity_id, fields)

    def update_observation(self, observation_id: str, **fields: Any) -> Observation:
        """Partially update an observation (type, value, notes, importance_score)."""
        return self.update(RecordKind.OBSERVATION, observation_id, fields)

    def update_relation(self, relation_id: str, **fields: Any) -> Relation:
        """Partially update a relation (type, importance_score, properties)."""
        return self.update(RecordKind.RELATION, relation_id, fields)

    # =========================================================================
    # Delete
    # =========================================================================

    def delete(self, kind: Union[RecordKind, str], selector: DeleteSelector) -> DeleteResult:
        """Delete records matching a selector.

        Entity deletes with cascade also remove the entities' observations and
        every relation touching them. Relation deletes scoped by entity_id with
        cascade also remove the entities at the other end of each matched
        relation (never the given entity itself). Observations have no
        dependents.

        Args:
            kind: Record kind
            selector: Conjoined selection criteria

        Returns:
            Per-kind counts of removed rows

        Raises:
            ValidationError: If the kind is unknown or the range is inverted
            NoSelectorError: If the selector has no criterion
            NotFoundError: If the selector names an id that matches nothing
        """
        kind = coerce_kind(kind)
        if selector.is_empty():
            raise NoSelectorError(
                f"Deleting {kind.value}s requires an id, entity_id, min_importance or max_importance"
            )
        if (
            selector.min_importance is not None
            and selector.max_importance is not None
            and selector.min_importance > selector.max_importance
        ):
            raise ValidationError(
                f"min_importance ({selector.min_importance}) is greater than "
                f"max_importance ({selector.max_importance})"
            )

        conditions, params = self._selector_conditions(kind, selector)
        where = _where(conditions)

        if self._targets_id(kind, selector):
            row = self._store.fetch_one(
                f"SELECT COUNT(*) AS matches FROM {_TABLES[kind]}{where}", params
            )
            if row is None or row["matches"] == 0:
                target = selector.id or selector.entity_id
                raise NotFoundError(f"No {kind.value} found with id {target}")

        if kind is RecordKind.ENTITY:
            result = self._delete_entities(where, params, selector.cascade)
        elif kind is RecordKind.OBSERVATION:
            count = self._store.execute(f"DELETE FROM observations{where}", params).rowcount
            result = DeleteResult(observations=count)
        else:
            result = self._delete_relations(where, params, selector)

        logger.info(
            f"Deleted {kind.value}s (cascade={selector.cascade}): "
            f"{result.entities} entities, {result.observations} observations, "
            f"{result.relations} relations"
        )
        return result

    def delete_entities(self, **criteria: Any) -> DeleteResult:
        """Delete entities; see delete() for the selector fields."""
        return self.delete(RecordKind.ENTITY, DeleteSelector(**criteria))

    def delete_observations(self, **criteria: Any) -> DeleteResult:
        """Delete observations; see delete() for the selector fields."""
        return self.delete(RecordKind.OBSERVATION, DeleteSelector(**criteria))

    def delete_relations(self, **criteria: Any) -> DeleteResult:
        """Delete relations; see delete() for the selector fields."""
        return self.delete(RecordKind.RELATION, DeleteSelector(**criteria))

    def _delete_entities(self, where: str, params: list[Any], cascade: bool) -> DeleteResult:
        result = DeleteResult()
        if cascade:
            # Dependents first, selected through the same predicate on entities
            matched = f"SELECT id FROM entities{where}"
            result.observations = self._store.execute(
                f"DELETE FROM observations WHERE entity_id IN ({matched})",
                params,
            ).rowcount
            result.relations = self._store.execute(
                f"""
                DELETE FROM relations
                WHERE source_entity_id IN ({matched})
                   OR target_entity_id IN ({matched})
                """,
                [*params, *params],
            ).rowcount

        result.entities = self._store.execute(f"DELETE FROM entities{where}", params).rowcount
        return result

    def _delete_relations(
        self,
        where: str,
        params: list[Any],
        selector: DeleteSelector,
    ) -> DeleteResult:
        counterparts: set[str] = set()
        if selector.cascade and selector.entity_id:
            rows = self._store.fetch_many(
                f"SELECT source_entity_id, target_entity_id FROM relations{where}",
                params,
            )
            for row in rows:
                counterparts.add(row["source_entity_id"])
                counterparts.add(row["target_entity_id"])
            counterparts.discard(selector.entity_id)
        elif selector.cascade:
            logger.debug("Relation cascade ignored without an entity_id scope")

        result = DeleteResult()
        result.relations = self._store.execute(f"DELETE FROM relations{where}", params).rowcount

        ids = sorted(counterparts)
        for start in range(0, len(ids), _IN_CHUNK_SIZE):
            chunk = ids[start : start + _IN_CHUNK_SIZE]
            result.entities += self._store.execute(
                f"DELETE FROM entities WHERE id IN ({_placeholders(len(chunk))})",
                chunk,
            ).rowcount
        return result

    def _selector_conditions(
        self,
        kind: RecordKind,
        selector: DeleteSelector,
    ) -> tuple[list[str], list[Any]]:
        """Build unqualified WHERE conditions for a delete selector."""
        conditions: list[str] = []
        params: list[Any] = []

        if selector.id is not None:
            conditions.append("id = ?")
            params.append(selector.id)

        if selector.entity_id is not None:
            if kind is RecordKind.ENTITY:
                conditions.append("id = ?")
                params.append(selector.entity_id)
            elif kind is RecordKind.OBSERVATION:
                conditions.append("entity_id = ?")
                params.append(selector.entity_id)
            else:
                conditions.append("(source_entity_id = ? OR target_entity_id = ?)")
                params.extend([selector.entity_id, selector.entity_id])

        if selector.min_importance is not None:
            conditions.append("importance_score >= ?")
            params.append(selector.min_importance)
        if selector.max_importance is not None:
            conditions.append("importance_score <= ?")
            params.append(selector.max_importance)

        return conditions, params

    @staticmethod
    def _targets_id(kind: RecordKind, selector: DeleteSelector) -> bool:
        """Check whether the selector names a specific record of this kind."""
        if selector.id is not None:
            return True
        return kind is RecordKind.ENTITY and selector.entity_id is not None

    # =========================================================================
    # Internal
    # =========================================================================

    def _require(self, kind: RecordKind, values: dict[str, Any]) -> None:
        missing = [name for name in _REQUIRED_FIELDS[kind] if _is_blank(values.get(name))]
        if missing:
            raise ValidationError(
                f"Missing required fields for {kind.value}: {', '.join(missing)}"
            )

    def _relation_fields(self, row: Any) -> dict[str, Any]:
        fields = dict(row)
        fields["properties"] = _parse_properties(fields.get("properties"), fields["id"])
        return fields

    def _reread(self, kind: RecordKind, record_id: str) -> Any:
        """Read a record back after a write."""
        if kind is RecordKind.ENTITY:
            record = self.get_entity(record_id)
        elif kind is RecordKind.OBSERVATION:
            record = self.get_observation(record_id)
        else:
            record = self.get_relation(record_id)

        if record is None:
            raise NotFoundError(f"{kind.value.capitalize()} {record_id} vanished after write")
        return record
