"""Summary and importance search over the knowledge store.

- summarize: fixed-format text digest of one entity and its top observations
- search_by_importance: records at or above an importance threshold, across
  all kinds or for a single kind
"""

import logging
from typing import Optional, Union

from my_memory.constants import SUMMARY_NOT_FOUND, SUMMARY_OBSERVATION_LIMIT
from my_memory.engine.errors import ValidationError
from my_memory.engine.knowledge_engine import KnowledgeEngine, coerce_kind
from my_memory.types import AnyRecord, Entity, ImportanceSearchResult, Observation, RecordKind

# MCP servers must never write to stdout (corrupts JSON-RPC)
logger = logging.getLogger(__name__)


def render_summary(entity: Entity, observations: list[Observation]) -> str:
    """Render the text digest for an entity.

    Format:
        [<name> Summary]

        Type: <type>
        Created: <created_at>

        [Key Observations]
        1. [<type>] <value>
           <notes>

    The observations block is omitted when there are none, and the notes line
    only appears for observations that have notes.
    """
    summary = f"[{entity.name} Summary]\n\n"
    summary += f"Type: {entity.type}\n"
    summary += f"Created: {entity.created_at}\n\n"

    if observations:
        summary += "[Key Observations]\n"
        for i, obs in enumerate(observations, start=1):
            summary += f"{i}. [{obs.type}] {obs.value}\n"
            if obs.notes:
                summary += f"   {obs.notes}\n"

    return summary


class SummaryService:
    """Entity digests and cross-kind importance search.

    Args:
        engine: KnowledgeEngine used for all reads
    """

    def __init__(self, engine: KnowledgeEngine) -> None:
        self._engine = engine

    def summarize(self, entity_id: str) -> str:
        """Summarize an entity and its most important observations.

        Args:
            entity_id: Entity to summarize

        Returns:
            The digest text, or a fixed not-found message if the entity does
            not exist
        """
        entity = self._engine.get_entity(entity_id)
        if entity is None:
            logger.debug(f"Summary requested for missing entity {entity_id}")
            return SUMMARY_NOT_FOUND

        observations = self._engine.top_observations(entity_id, SUMMARY_OBSERVATION_LIMIT)
        return render_summary(entity, observations)

    def search_by_importance(
        self,
        min_score: float,
        kind: Optional[Union[RecordKind, str]] = None,
        include_details: bool = False,
    ) -> Union[ImportanceSearchResult, list[AnyRecord]]:
        """Find records with importance_score >= min_score.

        Args:
            min_score: Inclusive importance threshold
            kind: Restrict to one kind (default: all three)
            include_details: Return detailed projections

        Returns:
            ImportanceSearchResult with one list per kind when kind is omitted,
            otherwise the single-kind list

        Raises:
            ValidationError: If min_score is missing or kind is unknown
        """
        if min_score is None:
            raise ValidationError("min_score is required")

        if not kind:
            return ImportanceSearchResult(
                entities=self._engine.get_entities(
                    min_importance=min_score, include_details=include_details
                ),
                observations=self._engine.get_observations(
                    min_importance=min_score, include_details=include_details
                ),
                relations=self._engine.get_relations(
                    min_importance=min_score, include_details=include_details
                ),
            )

        return self._engine.list_records(
            coerce_kind(kind),
            min_importance=min_score,
            include_details=include_details,
        )
