"""Tests for entity summaries and importance search."""

import pytest

from my_memory.constants import SUMMARY_NOT_FOUND
from my_memory.engine import KnowledgeEngine, SummaryService, ValidationError, render_summary
from my_memory.types import Entity, ImportanceSearchResult, Observation, RelationWithDetails

# =============================================================================
# Summaries
# =============================================================================


class TestRenderSummary:
    """Test the text digest format."""

    def test_render_with_observations(self) -> None:
        """Test the full digest layout, with and without notes lines."""
        entity = Entity(
            id="entity_1", type="Person", name="Ada", created_at="2024-01-01 10:00:00"
        )
        observations = [
            Observation(id="obs_1", entity_id="entity_1", type="skill", value="Math", notes="Analytical Engine"),
            Observation(id="obs_2", entity_id="entity_1", type="fact", value="Born 1815"),
        ]

        summary = render_summary(entity, observations)

        assert summary == (
            "[Ada Summary]\n\n"
            "Type: Person\n"
            "Created: 2024-01-01 10:00:00\n\n"
            "[Key Observations]\n"
            "1. [skill] Math\n"
            "   Analytical Engine\n"
            "2. [fact] Born 1815\n"
        )

    def test_render_without_observations(self) -> None:
        """Test that the observations block is omitted when empty."""
        entity = Entity(id="entity_1", type="Place", name="London", created_at="2024-01-01")

        summary = render_summary(entity, [])

        assert summary == "[London Summary]\n\nType: Place\nCreated: 2024-01-01\n\n"
        assert "[Key Observations]" not in summary


class TestSummarize:
    """Test SummaryService.summarize."""

    def test_missing_entity_returns_not_found_text(self, summary_service: SummaryService) -> None:
        """Test that a missing entity yields the fixed text, not an exception."""
        assert summary_service.summarize("entity_missing") == SUMMARY_NOT_FOUND

    def test_summary_lists_top_five_by_importance(
        self, engine: KnowledgeEngine, summary_service: SummaryService
    ) -> None:
        """Test that only the five most important observations are listed, in order."""
        ada = engine.create_entity(type="Person", name="Ada")
        for score in (20, 90, 40, 70, 10, 60, 30):
            engine.create_observation(
                entity_id=ada.id, type="fact", value=f"score {score}", importance_score=score
            )

        summary = summary_service.summarize(ada.id)

        assert summary.startswith("[Ada Summary]\n\nType: Person\nCreated: ")
        assert "1. [fact] score 90\n" in summary
        assert "5. [fact] score 30\n" in summary
        assert "score 20" not in summary
        assert "6." not in summary


# =============================================================================
# Importance search
# =============================================================================


@pytest.fixture
def scored(engine: KnowledgeEngine) -> None:
    """Records of every kind with importance 30, 60 and 90."""
    for score in (30, 90, 60):
        entity = engine.create_entity(type="T", name=f"e{score}", importance_score=score)
        engine.create_observation(
            entity_id=entity.id, type="t", value=f"o{score}", importance_score=score
        )
        engine.create_relation(
            source_entity_id=entity.id,
            target_entity_id=entity.id,
            type="t",
            importance_score=score,
        )


class TestSearchByImportance:
    """Test SummaryService.search_by_importance."""

    @pytest.mark.usefixtures("scored")
    def test_all_kinds(self, summary_service: SummaryService) -> None:
        """Test three lists, each filtered at the threshold and sorted descending."""
        result = summary_service.search_by_importance(60)

        assert isinstance(result, ImportanceSearchResult)
        for records in (result.entities, result.observations, result.relations):
            assert [r.importance_score for r in records] == [90, 60]

    @pytest.mark.usefixtures("scored")
    def test_single_kind(self, summary_service: SummaryService) -> None:
        """Test that a kind restricts the search to one list."""
        result = summary_service.search_by_importance(60, kind="relations", include_details=True)

        assert isinstance(result, list)
        assert [r.importance_score for r in result] == [90, 60]
        assert all(isinstance(r, RelationWithDetails) for r in result)
        assert result[0].source_entity_name == "e90"

    def test_missing_threshold(self, summary_service: SummaryService) -> None:
        """Test that min_score is required."""
        with pytest.raises(ValidationError):
            summary_service.search_by_importance(None)

    def test_unknown_kind(self, summary_service: SummaryService) -> None:
        """Test that an unknown kind raises ValidationError."""
        with pytest.raises(ValidationError):
            summary_service.search_by_importance(10, kind="memories")
