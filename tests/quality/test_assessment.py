"""Tests for NoteAssessment and suggestion payload models."""

from uuid import UUID

import pytest

from cultivator.quality.assessment import (
    ConnectionSuggestion,
    ImprovementPriority,
    ImprovementSuggestion,
    NoteAssessment,
    RelationshipType,
    SplitSuggestion,
)
from cultivator.quality.maturity import MaturityLevel
from cultivator.quality.models import QualityDimension, QualityScore


def _quality(value: float) -> QualityScore:
    return QualityScore.from_scores({d: value for d in QualityDimension})


def _assessment(value: float = 45, current: MaturityLevel = MaturityLevel.SEED, **kwargs) -> NoteAssessment:
    return NoteAssessment.create(
        note_id="n1",
        note_path="zettel/n1.md",
        quality_score=_quality(value),
        current_maturity=current,
        **kwargs,
    )


class TestCreate:
    def test_recommended_derived_from_score(self) -> None:
        assessment = _assessment(45)
        assert assessment.recommended_maturity is MaturityLevel.SPROUT
        assert assessment.is_maturity_upgrade_recommended()

    def test_no_upgrade_when_already_at_stage(self) -> None:
        assessment = _assessment(75, current=MaturityLevel.TREE)
        assert not assessment.is_maturity_upgrade_recommended()

    def test_no_upgrade_when_current_is_higher(self) -> None:
        assessment = _assessment(45, current=MaturityLevel.EVERGREEN)
        assert assessment.recommended_maturity is MaturityLevel.SPROUT
        assert not assessment.is_maturity_upgrade_recommended()

    def test_fresh_id_and_timestamp(self) -> None:
        first = _assessment()
        second = _assessment()
        assert isinstance(first.assessment_id, UUID)
        assert first.assessment_id != second.assessment_id
        assert first.assessed_at.tzinfo is not None

    def test_lists_stored_as_tuples(self) -> None:
        improvement = ImprovementSuggestion(
            dimension="clarity", priority=ImprovementPriority.HIGH, suggestion="Define terms."
        )
        assessment = _assessment(improvements=[improvement])
        assert assessment.improvements == (improvement,)


class TestQueries:
    def test_priority_filters(self) -> None:
        high = ImprovementSuggestion(dimension="clarity", priority="high", suggestion="a")
        low = ImprovementSuggestion(dimension="evidence", priority="low", suggestion="b")
        assessment = _assessment(improvements=[high, low])
        assert assessment.high_priority_improvements() == [high]
        assert assessment.improvements_by_priority(ImprovementPriority.LOW) == [low]

    def test_split_and_connections_flags(self) -> None:
        assessment = _assessment()
        assert not assessment.has_split_suggestion()
        assert not assessment.has_connection_suggestions()

        assessment = _assessment(
            split_suggestion=SplitSuggestion(reason="Two ideas."),
            connection_suggestions=[ConnectionSuggestion(target_note="Other")],
        )
        assert assessment.has_split_suggestion()
        assert assessment.has_connection_suggestions()

    def test_summary_mentions_recommendation(self) -> None:
        text = _assessment(45).summary_text()
        assert "Sprout" in text
        assert "Quality score" in text


class TestPayloadAliases:
    def test_connection_suggestion_from_camel_case(self) -> None:
        suggestion = ConnectionSuggestion.model_validate(
            {
                "targetNote": "Testing effect",
                "relationshipType": "supports",
                "reason": "Same mechanism.",
                "linkSuggestion": "See [[Testing effect]].",
            }
        )
        assert suggestion.target_note == "Testing effect"
        assert suggestion.relationship_type is RelationshipType.SUPPORTS

    def test_connection_default_relationship(self) -> None:
        assert ConnectionSuggestion(target_note="x").relationship_type is RelationshipType.RELATES

    def test_split_suggestion_from_camel_case(self) -> None:
        split = SplitSuggestion.model_validate(
            {
                "reason": "Two ideas.",
                "suggestedNotes": [
                    {"title": "A", "description": "first", "coreIdea": "one"},
                ],
            }
        )
        assert split.suggested_notes[0].core_idea == "one"

    def test_invalid_priority_rejected(self) -> None:
        with pytest.raises(ValueError):
            ImprovementSuggestion(dimension="clarity", priority="urgent", suggestion="x")
