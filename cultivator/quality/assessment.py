"""Note assessment: the immutable result of one evaluation run.

Joins a QualityScore with the note's current maturity, derives the
recommended maturity, and carries the suggestion payloads (improvements,
split, connections, growth guide) produced for the note.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import Field

from cultivator.models.common import (
    CultivatorBase,
    UTCTimestamp,
    UUIDv7,
    new_uuid7,
    utc_now,
)
from cultivator.quality.maturity import MaturityLevel
from cultivator.quality.models import QualityScore


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class ImprovementPriority(StrEnum):
    """Priority of an improvement suggestion."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RelationshipType(StrEnum):
    """How a suggested connection relates to the assessed note."""

    SUPPORTS = "supports"
    CONTRADICTS = "contradicts"
    EXTENDS = "extends"
    EXEMPLIFIES = "exemplifies"
    RELATES = "relates"


class EffortLevel(StrEnum):
    """Estimated effort for a growth guide."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# ---------------------------------------------------------------------------
# Suggestion payloads
# ---------------------------------------------------------------------------


class ImprovementSuggestion(CultivatorBase, frozen=True):
    """A concrete suggestion for one weak dimension."""

    dimension: str
    priority: ImprovementPriority
    suggestion: str
    example: str | None = None


class SuggestedNote(CultivatorBase, frozen=True):
    """One of the notes a non-atomic note could be split into."""

    title: str
    description: str
    core_idea: str = Field(alias="coreIdea")


class SplitSuggestion(CultivatorBase, frozen=True):
    """Proposal to split a note that holds more than one idea."""

    reason: str
    suggested_notes: tuple[SuggestedNote, ...] = Field(
        default=(), alias="suggestedNotes"
    )


class ConnectionSuggestion(CultivatorBase, frozen=True):
    """A note the assessed note should link to."""

    target_note: str = Field(alias="targetNote")
    relationship_type: RelationshipType = Field(
        default=RelationshipType.RELATES, alias="relationshipType"
    )
    reason: str = ""
    link_suggestion: str = Field(default="", alias="linkSuggestion")


class GrowthStep(CultivatorBase, frozen=True):
    """One action in a growth guide."""

    step: int = Field(ge=1)
    action: str
    expected_impact: str = Field(alias="expectedImpact")


class GrowthGuide(CultivatorBase, frozen=True):
    """Steps that move a note from its current stage to the next one."""

    current_level: MaturityLevel
    target_level: MaturityLevel
    required_score: int
    current_score: int
    steps: tuple[GrowthStep, ...] = ()
    estimated_effort: EffortLevel = EffortLevel.MEDIUM


# ---------------------------------------------------------------------------
# Assessment
# ---------------------------------------------------------------------------


class NoteAssessment(CultivatorBase, frozen=True):
    """Immutable result of a single note evaluation."""

    assessment_id: UUIDv7 = Field(default_factory=new_uuid7)
    note_id: str
    note_path: str
    quality_score: QualityScore
    current_maturity: MaturityLevel
    recommended_maturity: MaturityLevel
    improvements: tuple[ImprovementSuggestion, ...] = ()
    split_suggestion: SplitSuggestion | None = None
    connection_suggestions: tuple[ConnectionSuggestion, ...] = ()
    growth_guide: GrowthGuide | None = None
    assessed_at: UTCTimestamp = Field(default_factory=utc_now)

    @classmethod
    def create(
        cls,
        *,
        note_id: str,
        note_path: str,
        quality_score: QualityScore,
        current_maturity: MaturityLevel,
        improvements: list[ImprovementSuggestion] | tuple[ImprovementSuggestion, ...] = (),
        split_suggestion: SplitSuggestion | None = None,
        connection_suggestions: list[ConnectionSuggestion] | tuple[ConnectionSuggestion, ...] = (),
        growth_guide: GrowthGuide | None = None,
    ) -> NoteAssessment:
        """Create a new assessment with a fresh id and timestamp.

        The recommended maturity is always derived from the quality score;
        every other input is stored as given.
        """
        return cls(
            note_id=note_id,
            note_path=note_path,
            quality_score=quality_score,
            current_maturity=current_maturity,
            recommended_maturity=MaturityLevel.from_score(quality_score.total_score),
            improvements=tuple(improvements),
            split_suggestion=split_suggestion,
            connection_suggestions=tuple(connection_suggestions),
            growth_guide=growth_guide,
        )

    # ----- Queries -----

    def is_maturity_upgrade_recommended(self) -> bool:
        return self.recommended_maturity.is_higher_than(self.current_maturity)

    def has_split_suggestion(self) -> bool:
        return self.split_suggestion is not None

    def has_connection_suggestions(self) -> bool:
        return len(self.connection_suggestions) > 0

    def improvements_by_priority(
        self, priority: ImprovementPriority
    ) -> list[ImprovementSuggestion]:
        return [i for i in self.improvements if i.priority == priority]

    def high_priority_improvements(self) -> list[ImprovementSuggestion]:
        return self.improvements_by_priority(ImprovementPriority.HIGH)

    def summary_text(self) -> str:
        """Short plain-text summary for notices and logs."""
        lines = [
            "Note quality assessment",
            "",
            f"Current maturity: {self.current_maturity.display_text()}",
            f"Quality score: {self.quality_score.summary_text()}",
        ]
        if self.is_maturity_upgrade_recommended():
            lines.append(
                f"Recommended maturity: {self.recommended_maturity.display_text()}"
            )
        if self.has_split_suggestion():
            lines.append("Atomicity issue: splitting the note is recommended")
        if self.has_connection_suggestions():
            lines.append(
                f"Connection suggestions: {len(self.connection_suggestions)} note(s)"
            )
        return "\n".join(lines)
