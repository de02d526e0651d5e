"""History snapshot and delta models.

An AssessmentRecord is a lossy projection of a NoteAssessment that keeps
only what is needed to show score changes across runs. Field aliases
match the persisted camelCase layout.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from cultivator.models.common import (
    CultivatorBase,
    EpochMillis,
    from_epoch_ms,
    to_epoch_ms,
)
from cultivator.quality.assessment import NoteAssessment
from cultivator.quality.maturity import MaturityLevel
from cultivator.quality.models import QualityDimension


class AssessmentRecord(CultivatorBase, frozen=True):
    """Minimal persisted snapshot of one assessment."""

    record_id: str = Field(alias="id")
    note_path: str = Field(alias="notePath")
    total_score: int = Field(ge=0, le=100, alias="totalScore")
    dimension_scores: dict[QualityDimension, int] = Field(
        default_factory=dict, alias="dimensionScores"
    )
    maturity_level: MaturityLevel = Field(alias="maturityLevel")
    assessed_at: EpochMillis = Field(alias="assessedAt")

    @classmethod
    def from_assessment(cls, assessment: NoteAssessment) -> AssessmentRecord:
        """Project an assessment onto a history record.

        The stored maturity is the note's stage at assessment time.
        """
        return cls(
            record_id=str(assessment.assessment_id),
            note_path=assessment.note_path,
            total_score=assessment.quality_score.total_score,
            dimension_scores=assessment.quality_score.scores_by_dimension(),
            maturity_level=assessment.current_maturity,
            assessed_at=to_epoch_ms(assessment.assessed_at),
        )

    def to_persisted(self) -> dict[str, object]:
        """Serialize to the persisted camelCase layout."""
        return self.model_dump(mode="json", by_alias=True)


class ScoreDelta(CultivatorBase, frozen=True):
    """Score change between a record and the most recent prior record."""

    total_delta: int
    dimension_deltas: dict[QualityDimension, int] = Field(default_factory=dict)
    previous_assessed_at: EpochMillis

    @property
    def previous_assessed_datetime(self) -> datetime:
        return from_epoch_ms(self.previous_assessed_at)

    @property
    def improved(self) -> bool:
        return self.total_delta > 0

    @staticmethod
    def badge(value: int) -> str:
        """Signed badge text for a delta, empty when unchanged."""
        if value == 0:
            return ""
        return f"+{value}" if value > 0 else str(value)
