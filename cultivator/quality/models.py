"""Quality dimensions, dimension scores, and the composite quality score.

The five dimensions form a closed catalog. Each carries its display
identity and weight as constant data; weights sum to exactly 100%.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import StrEnum

from pydantic import Field, model_validator

from cultivator.models.common import CultivatorBase, UTCTimestamp, utc_now


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


class MissingDimensionError(ValueError):
    """Raised when a quality score is built without every catalog dimension."""

    def __init__(self, missing: list[QualityDimension]) -> None:
        self.missing = missing
        names = ", ".join(d.value for d in missing)
        super().__init__(f"Missing quality dimension: {names}")


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class QualityGrade(StrEnum):
    """Composite quality grades from A (best) to F (worst)."""

    A = "A"
    B = "B"
    C = "C"
    D = "D"
    F = "F"


class QualityDimension(StrEnum):
    """The 5 quality dimensions assessed for each note."""

    ATOMICITY = "atomicity"
    CONNECTIVITY = "connectivity"
    CLARITY = "clarity"
    EVIDENCE = "evidence"
    ORIGINALITY = "originality"

    @property
    def config(self) -> DimensionConfig:
        return DIMENSION_CATALOG[self]

    @property
    def display_name(self) -> str:
        return DIMENSION_CATALOG[self].display_name

    @property
    def description(self) -> str:
        return DIMENSION_CATALOG[self].description

    @property
    def icon(self) -> str:
        return DIMENSION_CATALOG[self].icon

    @property
    def weight(self) -> float:
        return DIMENSION_CATALOG[self].weight_pct / 100

    @classmethod
    def from_name(cls, name: str) -> QualityDimension | None:
        """Resolve a dimension from its key or display name, case-insensitively.

        Returns None for names outside the catalog.
        """
        normalized = name.strip().lower()
        for dimension in cls:
            if normalized in (dimension.value, dimension.display_name.lower()):
                return dimension
        return None


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DimensionConfig:
    """Constant catalog data for one quality dimension."""

    display_name: str
    description: str
    icon: str
    weight_pct: int


DIMENSION_CATALOG: dict[QualityDimension, DimensionConfig] = {
    QualityDimension.ATOMICITY: DimensionConfig(
        display_name="Atomicity",
        description="Does the note hold exactly one idea?",
        icon="⚛️",
        weight_pct=25,
    ),
    QualityDimension.CONNECTIVITY: DimensionConfig(
        display_name="Connectivity",
        description="Is the note meaningfully linked to other notes?",
        icon="\U0001f517",
        weight_pct=25,
    ),
    QualityDimension.CLARITY: DimensionConfig(
        display_name="Clarity",
        description="Can the note be understood without outside context?",
        icon="\U0001f4a1",
        weight_pct=20,
    ),
    QualityDimension.EVIDENCE: DimensionConfig(
        display_name="Evidence",
        description="Are sources, examples, or reasons given?",
        icon="\U0001f4da",
        weight_pct=15,
    ),
    QualityDimension.ORIGINALITY: DimensionConfig(
        display_name="Originality",
        description="Is the idea expressed in the author's own words?",
        icon="✨",
        weight_pct=15,
    ),
}

# (inclusive lower bound, grade), highest first.
_GRADE_BANDS: tuple[tuple[int, QualityGrade], ...] = (
    (90, QualityGrade.A),
    (80, QualityGrade.B),
    (70, QualityGrade.C),
    (60, QualityGrade.D),
)

_GRADE_STATUS: dict[QualityGrade, str] = {
    QualityGrade.A: "Excellent",
    QualityGrade.B: "Good",
    QualityGrade.C: "Fair",
    QualityGrade.D: "Weak",
    QualityGrade.F: "Needs improvement",
}


def grade_for_score(score: int) -> QualityGrade:
    """Band a 0-100 score into a letter grade."""
    for lower_bound, grade in _GRADE_BANDS:
        if score >= lower_bound:
            return grade
    return QualityGrade.F


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return math.floor(value + 0.5)


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------


class DimensionScore(CultivatorBase, frozen=True):
    """Score and feedback for a single quality dimension."""

    dimension: QualityDimension
    score: int = Field(ge=0, le=100)
    feedback: str = ""

    @classmethod
    def create(
        cls,
        dimension: QualityDimension | str,
        raw_score: float,
        feedback: str = "",
    ) -> DimensionScore:
        """Clamp *raw_score* to [0, 100] and round it to an integer."""
        clamped = min(100.0, max(0.0, float(raw_score)))
        return cls(
            dimension=QualityDimension(dimension),
            score=round_half_up(clamped),
            feedback=feedback,
        )

    @property
    def weight(self) -> float:
        return self.dimension.weight

    @property
    def weighted_score(self) -> float:
        return self.score * self.dimension.weight

    def grade(self) -> QualityGrade:
        return grade_for_score(self.score)

    def display_text(self) -> str:
        return f"{self.dimension.icon} {self.dimension.display_name}: {self.score}"


class QualityScore(CultivatorBase, frozen=True):
    """Immutable weighted composite of all five dimension scores.

    ``dimensions`` always holds one entry per catalog dimension, in
    catalog order. ``total_score`` is the half-up rounded weighted sum.
    """

    dimensions: tuple[DimensionScore, ...]
    total_score: int = Field(ge=0, le=100)
    assessed_at: UTCTimestamp = Field(default_factory=utc_now)

    @model_validator(mode="after")
    def _check_catalog_coverage(self) -> QualityScore:
        present = [d.dimension for d in self.dimensions]
        if present != list(QualityDimension):
            msg = "dimensions must contain each catalog dimension once, in catalog order"
            raise ValueError(msg)
        if self.total_score != _weighted_total(self.dimensions):
            msg = "total_score does not match the weighted dimension scores"
            raise ValueError(msg)
        return self

    # ----- Construction -----

    @classmethod
    def create(
        cls,
        dimensions: Iterable[DimensionScore],
        assessed_at: UTCTimestamp | None = None,
    ) -> QualityScore:
        """Build a quality score from dimension scores.

        Every catalog dimension must be present. When a dimension is
        supplied more than once, the last occurrence wins.

        Raises:
            MissingDimensionError: if any catalog dimension is absent.
        """
        by_dimension: dict[QualityDimension, DimensionScore] = {}
        for dimension_score in dimensions:
            by_dimension[dimension_score.dimension] = dimension_score

        missing = [d for d in QualityDimension if d not in by_dimension]
        if missing:
            raise MissingDimensionError(missing)

        ordered = tuple(by_dimension[d] for d in QualityDimension)
        return cls(
            dimensions=ordered,
            total_score=_weighted_total(ordered),
            assessed_at=assessed_at or utc_now(),
        )

    @classmethod
    def from_scores(
        cls,
        scores: Mapping[QualityDimension | str, tuple[float, str] | float],
    ) -> QualityScore:
        """Convenience builder from ``{dimension: score}`` or ``{dimension: (score, feedback)}``."""
        dimension_scores: list[DimensionScore] = []
        for key, value in scores.items():
            if isinstance(value, tuple):
                raw_score, feedback = value
            else:
                raw_score, feedback = value, ""
            dimension_scores.append(DimensionScore.create(key, raw_score, feedback))
        return cls.create(dimension_scores)

    # ----- Queries -----

    def get_dimension(self, dimension: QualityDimension) -> DimensionScore:
        for dimension_score in self.dimensions:
            if dimension_score.dimension == dimension:
                return dimension_score
        raise KeyError(dimension)

    def scores_by_dimension(self) -> dict[QualityDimension, int]:
        return {d.dimension: d.score for d in self.dimensions}

    def grade(self) -> QualityGrade:
        """Letter grade for the total score."""
        return grade_for_score(self.total_score)

    def strongest(self) -> DimensionScore:
        """Highest-scoring dimension; the first in catalog order wins ties."""
        best = self.dimensions[0]
        for dimension_score in self.dimensions[1:]:
            if dimension_score.score > best.score:
                best = dimension_score
        return best

    def weakest(self) -> DimensionScore:
        """Lowest-scoring dimension; the first in catalog order wins ties."""
        worst = self.dimensions[0]
        for dimension_score in self.dimensions[1:]:
            if dimension_score.score < worst.score:
                worst = dimension_score
        return worst

    def dimensions_needing_improvement(self, threshold: int = 70) -> list[DimensionScore]:
        """Dimensions scoring below *threshold*, lowest first."""
        return sorted(
            (d for d in self.dimensions if d.score < threshold),
            key=lambda d: d.score,
        )

    def is_higher_than(self, other: QualityScore) -> bool:
        return self.total_score > other.total_score

    def status_text(self) -> str:
        return _GRADE_STATUS[self.grade()]

    def summary_text(self) -> str:
        return f"Total {self.total_score} ({self.grade()}) - {self.status_text()}"


def _weighted_total(dimensions: Iterable[DimensionScore]) -> int:
    # Integer percent weights keep the half-up rounding exact.
    hundredths = sum(d.score * d.dimension.config.weight_pct for d in dimensions)
    return (hundredths + 50) // 100
