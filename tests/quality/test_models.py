"""Tests for quality dimensions, dimension scores and the composite score.

Covers: dimension catalog data, clamping and half-up rounding, weighted
totals, grade bands, catalog coverage, strongest/weakest tie-breaking.
"""

import itertools
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal

import pytest
from pydantic import ValidationError

from cultivator.quality.models import (
    DIMENSION_CATALOG,
    DimensionScore,
    MissingDimensionError,
    QualityDimension,
    QualityGrade,
    QualityScore,
    grade_for_score,
    round_half_up,
)


def _score(**overrides: float) -> QualityScore:
    scores = {d: 50.0 for d in QualityDimension}
    for key, value in overrides.items():
        scores[QualityDimension(key)] = value
    return QualityScore.from_scores(scores)


_RAW_VALUES = (-10, 0.5, 49.5, 69.4, 100.4, 150)


def _half_up(value: Decimal) -> int:
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def _clamped(raw: float) -> int:
    return _half_up(min(Decimal(100), max(Decimal(0), Decimal(str(raw)))))


# ===================================================================
# QualityDimension catalog
# ===================================================================


class TestQualityDimension:
    """Five dimensions in fixed order with weights summing to 100%."""

    def test_catalog_order(self) -> None:
        assert list(QualityDimension) == [
            QualityDimension.ATOMICITY,
            QualityDimension.CONNECTIVITY,
            QualityDimension.CLARITY,
            QualityDimension.EVIDENCE,
            QualityDimension.ORIGINALITY,
        ]

    def test_weights_sum_to_one(self) -> None:
        assert sum(c.weight_pct for c in DIMENSION_CATALOG.values()) == 100
        assert sum(d.weight for d in QualityDimension) == pytest.approx(1.0)

    def test_weights(self) -> None:
        assert QualityDimension.ATOMICITY.weight == pytest.approx(0.25)
        assert QualityDimension.CONNECTIVITY.weight == pytest.approx(0.25)
        assert QualityDimension.CLARITY.weight == pytest.approx(0.20)
        assert QualityDimension.EVIDENCE.weight == pytest.approx(0.15)
        assert QualityDimension.ORIGINALITY.weight == pytest.approx(0.15)

    def test_display_names(self) -> None:
        assert QualityDimension.ATOMICITY.display_name == "Atomicity"
        assert QualityDimension.ORIGINALITY.display_name == "Originality"

    def test_from_name_accepts_key_and_display_name(self) -> None:
        assert QualityDimension.from_name("clarity") is QualityDimension.CLARITY
        assert QualityDimension.from_name(" Evidence ") is QualityDimension.EVIDENCE

    def test_from_name_unknown_returns_none(self) -> None:
        assert QualityDimension.from_name("style") is None


# ===================================================================
# DimensionScore
# ===================================================================


class TestDimensionScore:
    """create() clamps to [0, 100] and rounds half up."""

    def test_clamps_above_range(self) -> None:
        assert DimensionScore.create(QualityDimension.CLARITY, 150).score == 100

    def test_clamps_below_range(self) -> None:
        assert DimensionScore.create(QualityDimension.CLARITY, -5).score == 0

    def test_rounds_half_up(self) -> None:
        assert DimensionScore.create(QualityDimension.CLARITY, 72.5).score == 73
        assert DimensionScore.create(QualityDimension.CLARITY, 72.4).score == 72

    def test_accepts_string_key(self) -> None:
        ds = DimensionScore.create("evidence", 60, "Needs a source.")
        assert ds.dimension is QualityDimension.EVIDENCE
        assert ds.feedback == "Needs a source."

    def test_unknown_key_rejected(self) -> None:
        with pytest.raises(ValueError):
            DimensionScore.create("style", 60)

    def test_weighted_score(self) -> None:
        ds = DimensionScore.create(QualityDimension.ATOMICITY, 80)
        assert ds.weighted_score == pytest.approx(20.0)

    def test_direct_construction_validates_range(self) -> None:
        with pytest.raises(ValidationError):
            DimensionScore(dimension=QualityDimension.CLARITY, score=101)

    def test_frozen(self) -> None:
        ds = DimensionScore.create(QualityDimension.CLARITY, 50)
        with pytest.raises(ValidationError):
            ds.score = 60  # type: ignore[misc]

    def test_display_text(self) -> None:
        ds = DimensionScore.create(QualityDimension.CLARITY, 64)
        assert ds.display_text() == "\U0001f4a1 Clarity: 64"


# ===================================================================
# Grades and rounding
# ===================================================================


class TestGrades:
    @pytest.mark.parametrize(
        ("score", "grade"),
        [
            (100, QualityGrade.A),
            (90, QualityGrade.A),
            (89, QualityGrade.B),
            (80, QualityGrade.B),
            (79, QualityGrade.C),
            (70, QualityGrade.C),
            (69, QualityGrade.D),
            (60, QualityGrade.D),
            (59, QualityGrade.F),
            (0, QualityGrade.F),
        ],
    )
    def test_bands(self, score: int, grade: QualityGrade) -> None:
        assert grade_for_score(score) == grade

    def test_round_half_up(self) -> None:
        assert round_half_up(0.5) == 1
        assert round_half_up(2.5) == 3
        assert round_half_up(2.49) == 2


# ===================================================================
# QualityScore
# ===================================================================


class TestQualityScoreCreate:
    """Weighted total, catalog coverage and ordering."""

    def test_weighted_total_example(self) -> None:
        score = QualityScore.from_scores(
            {
                "atomicity": 80,
                "connectivity": 60,
                "clarity": 70,
                "evidence": 50,
                "originality": 90,
            }
        )
        assert score.total_score == 70
        assert score.grade() == QualityGrade.C

    def test_total_rounds_half_up(self) -> None:
        # 25*1 + 25*0 + 20*0 + 15*0 + 15*1 = 40 hundredths -> 0.4 -> 0
        assert _score(atomicity=1, connectivity=0, clarity=0, evidence=0, originality=1).total_score == 0
        # 0.25*2 = 0.5 -> 1
        assert _score(atomicity=2, connectivity=0, clarity=0, evidence=0, originality=0).total_score == 1

    @pytest.mark.parametrize("first", _RAW_VALUES)
    def test_total_matches_weighted_sum_grid(self, first: float) -> None:
        dimensions = list(QualityDimension)
        for rest in itertools.product(_RAW_VALUES, repeat=len(dimensions) - 1):
            raw = dict(zip(dimensions, (first, *rest)))
            score = QualityScore.from_scores(raw)
            weighted = sum(
                Decimal(_clamped(raw[d]) * d.config.weight_pct) for d in dimensions
            )
            assert score.total_score == _half_up(weighted / 100)
            assert 0 <= score.total_score <= 100

    def test_all_equal_scores(self) -> None:
        assert _score().total_score == 50

    def test_dimensions_in_catalog_order(self) -> None:
        score = QualityScore.create(
            [
                DimensionScore.create(d, 50)
                for d in reversed(list(QualityDimension))
            ]
        )
        assert [d.dimension for d in score.dimensions] == list(QualityDimension)

    def test_missing_dimension(self) -> None:
        with pytest.raises(MissingDimensionError) as exc_info:
            QualityScore.create(
                [
                    DimensionScore.create(QualityDimension.ATOMICITY, 80),
                    DimensionScore.create(QualityDimension.CLARITY, 80),
                ]
            )
        assert QualityDimension.CONNECTIVITY in exc_info.value.missing
        assert isinstance(exc_info.value, ValueError)

    def test_duplicate_dimension_last_wins(self) -> None:
        dims = [DimensionScore.create(d, 50) for d in QualityDimension]
        dims.append(DimensionScore.create(QualityDimension.ATOMICITY, 90, "later"))
        score = QualityScore.create(dims)
        assert score.get_dimension(QualityDimension.ATOMICITY).score == 90
        assert score.get_dimension(QualityDimension.ATOMICITY).feedback == "later"
        assert len(score.dimensions) == 5

    def test_assessed_at_preserved(self) -> None:
        moment = datetime(2024, 3, 1, tzinfo=timezone.utc)
        score = QualityScore.create(
            [DimensionScore.create(d, 50) for d in QualityDimension],
            assessed_at=moment,
        )
        assert score.assessed_at == moment

    def test_inconsistent_total_rejected(self) -> None:
        dims = tuple(DimensionScore.create(d, 50) for d in QualityDimension)
        with pytest.raises(ValidationError):
            QualityScore(dimensions=dims, total_score=99)

    def test_feedback_from_tuple(self) -> None:
        score = QualityScore.from_scores(
            {d: (60, f"{d.value} note") for d in QualityDimension}
        )
        assert score.get_dimension(QualityDimension.EVIDENCE).feedback == "evidence note"


class TestQualityScoreQueries:
    def test_strongest_and_weakest(self) -> None:
        score = _score(atomicity=90, evidence=10)
        assert score.strongest().dimension is QualityDimension.ATOMICITY
        assert score.weakest().dimension is QualityDimension.EVIDENCE

    def test_ties_resolve_to_first_in_catalog_order(self) -> None:
        score = _score()
        assert score.strongest().dimension is QualityDimension.ATOMICITY
        assert score.weakest().dimension is QualityDimension.ATOMICITY

    def test_dimensions_needing_improvement(self) -> None:
        score = _score(atomicity=90, connectivity=80, clarity=70, evidence=40, originality=69)
        needing = score.dimensions_needing_improvement()
        assert [d.dimension for d in needing] == [
            QualityDimension.EVIDENCE,
            QualityDimension.ORIGINALITY,
        ]

    def test_custom_threshold(self) -> None:
        score = _score(atomicity=90, connectivity=80, clarity=70, evidence=40, originality=69)
        assert len(score.dimensions_needing_improvement(threshold=85)) == 4

    def test_scores_by_dimension(self) -> None:
        score = _score(clarity=75)
        assert score.scores_by_dimension()[QualityDimension.CLARITY] == 75

    def test_is_higher_than(self) -> None:
        assert _score(atomicity=90).is_higher_than(_score())
        assert not _score().is_higher_than(_score())

    def test_status_text(self) -> None:
        assert _score(atomicity=100, connectivity=100, clarity=100, evidence=100, originality=100).status_text() == "Excellent"
        assert _score().status_text() == "Needs improvement"
