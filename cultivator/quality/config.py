"""Quality scoring configuration.

Thresholds that decide which dimensions get improvement suggestions,
when a split is proposed, and how a priority is re-derived from a score
when it cannot be read back from a persisted callout.
"""

from __future__ import annotations

from pydantic import Field

from cultivator.models.common import CultivatorBase


class QualityScoringConfig(CultivatorBase):
    """Configuration for assessment construction and callout decoding."""

    improvement_threshold: int = Field(
        default=70,
        ge=0,
        le=100,
        description="Dimensions scoring below this receive improvement suggestions.",
    )
    split_threshold: int = Field(
        default=50,
        ge=0,
        le=100,
        description="Atomicity below this keeps the split suggestion.",
    )
    # (inclusive lower bound, priority), highest first; below all -> "high".
    decoded_priority_bands: list[tuple[int, str]] = Field(
        default_factory=lambda: [
            (80, "low"),
            (60, "medium"),
        ],
    )
