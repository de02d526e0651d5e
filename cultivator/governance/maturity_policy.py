"""Maturity update policy.

Maturity only grows. A requested stage change is checked here before
anything is written to the note:

- Same stage: no-op success.
- Lower stage: rejected unless forced.
- Higher stage with a quality score below the target's threshold:
  rejected unless forced.

Rejections are ordinary outcomes, reported as results rather than raised.
"""

from __future__ import annotations

from dataclasses import dataclass

from cultivator.quality.maturity import MaturityLevel
from cultivator.quality.models import QualityScore


@dataclass(frozen=True)
class MaturityUpdateResult:
    """Outcome of a requested maturity change."""

    success: bool
    previous_level: MaturityLevel
    new_level: MaturityLevel
    is_upgrade: bool = False
    error: str | None = None

    @property
    def changed(self) -> bool:
        return self.success and self.new_level != self.previous_level


@dataclass(frozen=True)
class UpgradeRecommendation:
    """Whether the quality score supports a higher stage than the current one."""

    recommended: bool
    target_level: MaturityLevel | None
    reason: str


class MaturityPolicy:
    """Decide whether a maturity transition is allowed."""

    def evaluate(
        self,
        *,
        current: MaturityLevel,
        target: MaturityLevel | None = None,
        quality_score: QualityScore | None = None,
        force: bool = False,
    ) -> MaturityUpdateResult:
        """Check a transition from *current*.

        The target is *target* when given, otherwise the stage the quality
        score recommends. Without either, the request fails.
        """
        if target is not None:
            new_level = target
        elif quality_score is not None:
            new_level = MaturityLevel.from_score(quality_score.total_score)
        else:
            return self._reject(
                current, "A target maturity or a quality score is required."
            )

        if new_level == current:
            return MaturityUpdateResult(
                success=True, previous_level=current, new_level=current
            )

        if new_level.is_lower_than(current) and not force:
            return self._reject(
                current,
                "Maturity cannot be lowered: "
                f"{current.display_text()} → {new_level.display_text()}",
            )

        is_upgrade = new_level.is_higher_than(current)
        if is_upgrade and quality_score is not None and not force:
            threshold = new_level.min_quality_score
            if quality_score.total_score < threshold:
                return self._reject(
                    current,
                    f"Upgrading to {new_level.display_text()} requires a quality "
                    f"score of at least {threshold} (current: {quality_score.total_score}).",
                )

        return MaturityUpdateResult(
            success=True,
            previous_level=current,
            new_level=new_level,
            is_upgrade=is_upgrade,
        )

    @staticmethod
    def upgrade_recommendation(
        current: MaturityLevel, quality_score: QualityScore
    ) -> UpgradeRecommendation:
        """Report whether *quality_score* meets a stage above *current*."""
        recommended = MaturityLevel.from_score(quality_score.total_score)
        if not recommended.is_higher_than(current):
            return UpgradeRecommendation(
                recommended=False,
                target_level=None,
                reason="The quality score does not meet a higher maturity threshold.",
            )
        return UpgradeRecommendation(
            recommended=True,
            target_level=recommended,
            reason=(
                f"Quality score {quality_score.total_score} meets the "
                f"{recommended.display_text()} threshold ({recommended.min_quality_score})."
            ),
        )

    @staticmethod
    def _reject(current: MaturityLevel, error: str) -> MaturityUpdateResult:
        return MaturityUpdateResult(
            success=False,
            previous_level=current,
            new_level=current,
            error=error,
        )
