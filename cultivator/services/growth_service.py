"""Growth guides: concrete steps from the current stage to the next one."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from cultivator.agents.judgment import GrowthGuideRequest, ProviderRegistry
from cultivator.quality.assessment import EffortLevel, GrowthGuide, GrowthStep
from cultivator.quality.maturity import MaturityLevel
from cultivator.quality.models import QualityScore
from cultivator.repositories.notes import NoteData

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GrowthGuideOutcome:
    """A guide, or the reason there is none."""

    guide: GrowthGuide | None
    error: str | None = None
    raw_content: str | None = None


class GrowthGuideService:
    """Build a growth guide for a note at a given stage and score."""

    def __init__(self, *, providers: ProviderRegistry) -> None:
        self._providers = providers

    async def guide(
        self,
        note: NoteData,
        *,
        current: MaturityLevel,
        quality_score: QualityScore,
    ) -> GrowthGuideOutcome:
        """Guide *note* from *current* towards the next stage.

        - Evergreen notes get no guide.
        - A score that already meets the next threshold gets a single
          low-effort step: update the stage.
        - Otherwise the provider supplies the steps.
        """
        target = current.next_level()
        if target is None:
            return GrowthGuideOutcome(
                guide=None,
                error=f"The note is already at the highest maturity ({current.display_text()}).",
            )

        required = target.min_quality_score
        if quality_score.total_score >= required:
            step = GrowthStep(
                step=1,
                action="Update the maturity stage.",
                expected_impact=f"{current.display_text()} → {target.display_text()}",
            )
            return GrowthGuideOutcome(
                guide=GrowthGuide(
                    current_level=current,
                    target_level=target,
                    required_score=required,
                    current_score=quality_score.total_score,
                    steps=(step,),
                    estimated_effort=EffortLevel.LOW,
                )
            )

        provider = self._providers.current()
        if provider is None:
            return GrowthGuideOutcome(
                guide=None, error="No judgment provider is configured."
            )

        judged = await provider.growth_guide(
            GrowthGuideRequest(
                note_path=note.path,
                title=note.metadata.title or note.basename,
                content=note.content,
                current=current,
                target=target,
                quality_score=quality_score,
            )
        )
        if not judged.success or judged.payload is None:
            logger.warning(
                "Provider %s failed to build a growth guide for %s: %s",
                provider.name,
                note.path,
                judged.error,
            )
            return GrowthGuideOutcome(
                guide=None,
                error=judged.error or "The judgment provider request failed.",
                raw_content=judged.raw_content,
            )

        return GrowthGuideOutcome(
            guide=GrowthGuide(
                current_level=current,
                target_level=target,
                required_score=required,
                current_score=quality_score.total_score,
                steps=tuple(judged.payload.steps),
                estimated_effort=judged.payload.estimated_effort,
            ),
            raw_content=judged.raw_content,
        )
