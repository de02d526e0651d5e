"""Targeted edits for one weak quality dimension."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from cultivator.agents.judgment import (
    DimensionAction,
    DimensionImprovementRequest,
    ProviderRegistry,
)
from cultivator.quality.models import QualityDimension
from cultivator.repositories.notes import NoteData

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DimensionImprovementOutcome:
    """Actions for one dimension, or the reason there are none."""

    actions: tuple[DimensionAction, ...] = ()
    error: str | None = None
    raw_content: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None


class DimensionImprovementService:
    """Ask the current provider how to lift a single dimension of a note."""

    def __init__(self, *, providers: ProviderRegistry) -> None:
        self._providers = providers

    async def improve(
        self,
        note: NoteData,
        *,
        dimension: QualityDimension,
        current_score: int,
        feedback: str = "",
    ) -> DimensionImprovementOutcome:
        """Concrete actions for *dimension* of *note*.

        Provider failures and unparseable output come back as an outcome
        with no actions and an error.
        """
        provider = self._providers.current()
        if provider is None:
            return DimensionImprovementOutcome(
                error="No judgment provider is configured."
            )

        judged = await provider.dimension_improvement(
            DimensionImprovementRequest(
                note_path=note.path,
                title=note.metadata.title or note.basename,
                content=note.content,
                dimension=dimension,
                current_score=current_score,
                feedback=feedback,
            )
        )
        if not judged.success or judged.payload is None:
            logger.warning(
                "Provider %s failed to suggest %s improvements for %s: %s",
                provider.name,
                dimension,
                note.path,
                judged.error,
            )
            return DimensionImprovementOutcome(
                error=judged.error or "The judgment provider request failed.",
                raw_content=judged.raw_content,
            )

        return DimensionImprovementOutcome(
            actions=tuple(judged.payload.actions),
            raw_content=judged.raw_content,
        )
