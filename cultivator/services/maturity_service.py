"""Apply maturity changes to notes through the maturity policy."""

from __future__ import annotations

import logging

from cultivator.governance.maturity_policy import MaturityPolicy, MaturityUpdateResult
from cultivator.quality.maturity import MaturityLevel
from cultivator.quality.models import QualityScore
from cultivator.repositories.notes import NoteRepository

logger = logging.getLogger(__name__)


class MaturityUpdateService:
    """Check a requested stage change and write it to the note."""

    def __init__(
        self,
        *,
        repository: NoteRepository,
        policy: MaturityPolicy | None = None,
    ) -> None:
        self._repository = repository
        self._policy = policy or MaturityPolicy()

    async def update(
        self,
        note_path: str,
        *,
        current: MaturityLevel,
        target: MaturityLevel | None = None,
        quality_score: QualityScore | None = None,
        force: bool = False,
    ) -> MaturityUpdateResult:
        """Apply the policy, then persist the new stage when it changed.

        A failing repository write is reported as a failed result with the
        stage left at *current*.
        """
        result = self._policy.evaluate(
            current=current,
            target=target,
            quality_score=quality_score,
            force=force,
        )
        if not result.success:
            logger.info("Maturity update for %s rejected: %s", note_path, result.error)
            return result
        if not result.changed:
            return result

        try:
            await self._repository.update_maturity_level(note_path, result.new_level)
        except Exception as exc:
            logger.warning(
                "Maturity update for %s could not be written", note_path, exc_info=True
            )
            return MaturityUpdateResult(
                success=False,
                previous_level=current,
                new_level=current,
                error=f"Maturity update failed: {exc}",
            )

        logger.info(
            "Maturity of %s updated: %s -> %s",
            note_path,
            result.previous_level,
            result.new_level,
        )
        return result
