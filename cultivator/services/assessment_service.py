"""Note assessment orchestrator.

Loads a note, asks the current judgment provider for raw dimension
judgments, and turns them into a NoteAssessment. Scoring, stage
derivation and suggestion filtering all happen here; the provider only
supplies numbers and text.

When history is enabled, the score delta against the previous run is
computed and the new record stored. When callout writing is enabled, the
assessment is embedded back into the note.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from cultivator.agents.judgment import (
    AssessmentJudgment,
    JudgmentRequest,
    ProviderRegistry,
)
from cultivator.export.callout import DecodedCallout, decode_callout, upsert_callout
from cultivator.history.models import AssessmentRecord, ScoreDelta
from cultivator.history.store import AssessmentHistoryStore
from cultivator.quality.assessment import (
    ConnectionSuggestion,
    ImprovementSuggestion,
    NoteAssessment,
    SplitSuggestion,
)
from cultivator.quality.config import QualityScoringConfig
from cultivator.quality.models import DimensionScore, QualityDimension, QualityScore
from cultivator.repositories.notes import NoteData, NoteRepository, NoteSummary
from cultivator.services.connection_service import candidate_notes, keep_known_targets

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AssessmentOutcome:
    """Result of one assessment run.

    ``assessment`` is None when the run was rejected; ``error`` then says
    why. ``delta`` is None on the first recorded run for a note or when
    history is disabled.
    """

    assessment: NoteAssessment | None
    delta: ScoreDelta | None = None
    error: str | None = None
    raw_content: str | None = None

    @property
    def success(self) -> bool:
        return self.assessment is not None


class NoteAssessmentService:
    """Assess notes through the current judgment provider."""

    def __init__(
        self,
        *,
        repository: NoteRepository,
        providers: ProviderRegistry,
        history: AssessmentHistoryStore | None = None,
        config: QualityScoringConfig | None = None,
        min_content_length: int = 50,
        enable_split_suggestions: bool = True,
        enable_connection_suggestions: bool = True,
        write_callout: bool = False,
    ) -> None:
        self._repository = repository
        self._providers = providers
        self._history = history
        self._config = config or QualityScoringConfig()
        self._min_content_length = min_content_length
        self._enable_split_suggestions = enable_split_suggestions
        self._enable_connection_suggestions = enable_connection_suggestions
        self._write_callout = write_callout

    async def assess(self, note_path: str) -> AssessmentOutcome:
        """Assess the note at *note_path*.

        Unknown notes, short notes and provider failures come back as an
        outcome with an error. History save failures propagate.
        """
        note = await self._repository.get_by_path(note_path)
        if note is None:
            return self._rejected(note_path, f"Note {note_path} not found.")

        if len(note.content.strip()) < self._min_content_length:
            return self._rejected(
                note_path,
                "Note content is too short to assess "
                f"(minimum {self._min_content_length} characters).",
            )

        provider = self._providers.current()
        if provider is None:
            return self._rejected(note_path, "No judgment provider is configured.")

        outlinks = await self._repository.get_outlinks(note_path)
        backlinks = await self._repository.get_backlinks(note_path)
        request = JudgmentRequest(
            note_path=note.path,
            title=note.metadata.title or note.basename,
            content=note.content,
            tags=note.metadata.tags,
            outlinks=tuple(outlinks),
            backlinks=tuple(backlinks),
        )

        judged = await provider.assess(request)
        if not judged.success or judged.payload is None:
            logger.warning(
                "Provider %s failed to assess %s: %s",
                provider.name,
                note_path,
                judged.error,
            )
            return AssessmentOutcome(
                assessment=None,
                error=judged.error or "The judgment provider request failed.",
                raw_content=judged.raw_content,
            )

        candidates: list[NoteSummary] = []
        if (
            self._enable_connection_suggestions
            and judged.payload.connection_suggestions
        ):
            candidates = await candidate_notes(
                self._repository, note_path, limit=None
            )
        assessment = self._build_assessment(note, judged.payload, candidates)

        delta: ScoreDelta | None = None
        if self._history is not None:
            record = AssessmentRecord.from_assessment(assessment)
            if not self._history.initialized:
                await self._history.initialize()
            delta = self._history.calculate_delta(note_path, record)
            await self._history.add_record(record)

        if self._write_callout:
            await self._repository.update_content(
                note_path, upsert_callout(note.content, assessment)
            )
            logger.info("Assessment callout written to %s", note_path)

        logger.info(
            "Assessed %s: score=%d grade=%s recommended=%s",
            note_path,
            assessment.quality_score.total_score,
            assessment.quality_score.grade(),
            assessment.recommended_maturity,
        )
        return AssessmentOutcome(
            assessment=assessment, delta=delta, raw_content=judged.raw_content
        )

    async def load_previous(self, note_path: str) -> DecodedCallout | None:
        """Read back the assessment callout embedded in the note, if any."""
        note = await self._repository.get_by_path(note_path)
        if note is None:
            return None
        return decode_callout(
            note.content,
            note_id=note.note_id,
            note_path=note.path,
            config=self._config,
        )

    # ------------------------------------------------------------------
    # Building
    # ------------------------------------------------------------------

    def _build_assessment(
        self,
        note: NoteData,
        judgment: AssessmentJudgment,
        candidates: list[NoteSummary],
    ) -> NoteAssessment:
        quality_score = QualityScore.create(
            [
                DimensionScore.create(dimension, item.score, item.feedback)
                for dimension, item in judgment.dimensions.items()
            ]
        )
        return NoteAssessment.create(
            note_id=note.note_id,
            note_path=note.path,
            quality_score=quality_score,
            current_maturity=note.metadata.maturity,
            improvements=self._filter_improvements(
                judgment.improvements, quality_score
            ),
            split_suggestion=self._filter_split(
                judgment.split_suggestion, quality_score
            ),
            connection_suggestions=self._filter_connections(
                judgment.connection_suggestions, candidates
            ),
        )

    def _filter_improvements(
        self,
        improvements: list[ImprovementSuggestion],
        quality_score: QualityScore,
    ) -> list[ImprovementSuggestion]:
        """Keep suggestions for dimensions below the improvement threshold.

        Suggestions naming a dimension outside the catalog are kept.
        """
        kept: list[ImprovementSuggestion] = []
        for improvement in improvements:
            dimension = QualityDimension.from_name(improvement.dimension)
            if dimension is None:
                kept.append(improvement)
                continue
            score = quality_score.get_dimension(dimension).score
            if score < self._config.improvement_threshold:
                kept.append(improvement)
        return kept

    def _filter_split(
        self, split: SplitSuggestion | None, quality_score: QualityScore
    ) -> SplitSuggestion | None:
        if split is None or not self._enable_split_suggestions:
            return None
        atomicity = quality_score.get_dimension(QualityDimension.ATOMICITY).score
        if atomicity >= self._config.split_threshold:
            return None
        return split

    def _filter_connections(
        self,
        connections: list[ConnectionSuggestion],
        candidates: list[NoteSummary],
    ) -> list[ConnectionSuggestion]:
        """Keep suggestions that link to another note in the store."""
        if not self._enable_connection_suggestions:
            return []
        return keep_known_targets(connections, candidates)

    @staticmethod
    def _rejected(note_path: str, error: str) -> AssessmentOutcome:
        logger.info("Assessment of %s rejected: %s", note_path, error)
        return AssessmentOutcome(assessment=None, error=error)
