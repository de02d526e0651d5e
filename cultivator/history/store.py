"""Assessment history store.

Keeps the most recent ``max_per_note`` records per note, ordered by
insertion. Storage is reached only through the injected async ``load``
and ``save`` callables, so the store has no storage dependency of its own.

Load happens once, on ``initialize`` or on the first ``add_record``.
Queries before that raise RuntimeError rather than answer from an empty
map. Every insertion writes the whole map back (write-through). A failed load degrades to empty history; a failed save
propagates to the caller. Concurrent writers are not coordinated: the
last save wins.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence

from cultivator.history.models import AssessmentRecord, ScoreDelta

logger = logging.getLogger(__name__)

HistoryMap = dict[str, list[AssessmentRecord]]
LoadHistory = Callable[
    [], Awaitable[Mapping[str, Sequence[AssessmentRecord | Mapping[str, object]]] | None]
]
SaveHistory = Callable[[HistoryMap], Awaitable[None]]


class AssessmentHistoryStore:
    """Bounded, write-through history of assessment records keyed by note path."""

    def __init__(
        self,
        max_per_note: int,
        load: LoadHistory,
        save: SaveHistory,
    ) -> None:
        if max_per_note < 1:
            msg = f"max_per_note must be at least 1, got {max_per_note}."
            raise ValueError(msg)
        self._max_per_note = max_per_note
        self._load = load
        self._save = save
        self._history: HistoryMap = {}
        self._initialized = False

    @property
    def max_per_note(self) -> int:
        return self._max_per_note

    @property
    def initialized(self) -> bool:
        return self._initialized

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Load persisted history once; later calls are no-ops.

        Any failure while loading or validating the persisted map leaves
        the store empty rather than blocking an evaluation.
        """
        if self._initialized:
            return

        self._history = {}
        try:
            data = await self._load()
            if data:
                for note_path, records in data.items():
                    self._history[note_path] = [
                        r if isinstance(r, AssessmentRecord)
                        else AssessmentRecord.model_validate(r)
                        for r in records
                    ]
        except Exception:
            logger.warning(
                "Assessment history could not be loaded; starting empty",
                exc_info=True,
            )
            self._history = {}

        self._initialized = True

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    async def add_record(self, record: AssessmentRecord) -> None:
        """Append *record*, evict the oldest beyond the cap, then persist."""
        if not self._initialized:
            await self.initialize()

        records = self._history.setdefault(record.note_path, [])
        records.append(record)

        overflow = len(records) - self._max_per_note
        if overflow > 0:
            del records[:overflow]
            logger.debug(
                "Evicted %d history record(s) for %s", overflow, record.note_path
            )

        await self._persist()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_latest_record(self, note_path: str) -> AssessmentRecord | None:
        self._require_initialized()
        records = self._history.get(note_path)
        if not records:
            return None
        return records[-1]

    def get_history(self, note_path: str) -> list[AssessmentRecord]:
        """All retained records for *note_path*, oldest first."""
        self._require_initialized()
        return list(self._history.get(note_path, []))

    def calculate_delta(
        self, note_path: str, current: AssessmentRecord
    ) -> ScoreDelta | None:
        """Compare *current* against the latest stored record for the note.

        Call before ``add_record(current)``. Dimensions missing from either
        record are skipped rather than treated as zero.

        Raises:
            RuntimeError: if the store has not been initialized.
        """
        previous = self.get_latest_record(note_path)
        if previous is None:
            return None

        dimension_deltas = {
            dimension: score - previous.dimension_scores[dimension]
            for dimension, score in current.dimension_scores.items()
            if dimension in previous.dimension_scores
        }
        return ScoreDelta(
            total_delta=current.total_score - previous.total_score,
            dimension_deltas=dimension_deltas,
            previous_assessed_at=previous.assessed_at,
        )

    def _require_initialized(self) -> None:
        if not self._initialized:
            msg = "Assessment history is not loaded; call initialize() first."
            raise RuntimeError(msg)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def _persist(self) -> None:
        snapshot = {path: list(records) for path, records in self._history.items()}
        await self._save(snapshot)
