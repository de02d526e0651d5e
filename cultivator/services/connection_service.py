"""Connection suggestions: links from a note to notes that already exist.

Candidates come from the note store, never from the provider. Whatever
the provider proposes is checked against those candidates, so a
suggestion can only ever point at a real note.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from cultivator.agents.judgment import ConnectionRequest, ProviderRegistry
from cultivator.quality.assessment import ConnectionSuggestion
from cultivator.repositories.notes import NoteRepository, NoteSummary

logger = logging.getLogger(__name__)

MAX_CANDIDATES = 20
MIN_CONTENT_LENGTH = 30


def keep_known_targets(
    suggestions: Iterable[ConnectionSuggestion],
    candidates: Iterable[NoteSummary],
) -> list[ConnectionSuggestion]:
    """Drop suggestions whose target is not a candidate basename.

    Matching ignores case.
    """
    known = {candidate.basename.casefold() for candidate in candidates}
    return [s for s in suggestions if s.target_note.casefold() in known]


async def candidate_notes(
    repository: NoteRepository,
    note_path: str,
    limit: int | None = MAX_CANDIDATES,
) -> list[NoteSummary]:
    """Every other note in the store, in store order, at most *limit*."""
    notes = await repository.get_all_notes()
    return [n for n in notes if n.path != note_path][:limit]


@dataclass(frozen=True)
class ConnectionOutcome:
    """Validated suggestions, or the reason there are none."""

    suggestions: tuple[ConnectionSuggestion, ...] = ()
    error: str | None = None
    raw_content: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None


class ConnectionSuggestionService:
    """Suggest links from a note to other notes in the store."""

    def __init__(
        self,
        *,
        repository: NoteRepository,
        providers: ProviderRegistry,
        max_candidates: int = MAX_CANDIDATES,
        min_content_length: int = MIN_CONTENT_LENGTH,
        enabled: bool = True,
    ) -> None:
        self._repository = repository
        self._providers = providers
        self._enabled = enabled
        self._max_candidates = max_candidates
        self._min_content_length = min_content_length

    async def suggest(
        self, note_path: str, *, max_suggestions: int = 5
    ) -> ConnectionOutcome:
        if not self._enabled:
            return ConnectionOutcome(error="Connection suggestions are disabled.")

        note = await self._repository.get_by_path(note_path)
        if note is None:
            return ConnectionOutcome(error=f"Note {note_path} not found.")

        candidates = await candidate_notes(
            self._repository, note_path, self._max_candidates
        )
        if not candidates:
            return ConnectionOutcome(error="No candidate notes to connect to.")

        if len(note.content.strip()) < self._min_content_length:
            return ConnectionOutcome(
                error="Note content is too short to suggest connections "
                f"(minimum {self._min_content_length} characters)."
            )

        provider = self._providers.current()
        if provider is None:
            return ConnectionOutcome(error="No judgment provider is configured.")

        judged = await provider.suggest_connections(
            ConnectionRequest(
                note_path=note.path,
                title=note.metadata.title or note.basename,
                content=note.content,
                candidates=tuple(candidates),
                tags=note.metadata.tags,
                max_suggestions=max_suggestions,
            )
        )
        if not judged.success or judged.payload is None:
            logger.warning(
                "Provider %s failed to suggest connections for %s: %s",
                provider.name,
                note_path,
                judged.error,
            )
            return ConnectionOutcome(
                error=judged.error or "The judgment provider request failed.",
                raw_content=judged.raw_content,
            )

        suggestions = keep_known_targets(judged.payload.connections, candidates)
        dropped = len(judged.payload.connections) - len(suggestions)
        if dropped:
            logger.debug(
                "Dropped %d connection suggestion(s) to unknown notes for %s",
                dropped,
                note_path,
            )
        return ConnectionOutcome(
            suggestions=tuple(suggestions[:max_suggestions]),
            raw_content=judged.raw_content,
        )
