"""Note repository contract and in-memory implementation.

The document store itself belongs to the host application. This module
defines what the cultivator needs from it, plus an in-memory store used
by tests and by hosts that keep notes in memory.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping

from pydantic import Field

from cultivator.models.common import CultivatorBase
from cultivator.quality.maturity import MaturityLevel

DEFAULT_STAGE_KEY = "growth-stage"

_KNOWN_KEYS = ("title", "tags", "aliases", "created", "modified")


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class NoteMetadata(CultivatorBase, frozen=True):
    """Recognized frontmatter fields of a note.

    Keys the cultivator does not use are kept verbatim in ``extra`` and
    written back unchanged by ``to_frontmatter``. ``stage_key`` is the
    frontmatter key the growth stage was read from and is written back to.
    """

    title: str = ""
    tags: tuple[str, ...] = ()
    aliases: tuple[str, ...] = ()
    created: str | None = None
    modified: str | None = None
    growth_stage: str | None = None
    stage_key: str = DEFAULT_STAGE_KEY
    extra: dict[str, object] = Field(default_factory=dict)

    @classmethod
    def from_frontmatter(
        cls,
        raw: Mapping[str, object] | None,
        stage_key: str = DEFAULT_STAGE_KEY,
    ) -> NoteMetadata:
        raw = dict(raw or {})
        stage = raw.pop(stage_key, None)
        known = {key: raw.pop(key) for key in _KNOWN_KEYS if key in raw}
        for key in ("tags", "aliases"):
            value = known.get(key)
            if isinstance(value, str):
                known[key] = (value,)
            elif value is None:
                known.pop(key, None)
        for key in ("title", "created", "modified"):
            if known.get(key) is not None:
                known[key] = str(known[key])
            else:
                known.pop(key, None)
        return cls(
            **known,
            growth_stage=str(stage) if stage is not None else None,
            stage_key=stage_key,
            extra=raw,
        )

    def to_frontmatter(self, stage_key: str | None = None) -> dict[str, object]:
        stage_key = stage_key or self.stage_key
        data: dict[str, object] = dict(self.extra)
        if self.title:
            data["title"] = self.title
        if self.tags:
            data["tags"] = list(self.tags)
        if self.aliases:
            data["aliases"] = list(self.aliases)
        if self.created is not None:
            data["created"] = self.created
        if self.modified is not None:
            data["modified"] = self.modified
        if self.growth_stage is not None:
            data[stage_key] = self.growth_stage
        return data

    @property
    def maturity(self) -> MaturityLevel:
        return MaturityLevel.from_frontmatter(self.growth_stage)


class NoteData(CultivatorBase, frozen=True):
    """A note as read from the store."""

    note_id: str
    path: str
    basename: str
    content: str
    metadata: NoteMetadata = Field(default_factory=NoteMetadata)


class NoteSummary(CultivatorBase, frozen=True):
    """Listing entry for a note."""

    note_id: str
    path: str
    basename: str
    tags: tuple[str, ...] = ()
    maturity_level: MaturityLevel = MaturityLevel.SEED
    link_count: int = 0
    backlink_count: int = 0


# ---------------------------------------------------------------------------
# Contract
# ---------------------------------------------------------------------------


class NoteRepository(ABC):
    """What the cultivator reads from and writes to the document store.

    ``stage_key`` names the frontmatter key that holds the growth stage.
    """

    stage_key: str = DEFAULT_STAGE_KEY

    @abstractmethod
    async def get_by_path(self, path: str) -> NoteData | None: ...

    @abstractmethod
    async def get_all_notes(self) -> list[NoteSummary]: ...

    @abstractmethod
    async def get_outlinks(self, path: str) -> list[str]: ...

    @abstractmethod
    async def get_backlinks(self, path: str) -> list[str]: ...

    @abstractmethod
    async def update_maturity_level(self, path: str, level: MaturityLevel) -> None: ...

    @abstractmethod
    async def update_content(self, path: str, content: str) -> None: ...


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------


class InMemoryNoteRepository(NoteRepository):
    """In-memory implementation for tests and embedded hosts."""

    def __init__(self, *, stage_key: str = DEFAULT_STAGE_KEY) -> None:
        self.stage_key = stage_key
        self._notes: dict[str, NoteData] = {}
        self._outlinks: dict[str, list[str]] = {}

    def add_note(
        self,
        path: str,
        content: str,
        *,
        metadata: NoteMetadata | None = None,
        frontmatter: Mapping[str, object] | None = None,
        outlinks: Iterable[str] = (),
    ) -> NoteData:
        """Store a note. Raw *frontmatter* is read with ``stage_key``."""
        basename = path.rsplit("/", 1)[-1].removesuffix(".md")
        if frontmatter is not None:
            metadata = NoteMetadata.from_frontmatter(frontmatter, self.stage_key)
        elif metadata is None:
            metadata = NoteMetadata(title=basename, stage_key=self.stage_key)
        note = NoteData(
            note_id=path,
            path=path,
            basename=basename,
            content=content,
            metadata=metadata,
        )
        self._notes[path] = note
        self._outlinks[path] = list(outlinks)
        return note

    async def get_by_path(self, path: str) -> NoteData | None:
        return self._notes.get(path)

    async def get_all_notes(self) -> list[NoteSummary]:
        return [
            NoteSummary(
                note_id=note.note_id,
                path=note.path,
                basename=note.basename,
                tags=note.metadata.tags,
                maturity_level=note.metadata.maturity,
                link_count=len(self._outlinks.get(note.path, [])),
                backlink_count=len(self._backlinks_of(note)),
            )
            for note in self._notes.values()
        ]

    async def get_outlinks(self, path: str) -> list[str]:
        return list(self._outlinks.get(path, []))

    async def get_backlinks(self, path: str) -> list[str]:
        note = self._notes.get(path)
        if note is None:
            return []
        return self._backlinks_of(note)

    async def update_maturity_level(self, path: str, level: MaturityLevel) -> None:
        note = self._require(path)
        metadata = note.metadata.model_copy(
            update={
                "growth_stage": level.to_frontmatter(),
                "stage_key": self.stage_key,
            }
        )
        self._notes[path] = note.model_copy(update={"metadata": metadata})

    async def update_content(self, path: str, content: str) -> None:
        note = self._require(path)
        self._notes[path] = note.model_copy(update={"content": content})

    def _require(self, path: str) -> NoteData:
        if path not in self._notes:
            msg = f"Note {path} not found."
            raise KeyError(msg)
        return self._notes[path]

    def _backlinks_of(self, note: NoteData) -> list[str]:
        targets = {note.path, note.basename}
        return [
            source
            for source, links in self._outlinks.items()
            if source != note.path and targets.intersection(links)
        ]
