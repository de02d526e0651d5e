"""Judgment provider abstraction.

A judgment provider turns a note into raw dimension scores, feedback and
suggestion payloads (for an assessment), into growth steps (for a growth
guide), into links to candidate notes, or into edits that lift a single
dimension. Prompt construction and transport belong to the provider;
the cultivator only consumes the typed outcome.

- Structured JSON output with Pydantic validation
- Explicit provider registry, created at startup and closed at shutdown

Providers judge notes. They NEVER compute composite scores or stages.
"""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

from cultivator.models.common import CultivatorBase
from cultivator.quality.assessment import (
    ConnectionSuggestion,
    EffortLevel,
    GrowthStep,
    ImprovementSuggestion,
    SplitSuggestion,
)
from cultivator.quality.maturity import MaturityLevel
from cultivator.quality.models import QualityDimension, QualityScore
from cultivator.repositories.notes import NoteSummary

T = TypeVar("T", bound=BaseModel)
P = TypeVar("P")


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class JudgmentRequest:
    """Everything a provider may use to judge a note."""

    note_path: str
    title: str
    content: str
    tags: tuple[str, ...] = ()
    outlinks: tuple[str, ...] = ()
    backlinks: tuple[str, ...] = ()


@dataclass(frozen=True)
class GrowthGuideRequest:
    """Context for a growth guide from ``current`` to ``target``."""

    note_path: str
    title: str
    content: str
    current: MaturityLevel
    target: MaturityLevel
    quality_score: QualityScore


@dataclass(frozen=True)
class ConnectionRequest:
    """A note plus the candidate notes it may link to."""

    note_path: str
    title: str
    content: str
    candidates: tuple[NoteSummary, ...]
    tags: tuple[str, ...] = ()
    max_suggestions: int = 5


@dataclass(frozen=True)
class DimensionImprovementRequest:
    """Context for lifting one dimension of a note."""

    note_path: str
    title: str
    content: str
    dimension: QualityDimension
    current_score: int
    feedback: str = ""


# ---------------------------------------------------------------------------
# Payload schemas
# ---------------------------------------------------------------------------


class DimensionJudgment(CultivatorBase):
    """Raw score and feedback for one dimension, as returned by a provider."""

    score: float
    feedback: str = ""


class DimensionJudgments(CultivatorBase):
    """One judgment per catalog dimension."""

    atomicity: DimensionJudgment
    connectivity: DimensionJudgment
    clarity: DimensionJudgment
    evidence: DimensionJudgment
    originality: DimensionJudgment

    def items(self) -> list[tuple[QualityDimension, DimensionJudgment]]:
        return [(d, getattr(self, d.value)) for d in QualityDimension]


class AssessmentJudgment(CultivatorBase):
    """Validated provider output for a note assessment."""

    dimensions: DimensionJudgments
    improvements: list[ImprovementSuggestion] = Field(default_factory=list)
    split_suggestion: SplitSuggestion | None = Field(
        default=None, alias="splitSuggestion"
    )
    connection_suggestions: list[ConnectionSuggestion] = Field(
        default_factory=list, alias="connectionSuggestions"
    )


class GrowthGuideJudgment(CultivatorBase):
    """Validated provider output for a growth guide."""

    steps: list[GrowthStep] = Field(default_factory=list)
    estimated_effort: EffortLevel = Field(
        default=EffortLevel.MEDIUM, alias="estimatedEffort"
    )


class ConnectionJudgment(CultivatorBase):
    """Validated provider output for connection suggestions."""

    connections: list[ConnectionSuggestion] = Field(default_factory=list)


class DimensionAction(CultivatorBase, frozen=True):
    """One concrete edit that should raise a dimension score."""

    action: str
    location: str | None = None
    expected_impact: str = Field(default="", alias="expectedImpact")


class DimensionImprovementJudgment(CultivatorBase):
    """Validated provider output for a single-dimension improvement.

    ``actions`` is required: a payload without it fails validation.
    """

    actions: list[DimensionAction]


# ---------------------------------------------------------------------------
# Outcome
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class JudgmentOutcome(Generic[P]):
    """Typed success (payload) or failure (error message) from a provider."""

    success: bool
    payload: P | None = None
    error: str | None = None
    raw_content: str | None = None

    @classmethod
    def ok(cls, payload: P, raw_content: str | None = None) -> JudgmentOutcome[P]:
        return cls(success=True, payload=payload, raw_content=raw_content)

    @classmethod
    def fail(cls, error: str, raw_content: str | None = None) -> JudgmentOutcome[P]:
        return cls(success=False, error=error, raw_content=raw_content)


# ---------------------------------------------------------------------------
# JSON extraction helpers
# ---------------------------------------------------------------------------

_JSON_BLOCK_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL)


def _extract_json(raw: str) -> str:
    """Extract JSON from raw provider output, stripping markdown fences."""
    match = _JSON_BLOCK_RE.search(raw)
    if match:
        return match.group(1).strip()
    return raw.strip()


def parse_structured_output(*, raw: str, schema: type[T]) -> T:
    """Parse raw provider output into a validated Pydantic model.

    Raises ValueError if JSON is invalid or fails schema validation.
    """
    cleaned = _extract_json(raw)
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON from provider: {exc}") from exc
    try:
        return schema.model_validate(data)
    except Exception as exc:
        raise ValueError(f"Schema validation failed: {exc}") from exc


# ---------------------------------------------------------------------------
# Provider contract
# ---------------------------------------------------------------------------


class JudgmentProvider(ABC):
    """A source of note judgments."""

    name: str = "provider"

    def is_available(self) -> bool:
        """Whether the provider is configured well enough to be called."""
        return True

    @abstractmethod
    async def assess(
        self, request: JudgmentRequest
    ) -> JudgmentOutcome[AssessmentJudgment]: ...

    @abstractmethod
    async def growth_guide(
        self, request: GrowthGuideRequest
    ) -> JudgmentOutcome[GrowthGuideJudgment]: ...

    @abstractmethod
    async def suggest_connections(
        self, request: ConnectionRequest
    ) -> JudgmentOutcome[ConnectionJudgment]: ...

    @abstractmethod
    async def dimension_improvement(
        self, request: DimensionImprovementRequest
    ) -> JudgmentOutcome[DimensionImprovementJudgment]: ...

    async def aclose(self) -> None:
        """Release provider resources. Default: nothing to release."""
        return None


class StaticJudgmentProvider(JudgmentProvider):
    """Provider that replays fixed raw responses.

    Useful for tests and for hosts that obtain provider output out of band.
    Raw text goes through ``parse_structured_output`` like any provider
    response would.
    """

    def __init__(
        self,
        *,
        name: str = "static",
        assessment_response: str | None = None,
        growth_guide_response: str | None = None,
        connection_response: str | None = None,
        dimension_improvement_response: str | None = None,
    ) -> None:
        self.name = name
        self._assessment_response = assessment_response
        self._growth_guide_response = growth_guide_response
        self._connection_response = connection_response
        self._dimension_improvement_response = dimension_improvement_response
        self.requests: list[
            JudgmentRequest
            | GrowthGuideRequest
            | ConnectionRequest
            | DimensionImprovementRequest
        ] = []

    def is_available(self) -> bool:
        return any(
            response is not None
            for response in (
                self._assessment_response,
                self._growth_guide_response,
                self._connection_response,
                self._dimension_improvement_response,
            )
        )

    async def assess(
        self, request: JudgmentRequest
    ) -> JudgmentOutcome[AssessmentJudgment]:
        self.requests.append(request)
        return self._replay(self._assessment_response, AssessmentJudgment)

    async def growth_guide(
        self, request: GrowthGuideRequest
    ) -> JudgmentOutcome[GrowthGuideJudgment]:
        self.requests.append(request)
        return self._replay(self._growth_guide_response, GrowthGuideJudgment)

    async def suggest_connections(
        self, request: ConnectionRequest
    ) -> JudgmentOutcome[ConnectionJudgment]:
        self.requests.append(request)
        return self._replay(self._connection_response, ConnectionJudgment)

    async def dimension_improvement(
        self, request: DimensionImprovementRequest
    ) -> JudgmentOutcome[DimensionImprovementJudgment]:
        self.requests.append(request)
        return self._replay(
            self._dimension_improvement_response, DimensionImprovementJudgment
        )

    @staticmethod
    def _replay(raw: str | None, schema: type[T]) -> JudgmentOutcome[T]:
        if raw is None:
            return JudgmentOutcome.fail("No response configured.")
        try:
            parsed = parse_structured_output(raw=raw, schema=schema)
        except ValueError as exc:
            return JudgmentOutcome.fail(str(exc), raw_content=raw)
        return JudgmentOutcome.ok(parsed, raw_content=raw)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class ProviderRegistry:
    """Named judgment providers plus the currently selected one.

    Created once at startup and passed to whatever runs evaluations;
    ``close`` releases every provider at shutdown.
    """

    def __init__(self) -> None:
        self._providers: dict[str, JudgmentProvider] = {}
        self._current: str | None = None

    def register(self, name: str, provider: JudgmentProvider) -> None:
        """Add or replace a provider. The first one registered becomes current."""
        self._providers[name] = provider
        if self._current is None:
            self._current = name

    def get(self, name: str) -> JudgmentProvider | None:
        return self._providers.get(name)

    def names(self) -> list[str]:
        return list(self._providers)

    def set_current(self, name: str) -> None:
        """Select the current provider.

        Raises:
            KeyError: if *name* is not registered.
        """
        if name not in self._providers:
            msg = f"Provider {name!r} is not registered."
            raise KeyError(msg)
        self._current = name

    def current(self) -> JudgmentProvider | None:
        if self._current is None:
            return None
        return self._providers.get(self._current)

    async def close(self) -> None:
        """Close every provider and empty the registry."""
        for provider in self._providers.values():
            await provider.aclose()
        self._providers.clear()
        self._current = None
