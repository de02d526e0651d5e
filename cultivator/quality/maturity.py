"""Maturity levels: the ordered growth stages a note moves through.

Stages are derived from a quality score on demand or read from the
note's frontmatter. Maturity is monotonic by policy: a level never
advertises a legal downgrade. Enforcement of that policy lives in
``cultivator.governance.maturity_policy``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class InvalidStageError(ValueError):
    """Raised when a stage identifier is not part of the maturity catalog."""

    def __init__(self, stage: object) -> None:
        self.stage = stage
        super().__init__(f"Invalid maturity level: {stage!r}")


class MaturityLevel(StrEnum):
    """Growth stages, lowest first."""

    SEED = "seed"
    SPROUT = "sprout"
    TREE = "tree"
    EVERGREEN = "evergreen"

    # ----- Catalog data -----

    @property
    def order(self) -> int:
        return MATURITY_CATALOG[self].order

    @property
    def min_quality_score(self) -> int:
        return MATURITY_CATALOG[self].min_quality_score

    @property
    def icon(self) -> str:
        return MATURITY_CATALOG[self].icon

    @property
    def display_name(self) -> str:
        return MATURITY_CATALOG[self].display_name

    @property
    def description(self) -> str:
        return MATURITY_CATALOG[self].description

    # ----- Construction -----

    @classmethod
    def create(cls, stage: str) -> MaturityLevel:
        """Return the level for *stage*.

        Raises:
            InvalidStageError: if *stage* is not a known identifier.
        """
        try:
            return cls(stage)
        except ValueError:
            raise InvalidStageError(stage) from None

    @classmethod
    def default(cls) -> MaturityLevel:
        return cls.SEED

    @classmethod
    def from_score(cls, score: float) -> MaturityLevel:
        """Highest stage whose minimum quality score is <= *score*."""
        for level in reversed(cls.all_levels()):
            if score >= level.min_quality_score:
                return level
        return cls.SEED

    @classmethod
    def from_frontmatter(cls, value: object) -> MaturityLevel:
        """Parse a frontmatter value; anything unrecognized reads as seed."""
        if not isinstance(value, str) or not value.strip():
            return cls.default()
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.default()

    @classmethod
    def all_levels(cls) -> list[MaturityLevel]:
        """All levels in ascending order."""
        return sorted(cls, key=lambda level: level.order)

    # ----- Comparison -----

    def is_higher_than(self, other: MaturityLevel) -> bool:
        return self.order > other.order

    def is_lower_than(self, other: MaturityLevel) -> bool:
        return self.order < other.order

    def can_upgrade_to(self, target: MaturityLevel) -> bool:
        return target.is_higher_than(self)

    def can_downgrade_to(self, target: MaturityLevel) -> bool:
        """Notes only grow; no downgrade is ever advertised as legal."""
        return False

    # ----- Progression -----

    def next_level(self) -> MaturityLevel | None:
        """The stage directly above this one, or None at the top."""
        levels = self.all_levels()
        index = levels.index(self)
        if index == len(levels) - 1:
            return None
        return levels[index + 1]

    def next_level_threshold(self) -> int | None:
        next_level = self.next_level()
        if next_level is None:
            return None
        return next_level.min_quality_score

    # ----- Rendering -----

    def to_frontmatter(self) -> str:
        return self.value

    def display_text(self) -> str:
        return f"{self.icon} {self.display_name}"

    def full_display_text(self) -> str:
        return f"{self.icon} {self.display_name}: {self.description}"


@dataclass(frozen=True)
class MaturityStageConfig:
    """Constant catalog data for one maturity stage."""

    order: int
    min_quality_score: int
    icon: str
    display_name: str
    description: str


MATURITY_CATALOG: dict[MaturityLevel, MaturityStageConfig] = {
    MaturityLevel.SEED: MaturityStageConfig(
        order=1,
        min_quality_score=0,
        icon="\U0001f331",
        display_name="Seed",
        description="Raw initial idea",
    ),
    MaturityLevel.SPROUT: MaturityStageConfig(
        order=2,
        min_quality_score=40,
        icon="\U0001f33f",
        display_name="Sprout",
        description="Basic structure, some links",
    ),
    MaturityLevel.TREE: MaturityStageConfig(
        order=3,
        min_quality_score=70,
        icon="\U0001f333",
        display_name="Tree",
        description="Complete atomic note, richly linked",
    ),
    MaturityLevel.EVERGREEN: MaturityStageConfig(
        order=4,
        min_quality_score=90,
        icon="\U0001f332",
        display_name="Evergreen",
        description="Continuously updated hub note",
    ),
}
