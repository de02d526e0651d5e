"""Assessment callout codec.

Embeds the latest assessment inside the note as a markdown callout and
reads it back. The block grammar is defined once, here, and both
directions are written against it::

    > [!cultivator] {icon} {stage} · Note quality · {YYYY-MM-DD}
    > **Score**: {total}/100 ({grade})
    > **Recommended**: {current} → {recommended}
    >
    > | Dimension | Score | Feedback |
    > | --- | --- | --- |
    > | {icon} {dimension} | {score} | {feedback} |

The marker line names the recommended stage. The ``Recommended`` line
only appears when an upgrade is recommended. There is one table row per
catalog dimension. A block is the marker line plus every contiguous line
that starts with ``>``.

The round trip is lossy by construction: feedback is escaped, flattened
and truncated; priorities are re-derived from scores; the current
maturity is not stored.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, timezone

from cultivator.quality.assessment import (
    ImprovementPriority,
    ImprovementSuggestion,
    NoteAssessment,
)
from cultivator.quality.config import QualityScoringConfig
from cultivator.quality.maturity import MaturityLevel
from cultivator.quality.models import DimensionScore, QualityDimension, QualityScore

# ---------------------------------------------------------------------------
# Grammar
# ---------------------------------------------------------------------------

CALLOUT_TYPE = "cultivator"
FEEDBACK_MAX_LENGTH = 100
ELLIPSIS = "…"

_QUOTE = ">"
_MARKER = f"{_QUOTE} [!{CALLOUT_TYPE}]"
_TITLE = "Note quality"
_TABLE_HEADER = f"{_QUOTE} | Dimension | Score | Feedback |"
_TABLE_SEPARATOR = f"{_QUOTE} | --- | --- | --- |"

_BLOCK_RE = re.compile(
    rf"^{re.escape(_MARKER)}[^\n]*(?:\n{_QUOTE}[^\n]*)*",
    re.MULTILINE,
)
_SCORE_RE = re.compile(r"\*\*Score\*\*:\s*(\d+)")
_DATE_RE = re.compile(r"(\d{4})-(\d{2})-(\d{2})")
_ROW_RE = re.compile(rf"^{_QUOTE}\s*\|(.*)\|\s*$")
_CELL_SPLIT_RE = re.compile(r"(?<!\\)\|")
_SEPARATOR_CELL_RE = re.compile(r"^:?-{3,}:?$")
_INT_RE = re.compile(r"-?\d+")
_NEWLINES_RE = re.compile(r"\s*[\r\n]+\s*")


# ---------------------------------------------------------------------------
# Decoded shapes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CalloutRow:
    """One parsed table row."""

    dimension_name: str
    score: int
    feedback: str
    priority: ImprovementPriority


@dataclass(frozen=True)
class DecodedCallout:
    """Best-effort reconstruction of a persisted callout.

    ``total_score`` and ``recommended_maturity`` are the values written in
    the block; ``assessment`` is rebuilt from the table rows, so the two
    only disagree when the block was edited by hand.
    """

    assessment: NoteAssessment
    total_score: int
    recommended_maturity: MaturityLevel
    assessed_on: date | None
    rows: tuple[CalloutRow, ...]


# ---------------------------------------------------------------------------
# Encode
# ---------------------------------------------------------------------------


def sanitize_feedback(feedback: str) -> str:
    """Flatten, truncate, and pipe-escape feedback for a table cell."""
    text = _NEWLINES_RE.sub(" ", feedback).strip()
    if len(text) > FEEDBACK_MAX_LENGTH:
        text = text[: FEEDBACK_MAX_LENGTH - len(ELLIPSIS)] + ELLIPSIS
    return text.replace("|", "\\|")


def encode_callout(assessment: NoteAssessment) -> str:
    """Render *assessment* as a callout block (no trailing newline)."""
    score = assessment.quality_score
    recommended = assessment.recommended_maturity
    assessed_on = assessment.assessed_at.astimezone(timezone.utc).date().isoformat()

    lines = [
        f"{_MARKER} {recommended.display_text()} · {_TITLE} · {assessed_on}",
        f"{_QUOTE} **Score**: {score.total_score}/100 ({score.grade()})",
    ]
    if assessment.is_maturity_upgrade_recommended():
        lines.append(
            f"{_QUOTE} **Recommended**: "
            f"{assessment.current_maturity.display_text()} → {recommended.display_text()}"
        )
    lines.append(_QUOTE)
    lines.append(_TABLE_HEADER)
    lines.append(_TABLE_SEPARATOR)
    for dimension_score in score.dimensions:
        dimension = dimension_score.dimension
        lines.append(
            f"{_QUOTE} | {dimension.icon} {dimension.display_name} "
            f"| {dimension_score.score} "
            f"| {sanitize_feedback(dimension_score.feedback)} |"
        )
    return "\n".join(lines)


def find_callout(content: str) -> re.Match[str] | None:
    """Locate the first callout block in *content*."""
    return _BLOCK_RE.search(content)


def upsert_callout(content: str, assessment: NoteAssessment) -> str:
    """Replace the existing callout in place, or append a new one."""
    block = encode_callout(assessment)
    match = find_callout(content)
    if match is not None:
        return content[: match.start()] + block + content[match.end():]

    trimmed = content.rstrip()
    if not trimmed:
        return block + "\n"
    return f"{trimmed}\n\n{block}\n"


# ---------------------------------------------------------------------------
# Decode
# ---------------------------------------------------------------------------


def derive_priority(
    score: int, config: QualityScoringConfig | None = None
) -> ImprovementPriority:
    """Approximate a priority from a score; the original priority is not stored."""
    bands = (config or QualityScoringConfig()).decoded_priority_bands
    for lower_bound, priority in bands:
        if score >= lower_bound:
            return ImprovementPriority(priority)
    return ImprovementPriority.HIGH


def decode_callout(
    content: str,
    *,
    note_id: str = "",
    note_path: str = "",
    config: QualityScoringConfig | None = None,
) -> DecodedCallout | None:
    """Parse the callout in *content*; None when the note has none.

    Never raises on malformed blocks: a missing score reads as 0, an
    unknown stage as seed, and a missing dimension row as score 0 with
    empty feedback.
    """
    match = find_callout(content)
    if match is None:
        return None

    lines = match.group(0).split("\n")
    header = lines[0]

    score_match = _SCORE_RE.search(match.group(0))
    total_score = int(score_match.group(1)) if score_match else 0

    recommended = _stage_from_header(header)
    assessed_on = _date_from_header(header)

    rows = tuple(
        row for row in (_parse_row(line, config) for line in lines[1:]) if row is not None
    )

    dimension_scores: list[DimensionScore] = []
    for dimension in QualityDimension:
        row = _row_for(dimension, rows)
        if row is None:
            dimension_scores.append(DimensionScore.create(dimension, 0, ""))
        else:
            dimension_scores.append(
                DimensionScore.create(dimension, row.score, row.feedback)
            )

    assessed_at = (
        datetime(assessed_on.year, assessed_on.month, assessed_on.day, tzinfo=timezone.utc)
        if assessed_on is not None
        else None
    )
    quality_score = QualityScore.create(dimension_scores, assessed_at=assessed_at)

    improvements = [
        ImprovementSuggestion(
            dimension=row.dimension_name,
            priority=row.priority,
            suggestion=row.feedback,
        )
        for row in rows
    ]

    assessment = NoteAssessment.create(
        note_id=note_id,
        note_path=note_path,
        quality_score=quality_score,
        current_maturity=MaturityLevel.default(),
        improvements=improvements,
    )
    return DecodedCallout(
        assessment=assessment,
        total_score=total_score,
        recommended_maturity=recommended,
        assessed_on=assessed_on,
        rows=rows,
    )


def _stage_from_header(header: str) -> MaturityLevel:
    # Highest stage first so the most specific name wins.
    for level in reversed(MaturityLevel.all_levels()):
        if level.display_name in header:
            return level
    return MaturityLevel.default()


def _date_from_header(header: str) -> date | None:
    found = _DATE_RE.search(header)
    if found is None:
        return None
    try:
        return date(int(found.group(1)), int(found.group(2)), int(found.group(3)))
    except ValueError:
        return None


def _parse_row(line: str, config: QualityScoringConfig | None) -> CalloutRow | None:
    found = _ROW_RE.match(line)
    if found is None:
        return None

    cells = [c.strip() for c in _CELL_SPLIT_RE.split(found.group(1))]
    if not cells or not cells[0]:
        return None
    if cells[0].lower() == "dimension" or _SEPARATOR_CELL_RE.match(cells[0]):
        return None

    name = cells[0]
    dimension = _dimension_in(name)
    if dimension is not None:
        name = dimension.display_name

    score = 0
    if len(cells) > 1:
        number = _INT_RE.search(cells[1])
        if number is not None:
            score = min(100, max(0, int(number.group(0))))

    feedback = "|".join(cells[2:]) if len(cells) > 2 else ""
    feedback = feedback.replace("\\|", "|")

    return CalloutRow(
        dimension_name=name,
        score=score,
        feedback=feedback,
        priority=derive_priority(score, config),
    )


def _dimension_in(cell: str) -> QualityDimension | None:
    lowered = cell.lower()
    for dimension in QualityDimension:
        if dimension.display_name.lower() in lowered or dimension.value in lowered:
            return dimension
    return None


def _row_for(
    dimension: QualityDimension, rows: tuple[CalloutRow, ...]
) -> CalloutRow | None:
    for row in rows:
        if row.dimension_name == dimension.display_name:
            return row
    return None
