"""SQLAlchemy ORM table models.

Uses FlexJSON (JSONB on Postgres, JSON on SQLite) for the per-dimension
score map.
"""

from sqlalchemy import BigInteger, Integer, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import JSON

from cultivator.db.session import Base

# JSONB on PostgreSQL, plain JSON on SQLite (for tests)
FlexJSON = JSONB().with_variant(JSON(), "sqlite")


class AssessmentRecordRow(Base):
    """One history snapshot. ``position`` preserves insertion order per note."""

    __tablename__ = "assessment_records"
    __table_args__ = (
        UniqueConstraint("note_path", "position", name="uq_assessment_records_note_position"),
    )

    record_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    note_path: Mapped[str] = mapped_column(String(1024), nullable=False, index=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    total_score: Mapped[int] = mapped_column(Integer, nullable=False)
    dimension_scores = mapped_column(FlexJSON, nullable=False, default=dict)
    maturity_level: Mapped[str] = mapped_column(String(20), nullable=False)
    assessed_at: Mapped[int] = mapped_column(BigInteger, nullable=False)
