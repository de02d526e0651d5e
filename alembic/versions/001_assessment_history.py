"""Assessment history table.

Revision ID: 001
Revises:
Create Date: 2026-10-18
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "assessment_records",
        sa.Column("record_id", sa.String(64), primary_key=True),
        sa.Column("note_path", sa.String(1024), nullable=False, index=True),
        sa.Column("position", sa.Integer, nullable=False),
        sa.Column("total_score", sa.Integer, nullable=False),
        sa.Column(
            "dimension_scores",
            postgresql.JSONB().with_variant(sa.JSON(), "sqlite"),
            nullable=False,
        ),
        sa.Column("maturity_level", sa.String(20), nullable=False),
        sa.Column("assessed_at", sa.BigInteger, nullable=False),
        sa.UniqueConstraint(
            "note_path", "position", name="uq_assessment_records_note_position"
        ),
    )


def downgrade() -> None:
    op.drop_table("assessment_records")
