"""Assessment history repository and SQL-backed history callbacks.

Repos take AsyncSession, call add()/flush()/execute() only, never commit().
``SqlHistoryBackend`` owns the unit of work and exposes the ``load`` and
``save`` callables that ``AssessmentHistoryStore`` expects.

The store always saves the whole map, so ``replace_all`` rewrites every
row in one transaction.
"""

from collections.abc import Mapping, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from cultivator.db.tables import AssessmentRecordRow
from cultivator.history.models import AssessmentRecord


class AssessmentHistoryRepository:
    """Repository for per-note assessment history rows."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def load_all(self) -> dict[str, list[AssessmentRecord]]:
        """Return every note's records in insertion order."""
        result = await self._session.execute(
            select(AssessmentRecordRow).order_by(
                AssessmentRecordRow.note_path,
                AssessmentRecordRow.position,
            )
        )
        history: dict[str, list[AssessmentRecord]] = {}
        for row in result.scalars():
            history.setdefault(row.note_path, []).append(_to_record(row))
        return history

    async def replace_all(
        self, history: Mapping[str, Sequence[AssessmentRecord]]
    ) -> None:
        """Replace the stored history with *history*."""
        await self._session.execute(delete(AssessmentRecordRow))
        await self._session.flush()

        for note_path, records in history.items():
            for position, record in enumerate(records):
                self._session.add(
                    AssessmentRecordRow(
                        record_id=record.record_id,
                        note_path=note_path,
                        position=position,
                        total_score=record.total_score,
                        dimension_scores={
                            str(dimension): score
                            for dimension, score in record.dimension_scores.items()
                        },
                        maturity_level=record.maturity_level.value,
                        assessed_at=record.assessed_at,
                    )
                )
        await self._session.flush()


class SqlHistoryBackend:
    """Async ``load``/``save`` callables backed by the history table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def load(self) -> dict[str, list[AssessmentRecord]]:
        async with self._session_factory() as session:
            return await AssessmentHistoryRepository(session).load_all()

    async def save(self, history: Mapping[str, Sequence[AssessmentRecord]]) -> None:
        async with self._session_factory() as session:
            try:
                await AssessmentHistoryRepository(session).replace_all(history)
                await session.commit()
            except Exception:
                await session.rollback()
                raise


def _to_record(row: AssessmentRecordRow) -> AssessmentRecord:
    return AssessmentRecord(
        record_id=row.record_id,
        note_path=row.note_path,
        total_score=row.total_score,
        dimension_scores=row.dimension_scores,
        maturity_level=row.maturity_level,
        assessed_at=row.assessed_at,
    )
