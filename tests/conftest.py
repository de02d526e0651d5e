"""Shared pytest fixtures for the cultivator test suite.

Provides:
- anyio_backend: run async tests on asyncio only
- db_engine: in-memory SQLite async engine with all tables
- db_session: SAVEPOINT-isolated async session (app commits don't leak)
- notes: in-memory note repository with one assessable note
"""

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import StaticPool

from cultivator.db.session import Base
import cultivator.db.tables  # noqa: F401 (registers ORM models on Base.metadata)
from cultivator.repositories.notes import InMemoryNoteRepository, NoteMetadata

NOTE_BODY = (
    "Spaced repetition works because retrieval strengthens memory more than "
    "re-reading does. See [[Testing effect]] for the underlying study."
)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite async engine with all tables."""
    eng = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Provide a SAVEPOINT-isolated session.

    The outer transaction is never committed; it rolls back at teardown.
    Application code calling session.commit() triggers a SAVEPOINT release,
    which is then restarted so subsequent operations stay in the same
    outer transaction.
    """
    async with db_engine.connect() as conn:
        trans = await conn.begin()
        session = AsyncSession(bind=conn, expire_on_commit=False)

        nested = await conn.begin_nested()

        @event.listens_for(session.sync_session, "after_transaction_end")
        def restart_savepoint(sync_session, transaction):  # noqa: ARG001
            nonlocal nested
            if transaction.nested and not transaction._parent.nested:
                nested = conn.sync_connection.begin_nested()

        yield session

        await session.close()
        await trans.rollback()


@pytest.fixture
def notes() -> InMemoryNoteRepository:
    repo = InMemoryNoteRepository()
    repo.add_note(
        "zettel/spaced-repetition.md",
        NOTE_BODY,
        metadata=NoteMetadata(
            title="Spaced repetition",
            tags=("learning",),
            growth_stage="seed",
        ),
        outlinks=["Testing effect"],
    )
    repo.add_note(
        "zettel/Testing effect.md",
        "Retrieval practice improves long-term retention compared with restudy.",
        outlinks=["zettel/spaced-repetition.md"],
    )
    repo.add_note("zettel/stub.md", "Too short.")
    return repo
