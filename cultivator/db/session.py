"""SQLAlchemy declarative base and table creation.

Provides:
- Base: DeclarativeBase for all ORM models
- create_all: create tables without migrations (local use and tests)

Engines and session factories are created by the runtime, which owns
and disposes them.
"""

from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models."""

    pass


async def create_all(bind: AsyncEngine) -> None:
    """Create every registered table on *bind*."""
    import cultivator.db.tables  # noqa: F401 (registers ORM models)

    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
