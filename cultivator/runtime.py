"""Startup and shutdown wiring.

``create_runtime`` is called once by the host: it configures logging,
builds the provider registry, the history store and the services, and
returns them together. ``shutdown`` releases what ``create_runtime``
acquired.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from cultivator.agents.judgment import JudgmentProvider, ProviderRegistry
from cultivator.config.logging_config import configure_logging
from cultivator.config.settings import Environment, Settings, get_settings
from cultivator.db.session import create_all
from cultivator.history.store import AssessmentHistoryStore, LoadHistory, SaveHistory
from cultivator.repositories.history import SqlHistoryBackend
from cultivator.repositories.notes import NoteRepository
from cultivator.services.assessment_service import NoteAssessmentService
from cultivator.services.connection_service import ConnectionSuggestionService
from cultivator.services.growth_service import GrowthGuideService
from cultivator.services.improvement_service import DimensionImprovementService
from cultivator.services.maturity_service import MaturityUpdateService

logger = logging.getLogger(__name__)


@dataclass
class CultivatorRuntime:
    """Everything a host needs after startup."""

    settings: Settings
    repository: NoteRepository
    providers: ProviderRegistry
    history: AssessmentHistoryStore | None
    assessments: NoteAssessmentService
    maturity: MaturityUpdateService
    growth: GrowthGuideService
    connections: ConnectionSuggestionService
    improvements: DimensionImprovementService
    engine: AsyncEngine | None = None

    async def shutdown(self) -> None:
        """Close providers and dispose the engine this runtime created."""
        await self.providers.close()
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None
        logger.info("Cultivator runtime shut down")


async def create_runtime(
    settings: Settings | None = None,
    *,
    repository: NoteRepository,
    providers: Iterable[JudgmentProvider] = (),
    load_history: LoadHistory | None = None,
    save_history: SaveHistory | None = None,
) -> CultivatorRuntime:
    """Build a runtime from settings.

    History goes through *load_history*/*save_history* when both are
    given; otherwise a SQL backend is created on ``DATABASE_URL`` and its
    tables are created if missing, and the engine is owned (and later
    disposed) by the runtime.

    The repository reads and writes the growth stage under
    ``FRONTMATTER_KEY``.
    """
    settings = settings or get_settings()
    configure_logging(settings)
    repository.stage_key = settings.FRONTMATTER_KEY

    registry = ProviderRegistry()
    for provider in providers:
        registry.register(provider.name, provider)
    if settings.DEFAULT_PROVIDER in registry.names():
        registry.set_current(settings.DEFAULT_PROVIDER)

    engine: AsyncEngine | None = None
    history: AssessmentHistoryStore | None = None
    if settings.HISTORY_ENABLED:
        if load_history is None or save_history is None:
            engine = create_async_engine(
                settings.DATABASE_URL,
                echo=(
                    settings.ENVIRONMENT == Environment.DEV
                    and settings.LOG_LEVEL == "DEBUG"
                ),
                pool_pre_ping=True,
            )
            await create_all(engine)
            backend = SqlHistoryBackend(
                async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
            )
            load_history, save_history = backend.load, backend.save
        history = AssessmentHistoryStore(
            settings.HISTORY_MAX_PER_NOTE, load_history, save_history
        )
        await history.initialize()

    runtime = CultivatorRuntime(
        settings=settings,
        repository=repository,
        providers=registry,
        history=history,
        assessments=NoteAssessmentService(
            repository=repository,
            providers=registry,
            history=history,
            min_content_length=settings.MIN_CONTENT_LENGTH,
            enable_split_suggestions=settings.ENABLE_SPLIT_SUGGESTIONS,
            enable_connection_suggestions=settings.ENABLE_CONNECTION_SUGGESTIONS,
            write_callout=settings.WRITE_CALLOUT,
        ),
        maturity=MaturityUpdateService(repository=repository),
        growth=GrowthGuideService(providers=registry),
        connections=ConnectionSuggestionService(
            repository=repository,
            providers=registry,
            enabled=settings.ENABLE_CONNECTION_SUGGESTIONS,
        ),
        improvements=DimensionImprovementService(providers=registry),
        engine=engine,
    )
    logger.info(
        "Cultivator runtime started: providers=%s current=%s history=%s",
        registry.names(),
        registry.current().name if registry.current() else None,
        settings.HISTORY_ENABLED,
    )
    return runtime
