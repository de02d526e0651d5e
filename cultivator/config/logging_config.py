"""Structured logging setup.

Modules log through ``logging.getLogger(__name__)``; this wires both the
stdlib root logger and structlog to the configured level and renderer.
"""

import logging

import structlog

from cultivator.config.settings import Environment, Settings

_LOG_NAME_TO_LEVEL: dict[str, int] = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_HANDLER_NAME = "cultivator"


def configure_logging(settings: Settings) -> None:
    """Configure structlog and the stdlib root logger from settings.

    Handlers the host already attached to the root logger are left alone.
    Repeated calls replace the cultivator handler instead of stacking one.
    """
    level = _LOG_NAME_TO_LEVEL[settings.LOG_LEVEL.value]
    renderer = (
        structlog.dev.ConsoleRenderer()
        if settings.ENVIRONMENT == Environment.DEV
        else structlog.processors.JSONRenderer()
    )

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    structlog.configure(
        processors=[*shared_processors, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Route stdlib records through the same renderer.
    handler = logging.StreamHandler()
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
            foreign_pre_chain=shared_processors,
        )
    )
    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == _HANDLER_NAME:
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)
