"""structlog setup for the feed database.

Library modules only call ``get_logger``; an application embedding the
store calls ``setup_logging`` once to route everything through structlog.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError

from gtfs_feeddb.config import Settings, get_settings

if TYPE_CHECKING:
    from structlog.types import EventDict, Processor

PACKAGE_LOGGER = "gtfs_feeddb"

# Drivers log every statement at DEBUG; keep them out of feed logs.
_DRIVER_LOGGERS = ("aiosqlite", "asyncpg")


def _backend_of(settings: Settings) -> str:
    try:
        return make_url(settings.database_url).get_backend_name()
    except ArgumentError:
        return "unknown"


def _add_backend(backend: str) -> Processor:
    """Stamp every event with the configured database backend."""

    def processor(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:  # noqa: ARG001
        event_dict.setdefault("backend", backend)
        return event_dict

    return processor


def setup_logging(settings: Settings | None = None) -> None:
    """Install a single stdout handler rendering structlog and stdlib records alike.

    Development gets the colored console renderer; other environments emit
    one JSON object per line.
    """
    settings = settings or get_settings()
    json_output = settings.environment != "development"

    shared: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        _add_backend(_backend_of(settings)),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if json_output:
        shared.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(settings.log_level.upper())

    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if settings.debug else logging.WARNING
    )
    for name in _DRIVER_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Logger for ``name``, defaulting to the package logger."""
    return structlog.stdlib.get_logger(name or PACKAGE_LOGGER)
