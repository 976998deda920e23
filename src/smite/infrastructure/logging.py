"""Structured logging configuration.

SQL text is logged as a structured ``sql`` field. Statements can be
arbitrarily long (bulk inserts, generated queries), so a processor clips
that field before rendering.
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

if TYPE_CHECKING:
    from smite.infrastructure.config import SmiteConfig

MAX_LOGGED_SQL = 512


def clip_sql(_logger: WrappedLogger, _method: str, event_dict: EventDict) -> EventDict:
    """Clip oversized ``sql`` fields to MAX_LOGGED_SQL characters."""
    sql = event_dict.get("sql")
    if isinstance(sql, str) and len(sql) > MAX_LOGGED_SQL:
        event_dict["sql"] = sql[:MAX_LOGGED_SQL] + "..."
        event_dict["sql_length"] = len(sql)
    return event_dict


def setup_logging(
    level: str = "INFO",
    log_format: str = "json",
) -> None:
    """
    Set up structured logging with structlog.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log format ('json' or 'console')
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper()),
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        clip_sql,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if log_format == "json":
        processors: list[Processor] = [
            *shared_processors,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def setup_logging_from_config(config: SmiteConfig) -> None:
    """Configure logging from the observability section of config."""
    setup_logging(
        level=config.observability.log_level,
        log_format=config.observability.log_format,
    )


def get_logger(name: str | None = None, **initial_context: Any) -> structlog.BoundLogger:
    """
    Get a bound logger instance.

    Args:
        name: Logger name (module name typically)
        **initial_context: Initial context to bind to the logger

    Returns:
        A bound structlog logger
    """
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger
