"""Structured logging configuration for fleetwatch."""

from __future__ import annotations

import logging
import sys
from typing import Any, List, Literal, Optional, TextIO

import structlog

# Stdlib loggers that report every job execution at INFO
_CHATTY_LOGGERS = ("apscheduler.executors.default", "apscheduler.scheduler")


def configure_logging(
    log_format: Literal["json", "text"] = "json",
    log_level: str = "INFO",
    stream: Optional[TextIO] = None,
) -> None:
    """Configure structlog and stdlib logging for the service.

    Logs go to stderr by default so that ``--report`` can write clean JSON
    to stdout.

    Args:
        log_format: "json" for production, "text" for a colored console.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        stream: Where log lines are written. Defaults to stderr.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)
    output = stream or sys.stderr

    shared_processors: List[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if log_format == "json":
        renderer: List[structlog.typing.Processor] = [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        renderer = [structlog.dev.ConsoleRenderer(colors=output.isatty())]

    structlog.configure(
        processors=[*shared_processors, *renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=True,
    )

    # APScheduler and tenacity log through stdlib
    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s", stream=output, level=level)
    if level > logging.DEBUG:
        for name in _CHATTY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(**context: Any) -> structlog.typing.FilteringBoundLogger:
    """Get a logger, optionally bound to initial context (e.g. ``sweep="downtime"``)."""
    return structlog.get_logger(**context)
