"""Structured logging configuration for clusterwatch."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Any, List, Literal, Optional, TextIO

import structlog


def configure_logging(
    log_format: Literal["json", "text"] = "json",
    log_level: str = "INFO",
    log_file: Optional[str] = None,
) -> None:
    """Configure structlog for the application.

    The dashboard owns the terminal while it runs, so operational logs can be
    sent to a file instead of stdout.

    Args:
        log_format: Output format - "json" for production, "text" for development.
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR).
        log_file: Optional path to append log lines to instead of stdout.
    """
    shared_processors: List[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if log_format == "json":
        processors: List[structlog.typing.Processor] = [
            *shared_processors,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        # Colors only make sense on a terminal
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=log_file is None),
        ]

    level = getattr(logging, log_level.upper(), logging.INFO)

    if log_file:
        path = Path(log_file).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        stream: TextIO = open(path, "a", encoding="utf-8")
        logger_factory: Any = structlog.WriteLoggerFactory(file=stream)
    else:
        stream = sys.stdout
        logger_factory = structlog.PrintLoggerFactory()

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=logger_factory,
        cache_logger_on_first_use=True,
    )

    # Route stdlib logging (tenacity, apscheduler) to the same destination
    logging.basicConfig(
        format="%(message)s",
        stream=stream,
        level=level,
    )


def get_logger() -> structlog.stdlib.BoundLogger:
    """Get a configured structlog logger instance."""
    return structlog.get_logger()
