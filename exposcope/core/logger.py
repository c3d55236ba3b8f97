"""Structured logging using structlog."""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import structlog
from structlog.typing import EventDict, Processor, WrappedLogger

# Event keys that may carry raw page text around a match
REDACTED_KEYS = frozenset({"context", "context_window", "raw_value"})


def redact_match_text(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Keep unmasked match text out of log output."""
    for key in REDACTED_KEYS & event_dict.keys():
        event_dict[key] = "[redacted]"
    return event_dict


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """
    Configure structured logging for the application.

    Reports are written to stdout, so log lines always go to stderr.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: If True, output logs in JSON format
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_match_text,
        structlog.processors.StackInfoRenderer(),
    ]

    if json_format:
        processors: list[Processor] = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(
                colors=sys.stderr.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            ),
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


def get_logger(name: Optional[str] = None, **initial_context: Any) -> structlog.BoundLogger:
    """
    Get a bound logger with optional initial context.

    Args:
        name: Logger name (optional)
        **initial_context: Initial context key-value pairs to bind

    Returns:
        A structlog bound logger instance
    """
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger


class LoggerMixin:
    """Mixin giving checks and collaborators a logger tagged with their component."""

    @property
    def logger(self) -> structlog.BoundLogger:
        return get_logger(self.__class__.__name__, component=self.__class__.__name__)


@contextmanager
def scan_context(check_name: str, target: str) -> Iterator[None]:
    """
    Tag every log line emitted during one check run.

    Context variables are copied per asyncio task, so checks running
    side by side under ``asyncio.gather`` keep their own tags.
    """
    with structlog.contextvars.bound_contextvars(check=check_name, target=target):
        yield


def log_check_start(check_name: str, target: str, **context: Any) -> None:
    """Log the start of an exposure check."""
    get_logger("checks").info(f"Starting {check_name}", action="start", **context)


def log_check_complete(
    check_name: str,
    target: str,
    success: bool,
    duration: float,
    **context: Any,
) -> None:
    """Log the completion of an exposure check."""
    logger = get_logger("checks")
    level = "info" if success else "error"
    getattr(logger, level)(
        f"{check_name} {'completed' if success else 'failed'} for {target}",
        action="complete",
        success=success,
        duration_seconds=round(duration, 2),
        **context,
    )


def log_finding(
    finding_type: str,
    severity: str,
    location: str,
    **details: Any,
) -> None:
    """Log a single finding at warning level."""
    get_logger("findings").warning(
        f"[{severity.upper()}] {finding_type} at {location}",
        finding_type=finding_type,
        severity=severity,
        location=location,
        **details,
    )
