"""Structured logging setup for Matchfolio.

configure_logging() is called once by the CLI before the system is
built. Modules that belong to one subsystem take a component logger
from get_logger(); the proxy it returns resolves the configuration on
first use, so it is safe to create at import time.
"""

import logging
from typing import Any

import structlog

_SHARED_PROCESSORS: tuple[structlog.types.Processor, ...] = (
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
)


def _level_number(level: str) -> int:
    # Unknown names fall back to INFO rather than failing start-up.
    value = logging.getLevelName(level.upper())
    return value if isinstance(value, int) else logging.INFO


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Configure structlog for the Matchfolio process.

    Args:
        level: Minimum level name to emit (DEBUG, INFO, WARNING, ERROR).
        json_output: Render JSON lines instead of the console format.
    """
    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[*_SHARED_PROCESSORS, renderer],
        wrapper_class=structlog.make_filtering_bound_logger(_level_number(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(component: str, correlation_id: str | None = None) -> Any:
    """Lazy logger with ``component`` (and ``correlation_id``) bound."""
    initial_values: dict[str, Any] = {"component": component}
    if correlation_id:
        initial_values["correlation_id"] = correlation_id
    return structlog.get_logger(**initial_values)
