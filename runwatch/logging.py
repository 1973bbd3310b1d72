"""structlog setup for runwatch.

Poll ticks, GraphQL requests and emitted events all log through loggers from
``get_logger``. ``configure_logging`` is called once by the CLI with the
``logging`` section of the loaded config.
"""

import logging
import sys
from typing import TextIO

import structlog

from runwatch.config import LoggingConfig
from runwatch.exceptions import ConfigurationError

LOG_FORMATS = ("console", "json")


def _resolve_level(level: str) -> int:
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        raise ConfigurationError(f"Unknown log level: {level!r}")
    return resolved


def configure_logging(config: LoggingConfig | None = None, stream: TextIO | None = None) -> None:
    """Route runwatch logs to ``stream`` (stderr by default).

    Raises:
        ConfigurationError: if the level or format is not recognised.
    """
    config = config or LoggingConfig()
    if config.format not in LOG_FORMATS:
        raise ConfigurationError(
            f"Unknown log format: {config.format!r} (expected one of {', '.join(LOG_FORMATS)})"
        )
    log_level = _resolve_level(config.level)

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.format_exc_info,
    ]
    if config.format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream or sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.BoundLogger:
    """Logger for a runwatch module, usually ``get_logger(__name__)``."""
    return structlog.get_logger(name)


log = get_logger("runwatch")
