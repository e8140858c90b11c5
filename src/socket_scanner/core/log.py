"""structlog setup for command line entry points.

Library code only calls ``structlog.get_logger()``; the level filter is
applied here once, from LOG_LEVEL.
"""

import logging
import sys

import structlog


def parse_level(level: str | int | None) -> int:
    """Turn a level name ("warning") or number ("30", 30) into a logging level.

    Unknown values fall back to INFO.
    """
    if level is None:
        return logging.INFO
    if isinstance(level, int):
        return level

    text = str(level).strip()
    if text.isdigit():
        return int(text)

    resolved = logging.getLevelName(text.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(level: str | int | None = None) -> None:
    """Configure structlog to drop events below ``level``."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(parse_level(level)),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
