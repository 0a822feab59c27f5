"""
dedupe-music - Structured logging configuration (structlog).

Usage:
    from dedupe_music.logging_config import configure_logging

    # At startup
    configure_logging(level="DEBUG", json_format=False)

    # In modules
    import structlog
    logger = structlog.get_logger(__name__)
    logger.info("dedup_file_hashed", path=str(path), size=size)
"""

import logging
import sys

import structlog
from structlog.types import EventDict, WrappedLogger


def add_app_context(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """Tag every event with the application name."""
    event_dict["app"] = "dedupe-music"
    return event_dict


def configure_logging(
    level: str = "WARNING",
    json_format: bool = False,
    enable_colors: bool = False,
) -> None:
    """
    Configure structlog for dedupe-music.

    Logs go to stderr so stdout stays free for run results.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: If True, one JSON object per line. If False, human-readable
        enable_colors: Colorize console output (ignored for JSON)

    Example:
        >>> configure_logging(level="DEBUG", json_format=False, enable_colors=True)
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level.upper(), logging.WARNING),
        force=True,
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
        add_app_context,
        structlog.processors.StackInfoRenderer(),
    ]

    if json_format:
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=enable_colors))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
