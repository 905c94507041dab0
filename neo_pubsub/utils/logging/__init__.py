"""Structured logging for neo-pubsub.

structlog loggers already satisfy LoggerProtocol (debug/info/warning/error
plus bind), so components hold a bound structlog logger directly, or an
injected test double.

Usage:
    configure_logging(level="INFO", json_output=True)   # once, at startup
    logger = get_component_logger("relay_subscriber")
    logger.info("relay_started", channels=["blocks", "events"])
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import structlog

from neo_pubsub.protocols import LoggerProtocol

# Client libraries that log every request at INFO
_QUIET_LOGGERS = ("httpx", "httpcore", "redis", "uvicorn.access")

_configured = False


def configure_logging(
    level: str = "INFO",
    *,
    json_output: bool = True,
    force: bool = False,
) -> None:
    """Install the process-wide structlog pipeline.

    Only the first call takes effect unless ``force`` is set.

    Args:
        level: Minimum level name (DEBUG, INFO, WARNING, ERROR)
        json_output: JSON lines when True, coloured console output otherwise
        force: Replace an existing configuration
    """
    global _configured
    if _configured and not force:
        return

    threshold = logging.getLevelName(level.upper())
    if not isinstance(threshold, int):
        threshold = logging.INFO

    logging.basicConfig(level=threshold, format="%(message)s", stream=sys.stdout, force=force)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    renderer = (
        structlog.processors.JSONRenderer(sort_keys=True)
        if json_output
        else structlog.dev.ConsoleRenderer(colors=True)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(threshold),
        cache_logger_on_first_use=True,
    )
    _configured = True


def get_component_logger(
    component: str,
    logger: Optional[LoggerProtocol] = None,
) -> LoggerProtocol:
    """Return ``logger`` (or a fresh structlog logger) bound to ``component``."""
    base = logger if logger is not None else structlog.get_logger()
    return base.bind(component=component)


__all__ = ["configure_logging", "get_component_logger"]
