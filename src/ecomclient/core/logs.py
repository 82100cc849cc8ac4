"""Structured logging setup.

All modules log through ``structlog.get_logger()`` with an event name and
keyword context, e.g. ``log.warning("api_retry", url=url, attempt=2)``.
``configure_logging`` wires the processors once at startup.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import structlog

from ecomclient.core.config import LoggingConfig


def configure_logging(config: Optional[LoggingConfig] = None) -> None:
    """Configure structlog from a LoggingConfig.

    Args:
        config: Logging settings. Defaults to INFO level, JSON output.
    """
    config = config or LoggingConfig()
    level = logging.getLevelName(config.level)

    if config.format == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
