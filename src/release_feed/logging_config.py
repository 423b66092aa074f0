"""Structured logging setup for the release feed.

Every pipeline stage logs a snake_case event with keyword context, e.g.:
  {"event": "fetching_tags", "app": "Wallet", "project": "deployment/wallet"}

Development runs get colorized console output. Production runs (the CI
job that publishes the changelog) get one JSON object per line.

Usage:
    from release_feed.logging_config import setup_logging, get_logger

    setup_logging(environment="production")
    logger = get_logger(__name__)
    logger.info("tags_fetched", app="Wallet", count=12)
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any

import structlog

from release_feed.errors import ConfigError

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def setup_logging(
    environment: str | None = None,
    log_level: str | None = None,
) -> None:
    """Configure structlog and the standard library logger.

    Logs go to stderr so they never mix with anything written to stdout.

    Args:
        environment: "development" or "production". Reads ENVIRONMENT
                     if not provided.
        log_level: DEBUG, INFO, WARNING or ERROR. Reads LOG_LEVEL if not
                   provided.

    Raises:
        ConfigError: If the log level is not one of LOG_LEVELS
    """
    env = environment or os.environ.get("ENVIRONMENT", "development")
    level_name = (log_level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    if level_name not in LOG_LEVELS:
        raise ConfigError(
            f"Invalid log level {level_name!r}, expected one of: {', '.join(LOG_LEVELS)}"
        )
    level = getattr(logging, level_name)

    if env == "production":
        renderer: Any = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

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

    # httpx logs each request through the standard library
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)


def get_logger(name: str) -> Any:
    """Return a structlog logger bound to ``name`` (usually __name__)."""
    return structlog.get_logger(name)
