"""Structured logging setup."""

from __future__ import annotations

import logging
import sys
from typing import Optional

import structlog

from tenant_access.core.config import Settings


def configure_logging(settings: Optional[Settings] = None) -> None:
    """Configure structlog processors and the level filter."""
    level_name = settings.LOG_LEVEL if settings else "INFO"
    log_format = settings.LOG_FORMAT if settings else None

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    elif log_format == "console":
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer() if sys.stdout.isatty() else structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level_name, logging.INFO)
        ),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


__all__ = ["configure_logging"]
