"""
Logging Configuration for the Inventory Analytics Engine

Provides structured logging through structlog on top of stdlib logging.
"""

import logging
import sys
from typing import Optional, TextIO

import structlog
from structlog.processors import JSONRenderer, TimeStamper
from structlog.stdlib import add_log_level, ProcessorFormatter

from inventory_analytics.config.settings import get_settings


def configure_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Override log level (DEBUG, INFO, WARNING, ERROR)
        log_format: Override renderer ("json" or "text")
        stream: Output stream (stdout by default)
    """
    settings = get_settings()
    level = log_level or settings.monitoring.log_level
    fmt = log_format or settings.monitoring.log_format

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        add_log_level,
        TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    structlog.configure(
        processors=shared_processors + [
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if fmt == "json":
        renderer = JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    formatter = ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(stream or sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # Route uvicorn through the same handler
    for logger_name in ["uvicorn", "uvicorn.error", "uvicorn.access"]:
        logger = logging.getLogger(logger_name)
        logger.handlers = []
        logger.addHandler(console_handler)
        logger.setLevel(numeric_level)
        logger.propagate = False

    log = structlog.get_logger(__name__)
    log.info(
        "Logging configured",
        level=level,
        format=fmt,
        environment=settings.app_env,
    )
