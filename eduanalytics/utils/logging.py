# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Structured logging configuration using structlog.

Modules log through the standard library (``logging.getLogger(__name__)``).
Their records are rendered by structlog: JSON in production and colored
console output in development. Values bound with bind_context(), such as
the request ID and school of the current request, are added to every
record written in the same context.

Example:
    >>> from eduanalytics.utils.logging import setup_logging, bind_context
    >>> from eduanalytics.core.config import get_settings
    >>> setup_logging(get_settings())
    >>> bind_context(school_id="abc")
    >>> logging.getLogger(__name__).info("Backup created", extra={"records": 120})
"""

import logging
import sys
from typing import TYPE_CHECKING, TextIO

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from eduanalytics.core.config.settings import Settings

HANDLER_NAME = "eduanalytics"

NOISY_LOGGERS = (
    "uvicorn",
    "uvicorn.access",
    "uvicorn.error",
    "aiohttp",
    "apscheduler",
    "sqlalchemy",
    "aiosqlite",
    "asyncio",
)


def setup_logging(settings: "Settings", stream: TextIO | None = None) -> None:
    """Configure structured logging for the application.

    Installs one root handler whose formatter runs records through the
    structlog processors. Calling it again replaces that handler.

    Args:
        settings: Application settings containing log_level and debug flag.
        stream: Where records are written; stdout if None.
    """
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.is_development or settings.debug:
        renderer: Processor = structlog.dev.ConsoleRenderer(colors=stream is None)
        final_processors: list[Processor] = [renderer]
    else:
        final_processors = [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            *final_processors,
        ],
    )

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    for existing in [h for h in root.handlers if h.get_name() == HANDLER_NAME]:
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(log_level)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    logging.getLogger("eduanalytics").setLevel(log_level)


def bind_context(**kwargs: object) -> None:
    """Bind context variables to all subsequent log calls in this context.

    Used to attach request-scoped information like request_id or school_id.

    Args:
        **kwargs: Key-value pairs to bind to the logging context.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables.

    Called at the end of request processing to prevent context leakage
    between requests.
    """
    structlog.contextvars.clear_contextvars()
