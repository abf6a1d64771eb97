"""structlog/stdlib logging bootstrap shared by the API and the CLI."""

from __future__ import annotations

import logging
import logging.config

import structlog
from structlog.dev import ConsoleRenderer

from trustscrape.config import settings

_CONFIGURED = False


def configure_logging(log_level: str | None = None) -> None:
    """Configure structured logging once per process.

    - Local/development: human-readable console output
    - Anything else: JSON lines for log aggregation

    Calling it again is a no-op, so both entry points may call it freely.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    level = (log_level or settings.log_level).upper()

    shared_processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    renderer = ConsoleRenderer(colors=False) if settings.is_local else structlog.processors.JSONRenderer()

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structured": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        renderer,
                    ],
                    "foreign_pre_chain": shared_processors,
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "structured",
                    "stream": "ext://sys.stderr",
                },
            },
            "root": {"handlers": ["default"], "level": level},
            "loggers": {
                "httpx": {"level": "WARNING"},
                "httpcore": {"level": "WARNING"},
                "uvicorn.access": {"level": "INFO"},
            },
        }
    )

    _CONFIGURED = True
