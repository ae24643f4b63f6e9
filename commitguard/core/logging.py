"""Structured logging configuration: structlog on top of stdlib logging."""

from __future__ import annotations

import logging
import logging.config
import os

import structlog


def setup_logging(verbose: bool = False) -> None:
    """Configure structlog and stdlib logging.

    Reads from environment variables:
        COMMITGUARD_LOG_LEVEL:  log level (default: WARNING, DEBUG when verbose)
        COMMITGUARD_LOG_FORMAT: console | json (default: console)

    Logs are written to stderr so that reports on stdout stay machine-readable.
    """
    default_level = "DEBUG" if verbose else "WARNING"
    log_level = os.environ.get("COMMITGUARD_LOG_LEVEL", default_level).upper()
    log_format = os.environ.get("COMMITGUARD_LOG_FORMAT", "console").lower()

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=False)

    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "structlog": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": shared_processors,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        renderer,
                    ],
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "structlog",
                },
            },
            "root": {
                "handlers": ["default"],
                "level": log_level,
            },
            "loggers": {
                "commitguard": {"level": log_level},
                "urllib3": {"level": "WARNING"},
            },
        }
    )
