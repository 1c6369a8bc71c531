"""Structured logging for the ghdepup CLI.

structlog renders every record, including those emitted by httpx through the
stdlib ``logging`` module.  Output goes to stderr; stdout carries the
``--debug`` rendering and the run summary.
"""

from __future__ import annotations

import logging
import logging.config
import os

import structlog

LEVEL_ENV = "GHDEPUP_LOG_LEVEL"
FORMAT_ENV = "GHDEPUP_LOG_FORMAT"

# Third-party loggers that only matter when something goes wrong.
_QUIET_LOGGERS = ("httpx", "httpcore")

_SHARED_PROCESSORS: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.processors.StackInfoRenderer(),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def _stdlib_config(log_level: str, renderer: structlog.types.Processor) -> dict:
    loggers: dict[str, dict] = {"ghdepup": {"level": log_level}}
    loggers.update({name: {"level": "WARNING"} for name in _QUIET_LOGGERS})
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structlog": {
                "()": structlog.stdlib.ProcessorFormatter,
                "foreign_pre_chain": _SHARED_PROCESSORS,
                "processors": [
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    renderer,
                ],
            },
        },
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "stream": "ext://sys.stderr",
                "formatter": "structlog",
            },
        },
        "root": {"handlers": ["stderr"], "level": log_level},
        "loggers": loggers,
    }


def setup_logging(level: str | None = None) -> None:
    """Configure structlog and stdlib logging.

    *level* wins over ``GHDEPUP_LOG_LEVEL`` (default INFO).
    ``GHDEPUP_LOG_FORMAT`` picks ``console`` (default) or ``json``.
    """
    log_level = (level or os.environ.get(LEVEL_ENV, "INFO")).upper()
    log_format = os.environ.get(FORMAT_ENV, "console").lower()

    structlog.configure(
        processors=_SHARED_PROCESSORS + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    logging.config.dictConfig(_stdlib_config(log_level, _renderer(log_format)))
