"""Logging setup for the scanstore CLI and library users: structlog on top of stdlib logging."""

from __future__ import annotations

import logging.config
import os
import sys

import structlog

LOG_FORMATS = ("console", "json")

# Client libraries whose request-level chatter is only useful when debugging them.
_QUIET_LOGGERS = ("sqlalchemy.engine", "httpx", "httpcore")


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer(sort_keys=True)
    if log_format == "console":
        return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    raise ValueError(f"unknown log format {log_format!r}, expected one of {LOG_FORMATS}")


def setup_logging(level: str | None = None) -> None:
    """Route structlog and stdlib records through one stderr handler.

    *level* wins over ``SCANSTORE_LOG_LEVEL`` (default INFO).
    ``SCANSTORE_LOG_FORMAT`` selects ``console`` or ``json`` output.
    """
    log_level = (level or os.environ.get("SCANSTORE_LOG_LEVEL") or "INFO").upper()
    log_format = os.environ.get("SCANSTORE_LOG_FORMAT", "console").strip().lower()

    pre_chain: list[structlog.types.Processor] = [
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "scanstore": {
                    "()": structlog.stdlib.ProcessorFormatter,
                    "foreign_pre_chain": pre_chain,
                    "processors": [
                        structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                        _renderer(log_format),
                    ],
                },
            },
            "handlers": {
                "stderr": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": "scanstore",
                },
            },
            "root": {"handlers": ["stderr"], "level": "WARNING"},
            "loggers": {
                "scanstore": {"level": log_level},
                **{name: {"level": "WARNING"} for name in _QUIET_LOGGERS},
            },
        }
    )
