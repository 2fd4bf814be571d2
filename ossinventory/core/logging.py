"""Logging setup: structlog events rendered through stdlib logging on stderr.

stdout is left to command output (scan listings, sync summaries), so every
log line, ours and third-party alike, goes to stderr.

Environment:
    OSSINV_LOG_LEVEL   level for ossinventory loggers (INFO, or DEBUG with -v)
    OSSINV_LOG_FORMAT  ``console`` or ``json``
"""

from __future__ import annotations

import logging
import logging.config
import os

import structlog

# HTTP client internals log every request at INFO/DEBUG.
QUIET_LOGGERS = ("httpx", "httpcore")


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def setup_logging(verbose: bool = False) -> None:
    level = os.environ.get("OSSINV_LOG_LEVEL") or ("DEBUG" if verbose else "INFO")
    level = level.upper()
    log_format = os.environ.get("OSSINV_LOG_FORMAT", "console").lower()

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
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

    loggers = {name: {"level": "WARNING"} for name in QUIET_LOGGERS}
    loggers["ossinventory"] = {"level": level}
    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "events": {
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
                    "formatter": "events",
                },
            },
            "root": {"handlers": ["stderr"], "level": "WARNING"},
            "loggers": loggers,
        }
    )
