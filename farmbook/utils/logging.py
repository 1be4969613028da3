"""
Log setup for the farmbook CLI.

Store, sync and CLI modules log through ``get_logger(__name__)`` and attach
context with ``extra=`` (category, record_id, rows, ...). ``LOG_JSON=true``
turns each line into one JSON object carrying that context as top-level
keys; otherwise lines read ``time | level | logger | message``. Output goes
to stderr so command output on stdout stays clean.

Usage:
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    log = get_logger(__name__)
    log.info("Record added", extra={"category": "expenses", "record_id": record_id})
"""

from __future__ import annotations

import json
import logging
import logging.config
from typing import Any, Dict, Optional

# Attributes every LogRecord carries; anything else arrived through ``extra=``.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "extra"}


def _json_formatter(record: logging.LogRecord) -> str:
    """One JSON object: level, logger, message, then every ``extra=`` field."""
    payload: Dict[str, Any] = {
        "level": record.levelname,
        "logger": record.name,
        "message": record.getMessage(),
    }
    for key, value in vars(record).items():
        if key not in _RESERVED_ATTRS and not key.startswith("_"):
            payload[key] = value
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    if record.stack_info:
        payload["stack_info"] = record.stack_info
    if hasattr(record, "extra") and isinstance(record.extra, dict):
        payload.update(record.extra)
    return json.dumps(payload, default=str)


class JsonFormatter(logging.Formatter):
    """dictConfig-compatible wrapper around ``_json_formatter``."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return _json_formatter(record)


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    force: bool = True,
) -> None:
    """
    Point root logging at stderr; called once per CLI invocation.

    Parameters
    ----------
    level : str
        Level name from ``LOG_LEVEL``, any case.
    json_logs : bool
        ``LOG_JSON``: one JSON object per line instead of the console format.
    force : bool
        Replace handlers already on the root logger. When False and handlers
        exist, nothing is changed.
    """
    if not force and logging.getLogger().handlers:
        return

    formatter_name = "json" if json_logs else "console"
    level = level.upper()

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "console": {
                    "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                    "datefmt": "%Y-%m-%d %H:%M:%S",
                },
                "json": {
                    "()": JsonFormatter,
                },
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "stream": "ext://sys.stderr",
                    "formatter": formatter_name,
                    "level": level,
                }
            },
            "root": {
                "handlers": ["default"],
                "level": level,
            },
        }
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Module logger, e.g. ``get_logger(__name__)``; None gives the root logger."""
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "JsonFormatter"]
