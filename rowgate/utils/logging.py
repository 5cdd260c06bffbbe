"""
Logging setup for rowgate.

Every rowgate module logs through ``get_logger(__name__)`` and attaches its
context as flat ``extra=`` fields (``table``, ``rows``, ``params``, ``dsn``).
Nothing inside the package installs handlers: the ``rowgate`` CLI calls
``configure_logging`` once, honouring ``LOG_LEVEL`` and ``LOG_JSON``.

With ``LOG_JSON=true`` each line is one JSON object, so a seeding run can be
filtered by table::

    {"level": "INFO", "logger": "rowgate.seeder", "message": "Truncating users", "table": "users"}
"""

from __future__ import annotations

import json
import logging
import logging.config
from typing import Any, Dict, Optional

CONSOLE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
CONSOLE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Attributes every LogRecord carries; anything else arrived through `extra=`.
_RESERVED_ATTRS = frozenset(
    logging.LogRecord(
        name="", level=0, pathname="", lineno=0, msg="", args=(), exc_info=None
    ).__dict__
) | {"message", "asctime", "taskName"}


def _context_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """Fields passed through ``extra=``, flattened into one mapping."""
    fields = {
        key: value
        for key, value in record.__dict__.items()
        if key not in _RESERVED_ATTRS and key != "extra"
    }
    # Older call sites pass extra={"extra": {...}}.
    nested = getattr(record, "extra", None)
    if isinstance(nested, dict):
        fields.update(nested)
    return fields


def _json_formatter(record: logging.LogRecord) -> str:
    payload: Dict[str, Any] = {
        "level": record.levelname,
        "logger": record.name,
        "message": record.getMessage(),
    }
    payload.update(_context_fields(record))
    if record.exc_info:
        payload["exc_info"] = logging.Formatter().formatException(record.exc_info)
    if record.stack_info:
        payload["stack_info"] = record.stack_info
    # Binary UUIDs and datetimes fall back to their str() form.
    return json.dumps(payload, default=str)


class JsonFormatter(logging.Formatter):
    """One JSON object per record, context fields at the top level."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        return _json_formatter(record)


def configure_logging(
    level: str = "INFO",
    json_logs: bool = False,
    force: bool = True,
) -> None:
    """
    Install the root handler used by the rowgate CLI.

    Parameters
    ----------
    level : str
        Level name from ``LOG_LEVEL``; case-insensitive.
    json_logs : bool
        Emit JSON lines (``LOG_JSON``) instead of the ``|``-separated console format.
    force : bool
        Replace handlers already on the root logger. When False an existing
        configuration (a host application's, or pytest's) is left alone.
    """
    root = logging.getLogger()
    if not force and root.handlers:
        return

    level = level.upper()
    logging.config.dictConfig(
        {
            "version": 1,
            # rowgate loggers are created at import time, before the CLI runs.
            "disable_existing_loggers": False,
            "formatters": {
                "console": {"format": CONSOLE_FORMAT, "datefmt": CONSOLE_DATE_FORMAT},
                "json": {"()": JsonFormatter},
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "formatter": "json" if json_logs else "console",
                    "level": level,
                }
            },
            "root": {"handlers": ["default"], "level": level},
        }
    )


def get_logger(name: Optional[str] = None) -> logging.Logger:
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger", "JsonFormatter"]
