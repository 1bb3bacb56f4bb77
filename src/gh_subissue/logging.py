"""Debug logging configuration.

Uses standard library logging with a logfmt (key=value) formatter on stderr.
Nothing is emitted unless debug logging is enabled (GH_DEBUG).
"""

from __future__ import annotations

import logging
import sys
from datetime import UTC, datetime
from typing import Any, TextIO

PACKAGE_LOGGER = "gh_subissue"

_RESERVED_LOG_RECORD_ATTRS: set[str] = {
    "args",
    "asctime",
    "created",
    "exc_info",
    "exc_text",
    "filename",
    "funcName",
    "levelname",
    "levelno",
    "lineno",
    "module",
    "msecs",
    "message",
    "msg",
    "name",
    "pathname",
    "process",
    "processName",
    "relativeCreated",
    "stack_info",
    "taskName",
    "thread",
    "threadName",
}


def _format_value(value: Any) -> str:
    text = str(value)
    if text == "" or any(ch in text for ch in ' \t\n"='):
        escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
        return f'"{escaped}"'
    return text


class LogfmtFormatter(logging.Formatter):
    """Render records as a single `key=value` line."""

    def format(self, record: logging.LogRecord) -> str:
        fields: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).strftime("%Y-%m-%dT%H:%M:%SZ"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key in _RESERVED_LOG_RECORD_ATTRS or key.startswith("_"):
                continue
            fields[key] = value

        if record.exc_info:
            fields["exception"] = self.formatException(record.exc_info)

        return " ".join(f"{key}={_format_value(value)}" for key, value in fields.items())


def configure_logging(debug: bool, *, stream: TextIO | None = None) -> logging.Logger:
    """Configure the package logger once at process start.

    Returns the package logger so callers can hand it to commands.
    """

    logger = logging.getLogger(PACKAGE_LOGGER)

    # Remove any existing handlers to avoid duplicate logs when re-configuring.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    logger.propagate = False
    if not debug:
        logger.addHandler(logging.NullHandler())
        logger.setLevel(logging.CRITICAL + 1)
        return logger

    handler = logging.StreamHandler(stream=stream or sys.stderr)
    handler.setFormatter(LogfmtFormatter())
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)

    # Keep third-party loggers quiet; their output is not key=value.
    logging.getLogger("github").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    return logger
