"""Logging setup shared by the function server, the CLI and migrations.

Records carry whatever was bound with :func:`log_context` (the gateway
function being served, the signed-in user) so JSON lines from a single
request or CLI command can be correlated.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.config import dictConfig
from typing import Any, Dict, Iterator

from aletheia.libs.schemas.settings import AppSettings, get_settings

_LOCAL_ENVIRONMENTS = {"local", "dev", "development", "test"}

_COLOR_CODES = {
    "red": "\033[31m",
    "yellow": "\033[33m",
    "green": "\033[32m",
    "cyan": "\033[36m",
    "magenta": "\033[35m",
}

# Attributes every LogRecord has; anything else arrived through ``extra=``.
_STANDARD_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}

_context: ContextVar[Dict[str, Any]] = ContextVar("aletheia_log_context", default={})


@contextmanager
def log_context(**fields: Any) -> Iterator[None]:
    """Bind ``fields`` to every record logged inside the block (nesting merges)."""

    token = _context.set({**_context.get(), **fields})
    try:
        yield
    finally:
        _context.reset(token)


def current_log_context() -> Dict[str, Any]:
    return dict(_context.get())


def _color_enabled(settings: AppSettings | None = None) -> bool:
    settings = settings or get_settings()
    if settings.log_color is not None:
        return settings.log_color
    return settings.environment.lower() in _LOCAL_ENVIRONMENTS


def colorize(text: str, color: str = "red") -> str:
    if not _color_enabled():
        return text
    prefix = _COLOR_CODES.get(color, "")
    suffix = "\033[0m" if prefix else ""
    return f"{prefix}{text}{suffix}"


class ContextFilter(logging.Filter):
    """Copy bound context onto the record; explicit ``extra=`` values win."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line: fixed header fields, then context and extras."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key not in _STANDARD_ATTRS and key not in payload:
                payload[key] = value
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class ColorTextFormatter(logging.Formatter):
    """Console lines for the CLI, suffixed with the bound context."""

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)
        bound = _context.get()
        if bound:
            formatted += " [" + " ".join(f"{key}={value}" for key, value in bound.items()) + "]"
        if record.levelno >= logging.ERROR:
            return colorize(formatted, "red")
        if record.levelno >= logging.WARNING:
            return colorize(formatted, "yellow")
        return formatted


def configure_logging(settings: AppSettings | None = None, *, log_format: str | None = None) -> None:
    """Install the console handler at the configured level and format."""

    settings = settings or get_settings()
    default_level = "DEBUG" if settings.environment.lower() in _LOCAL_ENVIRONMENTS else "INFO"
    log_level = (settings.log_level or default_level).upper()
    formatter_name = "json" if (log_format or settings.log_format).lower() == "json" else "text"

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {"context": {"()": ContextFilter}},
            "formatters": {
                "json": {"()": JsonFormatter},
                "text": {
                    "()": ColorTextFormatter,
                    "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                },
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": formatter_name,
                    "filters": ["context"],
                    "level": log_level,
                }
            },
            "root": {"handlers": ["console"], "level": log_level},
        }
    )


__all__ = [
    "ColorTextFormatter",
    "ContextFilter",
    "JsonFormatter",
    "colorize",
    "configure_logging",
    "current_log_context",
    "log_context",
]
