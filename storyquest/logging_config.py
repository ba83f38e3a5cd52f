"""
Logging setup for the StoryQuest service.

Every record carries the request id and, once the bearer token is resolved,
the id of the user whose progress is being evaluated. Both come from context
variables so engine code can log without threading them through.

Usage:
    from storyquest.logging_config import get_logger
    logger = get_logger(__name__)
    logger.info("Story completion recorded", extra={"story_id": 3})
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Optional

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
user_id_var: ContextVar[Optional[str]] = ContextVar("user_id", default=None)

_CONTEXT_FIELDS = ("request_id", "user_id")
_PLACEHOLDER = "-"

# Attributes every LogRecord has; anything else came in through extra=
_STANDARD_ATTRS = frozenset(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {
    "message",
    "asctime",
    *_CONTEXT_FIELDS,
}

_QUIET_LOGGERS = {
    "uvicorn.access": logging.WARNING,
    "sqlalchemy.engine": logging.WARNING,
    "aiosqlite": logging.WARNING,
}


def bind_user(user_id: object) -> None:
    """Attach the authenticated user to every log line of the current request."""
    user_id_var.set(str(user_id))


class LogContextFilter(logging.Filter):
    """Copies the request and user context onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or _PLACEHOLDER
        record.user_id = user_id_var.get() or _PLACEHOLDER
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line, for log shipping in production."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for field in _CONTEXT_FIELDS:
            value = getattr(record, field, _PLACEHOLDER)
            if value != _PLACEHOLDER:
                entry[field] = value
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _STANDARD_ATTRS or value is None:
                continue
            entry[key] = value
        return json.dumps(entry, default=str)


class DevFormatter(logging.Formatter):
    """Readable single-line output with extra fields appended as key=value."""

    def __init__(self) -> None:
        super().__init__(
            "%(asctime)s %(levelname)-5s %(name)s [req=%(request_id)s user=%(user_id)s] %(message)s",
            datefmt="%H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        for field in _CONTEXT_FIELDS:
            if not hasattr(record, field):
                setattr(record, field, _PLACEHOLDER)
        line = super().format(record)
        extras = [
            f"{key}={value}"
            for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS and value is not None
        ]
        return f"{line} {' '.join(extras)}" if extras else line


def configure_logging(
    *,
    log_level: str = "INFO",
    environment: str = "development",
    debug: bool = False,
) -> None:
    """
    Install a single stderr handler on the root logger.

    Args:
        log_level: Level name used unless debug is on
        environment: 'production' switches to JSON output
        debug: Force DEBUG level
    """
    level = logging.DEBUG if debug else logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.addFilter(LogContextFilter())
    handler.setFormatter(JsonFormatter() if environment == "production" else DevFormatter())

    root = logging.getLogger()
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level)

    for name, quiet_level in _QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(quiet_level)


def get_logger(name: str) -> logging.Logger:
    """Module logger; request and user ids are added by the handler filter."""
    return logging.getLogger(name)
