"""
Structured Logging for Storage Events

Every storage event is logged with keyword fields instead of
interpolated text, so log aggregation (ELK, Loki) can filter on them:

    logger.info("Object created", key="a.png", size=1024, strategy="single")

Provides:
- StructuredLogger: thin wrapper over stdlib logging taking keyword fields
- JsonFormatter: one JSON object per record
- KeyValueFormatter: human-readable line with the fields appended
- StructuredLogger.context(): fields attached to every record logged
  inside the block, carried across awaits by a ContextVar
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Optional, TextIO


class LogLevel(IntEnum):
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


_scoped_fields: ContextVar[dict[str, Any]] = ContextVar("bucketstore_log_fields", default={})

# Every stdlib LogRecord has these; whatever else is on a record came from `extra`.
_STDLIB_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None))
) | {"message", "asctime"}

# Third-party loggers that are noisy at DEBUG/INFO.
_QUIET_LOGGERS = ("botocore", "aiobotocore", "aioboto3", "urllib3", "asyncio")


def record_fields(record: logging.LogRecord) -> dict[str, Any]:
    """Scoped context fields merged with the record's own extras."""
    fields = dict(_scoped_fields.get())
    fields.update(
        (name, value)
        for name, value in vars(record).items()
        if name not in _STDLIB_RECORD_ATTRS
    )
    return fields


# =============================================================================
# FORMATTERS
# =============================================================================

class JsonFormatter(logging.Formatter):
    """Render a record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "@timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(record_fields(record))
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class KeyValueFormatter(logging.Formatter):
    """`time | LEVEL | logger | message key=value ...`"""

    def __init__(self) -> None:
        super().__init__("%(asctime)s | %(levelname)-8s | %(name)s | %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        fields = record_fields(record)
        if fields:
            line += " " + " ".join(f"{k}={v}" for k, v in fields.items())
        return line


# =============================================================================
# LOGGER
# =============================================================================

class StructuredLogger:
    """
    Logger taking structured fields as keyword arguments.

    Usage:
        logger = StructuredLogger(__name__).with_extra(bucket="media")
        logger.warning("Create rejected: key exists", key="a.png")

    Field names must not collide with stdlib LogRecord attributes
    (`name`, `module`, `filename`, ...); logging raises KeyError on those.
    """

    __slots__ = ("_logger", "_bound")

    def __init__(self, name: str, level: Optional[LogLevel] = None) -> None:
        self._logger = logging.getLogger(name)
        if level is not None:
            self._logger.setLevel(level)
        self._bound: dict[str, Any] = {}

    @property
    def name(self) -> str:
        return self._logger.name

    def debug(self, message: str, **fields: Any) -> None:
        self._emit(LogLevel.DEBUG, message, fields)

    def info(self, message: str, **fields: Any) -> None:
        self._emit(LogLevel.INFO, message, fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._emit(LogLevel.WARNING, message, fields)

    def error(self, message: str, **fields: Any) -> None:
        self._emit(LogLevel.ERROR, message, fields)

    def critical(self, message: str, **fields: Any) -> None:
        self._emit(LogLevel.CRITICAL, message, fields)

    def _emit(self, level: LogLevel, message: str, fields: dict[str, Any]) -> None:
        if self._logger.isEnabledFor(level):
            self._logger.log(level, message, extra={**self._bound, **fields})

    def with_extra(self, **fields: Any) -> StructuredLogger:
        """Child logger that adds `fields` to every record."""
        child = StructuredLogger(self._logger.name)
        child._bound = {**self._bound, **fields}
        return child

    @staticmethod
    def context(**fields: Any) -> _ScopedFields:
        """Attach fields to every record logged inside the with-block."""
        return _ScopedFields(fields)


class _ScopedFields:
    __slots__ = ("_fields", "_token")

    def __init__(self, fields: dict[str, Any]) -> None:
        self._fields = fields
        self._token = None

    def __enter__(self) -> _ScopedFields:
        self._token = _scoped_fields.set({**_scoped_fields.get(), **self._fields})
        return self

    def __exit__(self, *args: Any) -> None:
        if self._token is not None:
            _scoped_fields.reset(self._token)
            self._token = None


# =============================================================================
# SETUP
# =============================================================================

def setup_logging(
    level: LogLevel = LogLevel.INFO,
    json_output: bool = True,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Install a single root handler.

    Args:
        level: Minimum level for the root logger and handler.
        json_output: JsonFormatter if True, KeyValueFormatter otherwise.
        stream: Destination (default: stderr).
    """
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(JsonFormatter() if json_output else KeyValueFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, LogLevel.WARNING))
