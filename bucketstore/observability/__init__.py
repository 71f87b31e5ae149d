"""Structured logging for storage events."""

from bucketstore.observability.logging import (
    JsonFormatter,
    KeyValueFormatter,
    LogLevel,
    StructuredLogger,
    setup_logging,
)

__all__ = [
    "JsonFormatter",
    "KeyValueFormatter",
    "LogLevel",
    "StructuredLogger",
    "setup_logging",
]
