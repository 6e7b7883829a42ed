"""Core utilities for the document store."""

from memdb.core.config import Settings, get_settings
from memdb.core.exceptions import (
    ConfigurationError,
    InvalidRecordError,
    MalformedQueryError,
    MemDBError,
    NotFoundError,
)
from memdb.core.logging import configure_logging, get_logger

__all__ = [
    "Settings",
    "get_settings",
    "MemDBError",
    "ConfigurationError",
    "NotFoundError",
    "MalformedQueryError",
    "InvalidRecordError",
    "configure_logging",
    "get_logger",
]
