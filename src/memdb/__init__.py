"""Embeddable in-memory document store."""

from memdb.core.exceptions import (
    ConfigurationError,
    InvalidRecordError,
    MalformedQueryError,
    MemDBError,
    NotFoundError,
)
from memdb.models import ID_FIELD, ConnectOptions
from memdb.query import matches, parse_query
from memdb.projection import project
from memdb.registry import Registry, connect
from memdb.store import Collection, Store

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "ID_FIELD",
    "Collection",
    "ConnectOptions",
    "Registry",
    "Store",
    "connect",
    "matches",
    "parse_query",
    "project",
    "MemDBError",
    "ConfigurationError",
    "InvalidRecordError",
    "MalformedQueryError",
    "NotFoundError",
]
