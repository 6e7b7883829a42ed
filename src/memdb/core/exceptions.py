"""Custom exceptions for the in-memory document store."""

from typing import Any


class MemDBError(Exception):
    """Base exception for all store errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - Details: {self.details}"
        return self.message


class ConfigurationError(MemDBError):
    """Raised when connection options are unusable."""

    pass


class NotFoundError(MemDBError):
    """Raised when a direct identifier lookup finds no record."""

    status = 404

    def __init__(
        self,
        collection: str,
        key: Any,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            f"No record with id {key!r} in collection '{collection}'",
            {"collection": collection, "key": key, **(details or {})},
        )
        self.collection = collection
        self.key = key


class MalformedQueryError(MemDBError):
    """Raised when a query specification has an unsupported shape."""

    def __init__(
        self,
        message: str,
        query: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.query = query


class InvalidRecordError(MemDBError):
    """Raised when a record cannot be stored."""

    def __init__(
        self,
        message: str,
        record_id: Any = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.record_id = record_id
