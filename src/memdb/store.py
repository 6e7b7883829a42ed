"""In-memory store and collections."""

import asyncio
import copy
import threading
from collections.abc import Callable, Iterable, Iterator, Mapping
from typing import Any, TypeVar

from memdb.completion import deferred
from memdb.core.config import Settings, get_settings
from memdb.core.exceptions import InvalidRecordError, MalformedQueryError, NotFoundError
from memdb.core.logging import get_logger
from memdb.models import ID_FIELD, Record, is_identifier, record_key
from memdb.projection import project
from memdb.query import IdentifierQuery, Query, parse_query

T = TypeVar("T")

FieldList = str | Iterable[str] | None


class Store:
    """A set of named collections sharing one identifier counter.

    All reads and writes of the collections go through a single lock, so a
    store can be shared between threads as well as between connections.
    """

    protocol = "memory"

    def __init__(
        self,
        settings: Settings | None = None,
        scope: str | None = None,
    ) -> None:
        """Initialize an empty store.

        Args:
            settings: Application settings
            scope: Scope key the store is registered under, if any
        """
        self._settings = settings or get_settings()
        self._scope = scope
        self._collections: dict[str, Collection] = {}
        self._counter = 0
        self._lock = threading.RLock()
        self._logger = get_logger(__name__, scope=scope)

    @property
    def scope(self) -> str | None:
        """Scope key, or None for a private store."""
        return self._scope

    @property
    def completion_delay(self) -> float:
        """Simulated latency applied to every completion."""
        return self._settings.completion_delay

    def next_id(self) -> int:
        """Mint the next numeric identifier. The first call returns 1."""
        with self._lock:
            self._counter += 1
            return self._counter

    def _run(self, fn: Callable[[], T]) -> "asyncio.Future[T]":
        def locked() -> T:
            with self._lock:
                return fn()

        return deferred(locked, self.completion_delay)

    def _ensure_collection(self, name: str) -> "Collection":
        collection = self._collections.get(name)
        if collection is None:
            collection = Collection(name, self)
            self._collections[name] = collection
            self._logger.debug("Created collection", collection=name)
        return collection

    def get_collection(
        self,
        name: str,
        indexes: Iterable[Any] | None = None,
    ) -> "asyncio.Future[Collection]":
        """Get a collection, creating it on first access.

        Args:
            name: Collection name
            indexes: Accepted for driver compatibility and ignored

        Returns:
            Future resolving to the same Collection instance on every call
        """
        return self._run(lambda: self._ensure_collection(name))

    def collection_names(self) -> list[str]:
        """List the names of all collections created so far."""
        with self._lock:
            return list(self._collections)

    def drop_collection(self, name: str) -> "asyncio.Future[bool]":
        """Remove a collection and all of its records."""

        def run() -> bool:
            collection = self._collections.pop(name, None)
            if collection is None:
                return False
            collection._records.clear()
            self._logger.debug("Dropped collection", collection=name)
            return True

        return self._run(run)

    def sync(self, factory: Any = None) -> "asyncio.Future[None]":
        """Flush pending writes. Nothing is ever pending."""
        return self._run(lambda: None)

    def close(self) -> "asyncio.Future[None]":
        """Close the store. There is no resource to release."""
        return self._run(lambda: None)

    def __repr__(self) -> str:
        return f"Store(scope={self._scope!r}, collections={self.collection_names()!r})"


class Collection:
    """Records of one collection, keyed by identifier in insertion order.

    Every operation does its work immediately and returns a future that
    resolves on a later iteration of the event loop. Results are copies;
    stored records are never reachable from the caller.
    """

    def __init__(self, name: str, store: Store) -> None:
        self._name = name
        self._store = store
        self._records: dict[str, Record] = {}
        self._logger = get_logger(__name__, collection=name)

    @property
    def name(self) -> str:
        """Collection name."""
        return self._name

    @property
    def store(self) -> Store:
        """Owning store."""
        return self._store

    def __len__(self) -> int:
        with self._store._lock:
            return len(self._records)

    def __repr__(self) -> str:
        return f"Collection(name={self._name!r}, records={len(self)})"

    # ------------------------------------------------------------
    # Internal helpers (called with the store lock held)
    # ------------------------------------------------------------

    def _mint_id(self) -> int:
        while True:
            candidate = self._store.next_id()
            if record_key(candidate) not in self._records:
                return candidate

    def _write(self, record: Any) -> tuple[Record, bool]:
        if not isinstance(record, Mapping):
            raise InvalidRecordError(
                f"Records must be mappings, got {type(record).__name__}",
                details={"collection": self._name},
            )

        data = copy.deepcopy(dict(record))
        identifier = data.get(ID_FIELD)
        created = identifier is None
        if created:
            identifier = data[ID_FIELD] = self._mint_id()
        elif not is_identifier(identifier):
            raise InvalidRecordError(
                f"Identifier must be a string or number, got {type(identifier).__name__}",
                record_id=identifier,
                details={"collection": self._name},
            )

        self._records[record_key(identifier)] = data
        return data, created

    def _iter_matches(self, query: Query) -> Iterator[tuple[str, Record]]:
        if isinstance(query, IdentifierQuery):
            record = self._records.get(query.key)
            if record is not None and query.matches(record):
                yield query.key, record
            return
        for key, record in self._records.items():
            if query.matches(record):
                yield key, record

    # ------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------

    def save(
        self,
        record: Mapping[str, Any],
        options: Mapping[str, Any] | None = None,
    ) -> "asyncio.Future[Record | int]":
        """Save a record, replacing any record with the same identifier.

        Args:
            record: Record to save; it is copied, never mutated
            options: Accepted for driver compatibility and ignored

        Returns:
            Future resolving to the saved record (with its new identifier)
            when one was minted, or to ``1`` when the record carried its
            own identifier
        """

        def run() -> Record | int:
            data, created = self._write(record)
            self._logger.debug("Saved record", id=data[ID_FIELD], created=created)
            return copy.deepcopy(data) if created else 1

        return self._store._run(run)

    def put(
        self,
        record: Mapping[str, Any],
        options: Mapping[str, Any] | None = None,
    ) -> "asyncio.Future[Record | int]":
        """Alias of :meth:`save`."""
        return self.save(record, options)

    def update(
        self,
        key: Any,
        patch: Mapping[str, Any],
        options: Mapping[str, Any] | None = None,
    ) -> "asyncio.Future[int]":
        """Merge fields into the record at ``key``.

        A missing record is treated as empty, so updating an unknown key
        creates it. The identifier never changes.

        Args:
            key: Identifier of the record
            patch: Fields to overwrite
            options: Accepted for driver compatibility and ignored

        Returns:
            Future resolving to the change count ``1``
        """

        def run() -> int:
            if not is_identifier(key):
                raise InvalidRecordError(
                    f"Identifier must be a string or number, got {type(key).__name__}",
                    record_id=key,
                    details={"collection": self._name},
                )
            if not isinstance(patch, Mapping):
                raise InvalidRecordError(
                    f"Patch must be a mapping, got {type(patch).__name__}",
                    record_id=key,
                )

            current = self._records.get(record_key(key), {})
            merged = {**current, **patch}
            merged[ID_FIELD] = current.get(ID_FIELD, key)
            self._write(merged)
            self._logger.debug(
                "Updated record", id=merged[ID_FIELD], fields=sorted(patch)
            )
            return 1

        return self._store._run(run)

    def delete(
        self,
        query: Any = None,
        options: Mapping[str, Any] | None = None,
    ) -> "asyncio.Future[int]":
        """Delete every record matching ``query``.

        Args:
            query: Identifier, query mapping or parsed query; None or an
                empty mapping removes everything
            options: Accepted for driver compatibility and ignored

        Returns:
            Future resolving to the number of removed records
        """

        def run() -> int:
            parsed = parse_query(query)
            keys = [key for key, _ in self._iter_matches(parsed)]
            for key in keys:
                del self._records[key]
            self._logger.debug(
                "Deleted records", query_type=type(parsed).__name__, count=len(keys)
            )
            return len(keys)

        return self._store._run(run)

    def destroy(
        self,
        query: Any = None,
        options: Mapping[str, Any] | None = None,
    ) -> "asyncio.Future[int]":
        """Alias of :meth:`delete`."""
        return self.delete(query, options)

    def clear(self, options: Mapping[str, Any] | None = None) -> "asyncio.Future[int]":
        """Remove all records and return how many there were."""

        def run() -> int:
            count = len(self._records)
            self._records.clear()
            return count

        return self._store._run(run)

    # ------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------

    def get(
        self,
        key: Any,
        fields: FieldList = None,
        options: Mapping[str, Any] | None = None,
    ) -> "asyncio.Future[Record]":
        """Get a record by identifier.

        Raises (through the future):
            NotFoundError: If no record has this identifier
        """

        def run() -> Record:
            if not is_identifier(key):
                raise MalformedQueryError(
                    f"Identifier must be a string or number, got {type(key).__name__}",
                    query=key,
                )
            record = self._records.get(record_key(key))
            if record is None:
                raise NotFoundError(self._name, key)
            return project(record, fields)

        return self._store._run(run)

    def find(
        self,
        query: Any = None,
        fields: FieldList = None,
        options: Mapping[str, Any] | None = None,
    ) -> "asyncio.Future[list[Record]]":
        """Find all records matching a query, in collection order.

        Args:
            query: Identifier, query mapping or parsed query
            fields: Fields to return; empty returns whole records
            options: Sorting and paging options, accepted and ignored

        Returns:
            Future resolving to a (possibly empty) list of records
        """

        def run() -> list[Record]:
            parsed = parse_query(query)
            results = [project(record, fields) for _, record in self._iter_matches(parsed)]
            self._logger.debug(
                "Find completed", query_type=type(parsed).__name__, count=len(results)
            )
            return results

        return self._store._run(run)

    def find_one(
        self,
        query: Any = None,
        fields: FieldList = None,
        options: Mapping[str, Any] | None = None,
    ) -> "asyncio.Future[Record | None]":
        """Find the first record matching a query, or None."""

        def run() -> Record | None:
            parsed = parse_query(query)
            for _, record in self._iter_matches(parsed):
                return project(record, fields)
            return None

        return self._store._run(run)

    def count(
        self,
        query: Any = None,
        options: Mapping[str, Any] | None = None,
    ) -> "asyncio.Future[int]":
        """Count records matching a query."""

        def run() -> int:
            parsed = parse_query(query)
            return sum(1 for _ in self._iter_matches(parsed))

        return self._store._run(run)

    def filter(
        self,
        predicate: Callable[[Record], bool],
        fields: FieldList = None,
        options: Mapping[str, Any] | None = None,
    ) -> "asyncio.Future[list[Record]]":
        """Find records accepted by an arbitrary predicate.

        The predicate receives a copy of each record.
        """

        def run() -> list[Record]:
            results = []
            for record in self._records.values():
                candidate = copy.deepcopy(record)
                if predicate(candidate):
                    results.append(project(candidate, fields))
            return results

        return self._store._run(run)

    def sync(self, factory: Any = None) -> "asyncio.Future[None]":
        """Flush pending writes. Nothing is ever pending."""
        return self._store._run(lambda: None)
