"""Registry of stores shared by scope key."""

import asyncio
import threading
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from memdb.completion import deferred
from memdb.core.config import Settings, get_settings
from memdb.core.exceptions import ConfigurationError
from memdb.core.logging import get_logger
from memdb.models import ConnectOptions
from memdb.store import Store

logger = get_logger(__name__)

Options = ConnectOptions | Mapping[str, Any] | str | None


def _coerce_options(options: Any) -> ConnectOptions:
    if options is None:
        return ConnectOptions()
    if isinstance(options, ConnectOptions):
        return options
    if isinstance(options, str):
        return ConnectOptions(uri=options)
    if isinstance(options, Mapping):
        try:
            return ConnectOptions.model_validate(dict(options))
        except ValidationError as e:
            raise ConfigurationError(
                f"Invalid connection options: {e}",
                details={"errors": e.errors()},
            ) from e
    raise ConfigurationError(
        f"Unsupported connection options type: {type(options).__name__}"
    )


class Registry:
    """Maps scope keys to shared stores.

    Connections opened through the same registry with the same scope key
    see the same store. A connection without a scope key gets a private
    store that nothing else can reach. The registry lives as long as the
    application holding it.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize an empty registry.

        Args:
            settings: Application settings handed to every store
        """
        self._settings = settings or get_settings()
        self._stores: dict[str, Store] = {}
        self._lock = threading.Lock()

    def resolve_store(self, scope_key: str | None = None) -> Store:
        """Get the store for a scope key, creating it if needed.

        Args:
            scope_key: Scope key, or None for a new private store

        Returns:
            The shared store for ``scope_key`` or a fresh private store
        """
        if scope_key is None:
            return Store(self._settings)

        with self._lock:
            store = self._stores.get(scope_key)
            if store is None:
                store = Store(self._settings, scope=scope_key)
                self._stores[scope_key] = store
                logger.debug("Registered store", scope=scope_key)
            return store

    def connect(self, options: Options = None) -> "asyncio.Future[Store]":
        """Open a connection.

        Args:
            options: Connection options; ``uri`` selects the scope key and
                everything else is ignored

        Returns:
            Future resolving to the store for the connection
        """

        def run() -> Store:
            opts = _coerce_options(options)
            scope = opts.uri or self._settings.default_scope
            store = self.resolve_store(scope)
            logger.debug("Connected", scope=scope, shared=scope is not None)
            return store

        return deferred(run, self._settings.completion_delay)

    def scopes(self) -> list[str]:
        """List registered scope keys."""
        with self._lock:
            return list(self._stores)

    def close(self) -> None:
        """Forget every registered store."""
        with self._lock:
            count = len(self._stores)
            self._stores.clear()
        logger.debug("Registry closed", stores=count)

    def __contains__(self, scope_key: object) -> bool:
        with self._lock:
            return scope_key in self._stores

    def __len__(self) -> int:
        with self._lock:
            return len(self._stores)


def connect(
    options: Options = None,
    *,
    registry: Registry | None = None,
) -> "asyncio.Future[Store]":
    """Open a connection to an in-memory store.

    Stores are only shared between connections made through the same
    registry; without one, every call gets its own registry.
    """
    if registry is None:
        registry = Registry()
    return registry.connect(options)
