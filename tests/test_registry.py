"""Tests for the store registry and connect."""

import pytest

from memdb.core.config import Settings
from memdb.core.exceptions import ConfigurationError
from memdb.models import ConnectOptions
from memdb.registry import Registry, connect
from memdb.store import Store


class TestResolveStore:
    """Tests for Registry.resolve_store."""

    def test_private_store_per_call(self, registry: Registry) -> None:
        """Test no scope key gives a new unregistered store each time."""
        first = registry.resolve_store()
        second = registry.resolve_store()
        assert first is not second
        assert len(registry) == 0

    def test_scoped_store_is_shared(self, registry: Registry) -> None:
        """Test the same scope key returns the same store."""
        first = registry.resolve_store("mem://a")
        second = registry.resolve_store("mem://a")
        assert first is second
        assert first.scope == "mem://a"
        assert "mem://a" in registry

    def test_different_scopes_are_isolated(self, registry: Registry) -> None:
        """Test different scope keys get different stores."""
        assert registry.resolve_store("mem://a") is not registry.resolve_store("mem://b")
        assert sorted(registry.scopes()) == ["mem://a", "mem://b"]

    def test_close_forgets_stores(self, registry: Registry) -> None:
        """Test closing the registry drops every scope."""
        store = registry.resolve_store("mem://a")
        registry.close()
        assert len(registry) == 0
        assert registry.resolve_store("mem://a") is not store


class TestConnect:
    """Tests for connecting through a registry."""

    @pytest.mark.asyncio
    async def test_connect_without_options(self, registry: Registry) -> None:
        """Test connect with no options gives a private store."""
        future = registry.connect()
        assert not future.done()
        store = await future
        assert isinstance(store, Store)
        assert store.scope is None

    @pytest.mark.asyncio
    async def test_shared_scope_sees_writes(self, registry: Registry) -> None:
        """Test two connections with one scope key share data."""
        first = await registry.connect({"uri": "mem://shared"})
        second = await registry.connect(ConnectOptions(uri="mem://shared"))

        users = await first.get_collection("users")
        saved = await users.save({"name": "ada"})

        other_users = await second.get_collection("users")
        assert other_users is users
        assert await other_users.get(saved["id"]) == {"id": 1, "name": "ada"}

    @pytest.mark.asyncio
    async def test_unscoped_connections_are_isolated(self, registry: Registry) -> None:
        """Test connections without a scope key never see each other's writes."""
        first = await registry.connect()
        second = await registry.connect()

        await (await first.get_collection("users")).save({"name": "ada"})
        assert await (await second.get_collection("users")).find() == []

    @pytest.mark.asyncio
    async def test_different_scopes_do_not_share(self, registry: Registry) -> None:
        """Test different scope keys never see each other's writes."""
        first = await registry.connect("mem://a")
        second = await registry.connect("mem://b")

        await (await first.get_collection("users")).save({"name": "ada"})
        assert await (await second.get_collection("users")).count() == 0

    @pytest.mark.asyncio
    async def test_shared_counter(self, registry: Registry) -> None:
        """Test connections on one scope never mint the same identifier."""
        first = await registry.connect("mem://a")
        second = await registry.connect("mem://a")
        a = await (await first.get_collection("users")).save({})
        b = await (await second.get_collection("users")).save({})
        assert a["id"] != b["id"]

    @pytest.mark.asyncio
    async def test_driver_options_ignored(self, registry: Registry) -> None:
        """Test unknown options are accepted."""
        store = await registry.connect({"uri": "mem://a", "poolSize": 5, "safe": True})
        assert store.scope == "mem://a"

    @pytest.mark.asyncio
    async def test_default_scope_from_settings(self) -> None:
        """Test the configured default scope applies when none is given."""
        registry = Registry(Settings(default_scope="mem://default"))
        first = await registry.connect()
        second = await registry.connect({})
        assert first is second
        assert first.scope == "mem://default"

    @pytest.mark.asyncio
    async def test_invalid_options_fail(self, registry: Registry) -> None:
        """Test unusable options fail the future."""
        with pytest.raises(ConfigurationError):
            await registry.connect(42)  # type: ignore[arg-type]
        with pytest.raises(ConfigurationError):
            await registry.connect({"uri": 5})


class TestModuleConnect:
    """Tests for the module-level connect helper."""

    @pytest.mark.asyncio
    async def test_sharing_needs_a_registry(self, registry: Registry) -> None:
        """Test scope keys only share within one registry."""
        with_registry = await connect("mem://a", registry=registry)
        again = await connect("mem://a", registry=registry)
        standalone = await connect("mem://a")

        assert with_registry is again
        assert standalone is not with_registry
