"""
storecache — Cache Factory Integration Tests

Tests for the factory that creates, connects and manages named cache instances.
"""

import asyncio
import sys
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from storecache.cache import factory
from storecache.cache.backends.memory import MemoryCacheBackend
from storecache.cache.backends.redis import RedisCacheBackend
from storecache.cache.connections import ConnectionRegistry
from storecache.cache.factory import (
    close_all_caches,
    create_cache,
    get_cache,
    list_cache_instances,
    reset_cache_factory,
)
from storecache.cache.interface import CacheInterface
from storecache.config import CacheBackend, CacheConfig, ServerConfig
from storecache.errors import CacheConnectionError, ConfigurationError

REDIS_MAPPING = {"server": {"host": "cache.internal", "port": 6380, "timeout": 0.5, "persistent": False}}


class TestCacheFactory:
    """Test suite for cache factory functionality."""

    @pytest.fixture(autouse=True)
    async def cleanup(self) -> AsyncGenerator[None, None]:
        """Clean up cache instances after each test."""
        yield
        await close_all_caches()
        reset_cache_factory()

    async def test_create_memory_cache_from_env(self, mock_env_memory: None) -> None:
        cache = await create_cache()

        assert isinstance(cache, MemoryCacheBackend)
        assert cache.namespace == "test"
        await cache.set("test_key", "test_value")
        assert await cache.get("test_key") == "test_value"

    async def test_create_memory_cache_explicit_config(self) -> None:
        config = CacheConfig(backend=CacheBackend.MEMORY, namespace="test_ns", max_size=50, ttl_seconds=1800)

        cache = await create_cache(config=config, name="custom")

        assert isinstance(cache, MemoryCacheBackend)
        assert cache.max_size == 50
        assert cache.default_ttl == 1800

    async def test_create_redis_cache_from_mapping(
        self, mock_registry: ConnectionRegistry, mock_redis: AsyncMock
    ) -> None:
        cache = await create_cache(REDIS_MAPPING, name="sessions", registry=mock_registry)

        assert isinstance(cache, RedisCacheBackend)
        assert cache.server == ServerConfig(host="cache.internal", port=6380, timeout=0.5)
        # Connected before being handed out
        mock_redis.ping.assert_awaited_once()
        assert list_cache_instances() == ["sessions"]

    async def test_missing_server_is_configuration_error(self, mock_registry: ConnectionRegistry) -> None:
        with pytest.raises(ConfigurationError) as exc_info:
            await create_cache({"backend": "redis"}, name="no_server", registry=mock_registry)

        assert exc_info.value.details["missing"] == "server"
        assert list_cache_instances() == []

    async def test_missing_redis_client_is_configuration_error(
        self, monkeypatch: pytest.MonkeyPatch, mock_redis: AsyncMock
    ) -> None:
        factory_calls: list[ServerConfig] = []
        registry = ConnectionRegistry(client_factory=lambda server: factory_calls.append(server) or mock_redis)
        monkeypatch.setitem(sys.modules, "storecache.cache.backends.redis", None)

        with pytest.raises(ConfigurationError) as exc_info:
            await create_cache(REDIS_MAPPING, name="no_client", registry=registry)

        assert exc_info.value.details["package"].startswith("redis")
        # Reported before any connection is attempted
        assert factory_calls == []
        mock_redis.ping.assert_not_called()

    async def test_missing_client_reported_before_missing_server(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setitem(sys.modules, "storecache.cache.backends.redis", None)

        with pytest.raises(ConfigurationError) as exc_info:
            await create_cache({"backend": "redis"}, name="neither")

        assert "package" in exc_info.value.details

    async def test_invalid_mapping_is_configuration_error(self) -> None:
        with pytest.raises(ConfigurationError):
            await create_cache({"server": {"host": "h", "port": "not-a-port"}}, name="bad")

    async def test_unreachable_server_is_connection_error(
        self, mock_registry: ConnectionRegistry, mock_redis: AsyncMock
    ) -> None:
        mock_redis.ping.side_effect = RedisConnectionError("Connection refused")

        with pytest.raises(CacheConnectionError) as exc_info:
            await create_cache(REDIS_MAPPING, name="down", registry=mock_registry)

        assert exc_info.value.host == "cache.internal"
        assert exc_info.value.port == 6380
        assert list_cache_instances() == []
        mock_redis.aclose.assert_awaited_once()

    async def test_refused_port_is_connection_error(self) -> None:
        # Real client; nothing listens on port 1
        with pytest.raises(CacheConnectionError) as exc_info:
            await create_cache(
                {"server": {"host": "127.0.0.1", "port": 1, "timeout": 0.5}},
                name="refused",
            )

        assert exc_info.value.host == "127.0.0.1"
        assert exc_info.value.port == 1

    async def test_persistent_servers_share_a_client(self, monkeypatch: pytest.MonkeyPatch) -> None:
        clients: list[AsyncMock] = []

        def client_factory(server: ServerConfig) -> AsyncMock:
            clients.append(AsyncMock())
            return clients[-1]

        monkeypatch.setattr(factory, "_connection_registry", ConnectionRegistry(client_factory=client_factory))
        mapping = {"server": {"host": "cache.internal", "port": 6380, "timeout": 1, "persistent": True}}

        await create_cache(mapping, name="a")
        await create_cache({**mapping, "namespace": "other"}, name="b")

        assert len(clients) == 1

        await close_all_caches()
        clients[0].aclose.assert_awaited_once()

    async def test_singleton_behavior(self) -> None:
        cache1 = await create_cache(name="singleton_test")
        cache2 = await create_cache(name="singleton_test")

        assert cache1 is cache2

    async def test_multiple_named_instances(self) -> None:
        cache1 = await create_cache(CacheConfig(backend=CacheBackend.MEMORY), name="cache1")
        cache2 = await create_cache(CacheConfig(backend=CacheBackend.MEMORY), name="cache2")

        assert cache1 is not cache2

        await cache1.set("key", "value1")
        await cache2.set("key", "value2")

        assert await cache1.get("key") == "value1"
        assert await cache2.get("key") == "value2"

    async def test_get_cache_creates_if_not_exists(self) -> None:
        cache = await get_cache("new_instance")

        assert isinstance(cache, CacheInterface)
        assert "new_instance" in list_cache_instances()

    async def test_get_cache_returns_existing(self) -> None:
        cache1 = await create_cache(name="existing")
        await cache1.set("key", "value")

        cache2 = await get_cache("existing")

        assert cache1 is cache2
        assert await cache2.get("key") == "value"

    async def test_list_and_reset(self) -> None:
        assert list_cache_instances() == []

        await create_cache(name="cache1")
        await create_cache(name="cache2")
        assert sorted(list_cache_instances()) == ["cache1", "cache2"]

        reset_cache_factory()
        assert list_cache_instances() == []

    async def test_close_all_caches(self) -> None:
        await create_cache(name="cache1")
        await create_cache(name="cache2")

        await close_all_caches()

        assert list_cache_instances() == []

    async def test_concurrent_factory_calls(self) -> None:
        async def create_and_use_cache(name: str) -> str:
            cache = await create_cache(name=name)
            await cache.set("key", name)
            return str(await cache.get("key"))

        results = await asyncio.gather(
            create_and_use_cache("cache1"),
            create_and_use_cache("cache2"),
            create_and_use_cache("cache3"),
        )

        assert results == ["cache1", "cache2", "cache3"]
        assert len(list_cache_instances()) == 3

    async def test_ttl_configuration(self) -> None:
        config = CacheConfig(backend=CacheBackend.MEMORY, ttl_seconds=1)
        cache = await create_cache(config=config, name="ttl_test")

        await cache.set("key", "value")
        assert 0 < await cache.ttl("key") <= 1

        await asyncio.sleep(1.1)
        assert await cache.get("key") is None


class TestSessionScenario:
    """set → ttl → expire → ttl on any backend built by the factory."""

    async def test_memory_backend(self) -> None:
        cache = await create_cache(CacheConfig(backend=CacheBackend.MEMORY), name="scenario")

        assert await cache.set("session:42", "payload", 600) is True
        assert 0 < await cache.ttl("session:42") <= 600
        assert await cache.expire("session:42", 10) is True
        assert 0 < await cache.ttl("session:42") <= 10
        assert await cache.get("session:42") == "payload"

        await close_all_caches()
