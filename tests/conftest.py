"""
storecache — Test Configuration and Shared Fixtures

Provides pytest configuration and shared fixtures for unit and integration tests.
"""

import os
from collections.abc import Generator
from typing import Any
from unittest.mock import AsyncMock

import fakeredis
import pytest

from storecache.cache.connections import ConnectionRegistry
from storecache.config import ServerConfig

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ.pop("REDIS_HOST", None)

TEST_REDIS_HOST = os.environ.get("TEST_REDIS_HOST", "localhost")
TEST_REDIS_PORT = int(os.environ.get("TEST_REDIS_PORT", "6379"))


@pytest.fixture
def test_server() -> ServerConfig:
    """Server config pointing at the test Redis."""
    return ServerConfig(host=TEST_REDIS_HOST, port=TEST_REDIS_PORT, timeout=2.0)


@pytest.fixture
def mock_redis() -> AsyncMock:
    """
    A stand-in for ``redis.asyncio.Redis``.

    Every command is an AsyncMock; defaults mirror an empty, healthy server.
    """
    client = AsyncMock()
    client.ping.return_value = True
    client.get.return_value = None
    client.setex.return_value = True
    client.ttl.return_value = -2
    client.delete.return_value = 0
    client.flushall.return_value = True
    client.exists.return_value = 0
    client.expire.return_value = False
    client.info.return_value = {"redis_version": "7.2.4", "redis_mode": "standalone"}
    return client


@pytest.fixture
def mock_registry(mock_redis: AsyncMock) -> ConnectionRegistry:
    """Registry whose clients are all the ``mock_redis`` fixture."""
    return ConnectionRegistry(client_factory=lambda server: mock_redis)


@pytest.fixture
def fake_store() -> fakeredis.FakeServer:
    """An in-process Redis server, empty for each test."""
    return fakeredis.FakeServer()


@pytest.fixture
def fake_registry(fake_store: fakeredis.FakeServer) -> ConnectionRegistry:
    """Registry whose clients are real redis.asyncio clients talking to ``fake_store``."""
    return ConnectionRegistry(client_factory=lambda server: fakeredis.FakeAsyncRedis(server=fake_store))


@pytest.fixture
def no_settle_delay(monkeypatch: pytest.MonkeyPatch) -> AsyncMock:
    """Replace the post-flush sleep so delete_all returns immediately."""
    sleep = AsyncMock()
    monkeypatch.setattr("storecache.cache.backends.redis.asyncio.sleep", sleep)
    return sleep


@pytest.fixture
def mock_env_memory(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set environment variables for memory cache backend."""
    monkeypatch.setenv("CACHE_BACKEND", "memory")
    monkeypatch.setenv("CACHE_MAX_SIZE", "100")
    monkeypatch.setenv("CACHE_TTL_SECONDS", "3600")
    monkeypatch.setenv("CACHE_NAMESPACE", "test")


@pytest.fixture
def sample_cache_data() -> dict[str, Any]:
    """Sample data for cache testing."""
    return {
        "simple_string": "hello",
        "simple_int": 42,
        "simple_float": 3.14,
        "simple_bool": True,
        "empty_string": "",
        "zero": 0,
        "complex_dict": {
            "nested": {
                "key": "value",
                "number": 123,
                "list": [1, 2, 3],
            }
        },
        "complex_list": [
            {"id": 1, "name": "Alice"},
            {"id": 2, "name": "Bob"},
        ],
    }


@pytest.fixture(autouse=True)
def reset_global_state() -> Generator[None, None, None]:
    """Reset the cache factory and loaded config after each test to prevent state leakage."""
    yield
    from storecache.cache.factory import reset_cache_factory
    from storecache.config import reset_config

    reset_cache_factory()
    reset_config()
