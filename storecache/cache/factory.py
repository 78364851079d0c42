"""
storecache — Cache Factory

Canonical factory for obtaining named cache instances.

Key points:
- One instance per name for the life of the process (or until reset)
- Backend chosen by configuration: CACHE_BACKEND=memory|redis
  - Defaults to redis when REDIS_HOST is set, memory otherwise
  - The redis backend requires the redis client library and a ``server`` section
- Instances are connected before they are returned; an unreachable server
  surfaces here as CacheConnectionError
- Persistent redis servers share clients through one ConnectionRegistry

Examples:
    from storecache.cache import create_cache, get_cache

    # Uses env-configured backend
    cache = await create_cache()

    # Or explicitly supply a configuration mapping
    cache = await create_cache(
        {"server": {"host": "localhost", "port": 6379, "timeout": 1, "persistent": True}},
        name="sessions",
    )
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from ..config import CacheBackend, CacheConfig, get_config
from ..errors import CacheConnectionError, ConfigurationError
from .backends.memory import MemoryCacheBackend
from .connections import ConnectionRegistry
from .interface import CacheInterface

logger = logging.getLogger(__name__)

# Global cache instances registry
_cache_instances: dict[str, CacheInterface] = {}

# Owner of shared (persistent) redis clients
_connection_registry = ConnectionRegistry()


def _coerce_config(config: CacheConfig | Mapping[str, Any] | None) -> CacheConfig:
    if config is None:
        return get_config().cache
    if isinstance(config, CacheConfig):
        return config
    try:
        return CacheConfig.model_validate(dict(config))
    except ValidationError as e:
        raise ConfigurationError(
            "Invalid cache configuration",
            details={"validation_errors": e.errors()},
        ) from e


def _create_memory_cache(config: CacheConfig) -> CacheInterface:
    """Internal helper to construct a memory cache backend."""
    return MemoryCacheBackend(
        max_size=config.max_size,
        default_ttl=config.ttl_seconds,
        namespace=config.namespace,
        normalize_all_keys=config.normalize_all_keys,
        codec=config.codec,
    )


def _create_redis_cache(config: CacheConfig, registry: ConnectionRegistry) -> CacheInterface:
    """Internal helper to construct a redis cache backend with lazy import."""
    # Checked before the server section so a missing client is always reported as such
    try:
        from .backends.redis import RedisCacheBackend
    except ImportError as e:
        logger.error(
            "Redis backend selected but redis client is not installed",
            extra={"package": "redis>=5.0.0", "error": str(e)},
        )
        raise ConfigurationError(
            "Redis backend selected but redis client is unavailable. "
            "Install with: pip install 'redis>=5.0.0' or add to dependencies.",
            details={"package": "redis>=5.0.0", "error": str(e), "backend": "redis"},
        ) from e

    if config.server is None:
        raise ConfigurationError(
            "No redis server defined in configuration",
            details={"missing": "server", "backend": "redis"},
        )

    return RedisCacheBackend.from_config(config, registry=registry)


async def create_cache(
    config: CacheConfig | Mapping[str, Any] | None = None,
    name: str = "default",
    registry: ConnectionRegistry | None = None,
) -> CacheInterface:
    """
    Create and connect a cache backend instance.

    Args:
        config: Cache configuration or equivalent mapping (uses global config if not provided)
        name: Cache instance name (for multiple cache instances)
        registry: Connection registry for redis clients (the factory's own by default)

    Returns:
        Connected cache backend instance

    Raises:
        ConfigurationError: If configuration is invalid or the backend's client is unavailable
        CacheConnectionError: If the backend cannot reach its server
    """
    if name in _cache_instances:
        logger.debug("Returning existing cache instance: %s", name)
        return _cache_instances[name]

    cache_config = _coerce_config(config)
    if registry is None:
        registry = _connection_registry

    logger.info(
        "Creating cache instance '%s' with backend: %s",
        name,
        cache_config.backend,
        extra={"cache_name": name, "backend": str(cache_config.backend)},
    )

    try:
        if cache_config.backend == CacheBackend.MEMORY:
            cache = _create_memory_cache(cache_config)
        elif cache_config.backend == CacheBackend.REDIS:
            cache = _create_redis_cache(cache_config, registry)
        else:
            raise ConfigurationError(
                f"Unknown cache backend: {cache_config.backend}",
                details={
                    "backend": str(cache_config.backend),
                    "supported": ["memory", "redis"],
                },
            )
    except ConfigurationError:
        raise
    except Exception as e:
        logger.error(
            "Unexpected error creating cache instance '%s': %s",
            name,
            e,
            extra={"cache_name": name, "backend": str(cache_config.backend), "error": str(e)},
            exc_info=True,
        )
        raise ConfigurationError(
            f"Failed to create cache instance '{name}': {e}",
            details={"cache_name": name, "backend": str(cache_config.backend), "error": str(e)},
        ) from e

    try:
        await cache.connect()
    except CacheConnectionError:
        await cache.close()
        raise

    _cache_instances[name] = cache

    logger.info(
        "Cache instance '%s' created successfully",
        name,
        extra={"cache_name": name, "backend": str(cache_config.backend)},
    )

    return cache


async def get_cache(name: str = "default") -> CacheInterface:
    """
    Get an existing cache instance by name.

    If the instance doesn't exist, it will be created using the global configuration.
    """
    if name not in _cache_instances:
        logger.debug("Cache instance '%s' not found, creating new instance", name)
        return await create_cache(name=name)

    return _cache_instances[name]


async def close_all_caches() -> None:
    """
    Close all cache instances and the shared connections they use.

    Call during graceful shutdown.
    """
    if _cache_instances:
        logger.info("Closing %d cache instance(s)...", len(_cache_instances))

    for name, cache in list(_cache_instances.items()):
        try:
            await cache.close()
            logger.info("Closed cache instance: %s", name)
        except Exception as e:
            logger.error(
                "Error closing cache instance '%s': %s",
                name,
                e,
                extra={"cache_name": name, "error": str(e)},
                exc_info=True,
            )

    _cache_instances.clear()
    await _connection_registry.close_all()
    logger.info("All cache instances closed")


def reset_cache_factory() -> None:
    """
    Reset the cache factory by clearing all instance references.

    Does NOT close instances - use close_all_caches() for proper cleanup.
    Only use this in testing contexts.
    """
    global _connection_registry

    count = len(_cache_instances)
    _cache_instances.clear()
    _connection_registry = ConnectionRegistry()
    logger.debug("Reset cache factory, cleared %d instance reference(s)", count)


def list_cache_instances() -> list[str]:
    """List all registered cache instance names."""
    return list(_cache_instances.keys())
