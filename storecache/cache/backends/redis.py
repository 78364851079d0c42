"""
storecache — Redis Cache Backend

Asynchronous pass-through adapter over a single Redis connection:
- Every operation is exactly one round trip; nothing is cached locally
- Keys are normalized by KeySanitizer before reaching the store
- Values go through a Codec (JSON by default)
- Writes use SETEX so an entry never exists without its expiry

Requires: redis>=5.0 with asyncio support

Example:
    server = ServerConfig(host="localhost", port=6379, timeout=1.0)
    cache = RedisCacheBackend(server=server)
    await cache.connect()
    await cache.set("session:42", {"user": 42}, lifetime=600)
    val = await cache.get("session:42")
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from ...config import CacheConfig, CodecName, ServerConfig
from ...errors import CacheConnectionError, CacheOperationError, ConfigurationError
from ..codecs import Codec, get_codec
from ..connections import ConnectionRegistry
from ..interface import CacheInterface
from ..keys import KeySanitizer

logger = logging.getLogger(__name__)

try:
    # redis-py asyncio client (v4.2+)
    from redis.exceptions import RedisError
except ImportError as e:  # pragma: no cover
    raise ImportError(
        "Redis async client is required but not installed. "
        "Install with: pip install 'redis>=5.0.0' or add 'redis' to your dependencies."
    ) from e


class RedisCacheBackend(CacheInterface):
    """
    Redis cache backend.

    Notes:
    - ``delete_all`` issues FLUSHALL: it wipes every key on the server, for
      every client and namespace, then waits ``flush_settle_seconds`` because
      writes issued right after a flush can be dropped.
    - ``set``/``delete``/``delete_all``/``expire`` report store failures as
      ``False``; ``get``/``ttl``/``increment``/``decrement``/``exists`` raise
      CacheOperationError.
    - With ``normalize_all_keys=False`` the counter, existence and expire
      operations send the caller's key verbatim.
    """

    def __init__(
        self,
        server: ServerConfig | None,
        namespace: str = "",
        default_ttl: int = 3600,
        codec: Codec | CodecName | str = CodecName.JSON,
        normalize_all_keys: bool = True,
        flush_settle_seconds: float = 1.0,
        registry: ConnectionRegistry | None = None,
    ) -> None:
        """
        Initialize Redis cache backend.

        Args:
            server: Connection parameters; required
            namespace: Prefix applied to normalized keys
            default_ttl: Lifetime used when ``set`` gets no lifetime
            codec: Codec instance or registered codec name
            normalize_all_keys: Sanitize keys for counter/exists/expire operations too
            flush_settle_seconds: Delay awaited after FLUSHALL
            registry: Connection owner; a private registry is created if omitted

        Raises:
            ConfigurationError: If no server is configured
        """
        if server is None:
            raise ConfigurationError(
                "No redis server defined in configuration",
                details={"missing": "server", "backend": "redis"},
            )

        self.server = server
        self.namespace = namespace
        self.default_ttl = int(default_ttl)
        self.normalize_all_keys = normalize_all_keys
        self.flush_settle_seconds = flush_settle_seconds
        self.codec: Codec = get_codec(codec) if isinstance(codec, str) else codec

        self._make_key = KeySanitizer(namespace)
        self._registry = registry if registry is not None else ConnectionRegistry()
        self._client = self._registry.acquire(server)

        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._deletes = 0

    @classmethod
    def from_config(cls, config: CacheConfig, registry: ConnectionRegistry | None = None) -> RedisCacheBackend:
        """Build a backend from a validated CacheConfig."""
        return cls(
            server=config.server,
            namespace=config.namespace,
            default_ttl=config.ttl_seconds,
            codec=config.codec,
            normalize_all_keys=config.normalize_all_keys,
            flush_settle_seconds=config.flush_settle_seconds,
            registry=registry,
        )

    # ------------ Helpers ------------

    def _aux_key(self, key: str) -> str:
        """Key used by increment/decrement/exists/expire."""
        return self._make_key(key) if self.normalize_all_keys else key

    def _log_context(self, key: str | None = None, **extra: Any) -> dict[str, Any]:
        context: dict[str, Any] = {
            "host": self.server.host,
            "port": self.server.port,
            "namespace": self.namespace,
        }
        if key is not None:
            context["key"] = key
        context.update(extra)
        return context

    # ------------ Lifecycle ------------

    async def connect(self) -> None:
        """PING the server so construction fails fast on an unreachable host."""
        try:
            await self._client.ping()
        except (RedisError, OSError) as e:
            logger.error(
                f"Could not connect to redis at {self.server.host}:{self.server.port}: {e}",
                extra=self._log_context(error=str(e)),
            )
            raise CacheConnectionError(self.server.host, self.server.port, details={"error": str(e)}) from e

        logger.info(
            f"Connected to redis at {self.server.host}:{self.server.port}",
            extra=self._log_context(persistent=self.server.persistent),
        )

    async def close(self) -> None:
        """Release the client (transient) or leave it to the registry (persistent)."""
        try:
            await self._registry.release(self.server, self._client)
            logger.info(f"Closed Redis cache backend for {self.server.host}:{self.server.port}")
        except Exception as e:
            logger.error(f"Error closing Redis client: {e}", extra=self._log_context(error=str(e)), exc_info=True)

    # ------------ Core Interface ------------

    async def get(self, key: str, default: Any = None) -> Any:
        """Retrieve a value by key; ``default`` on a miss."""
        store_key = self._make_key(key)
        try:
            data = await self._client.get(store_key)
        except RedisError as e:
            logger.error(f"Failed to get key '{key}' from Redis: {e}", extra=self._log_context(key, error=str(e)))
            raise CacheOperationError(f"GET failed for key '{key}'", details={"key": key, "error": str(e)}) from e

        if data is None:
            self._misses += 1
            return default

        self._hits += 1
        return self.codec.decode(data)

    async def set(self, key: str, value: Any, lifetime: int | None = None) -> bool:
        """Store a value with SETEX."""
        store_key = self._make_key(key)
        if lifetime is None:
            lifetime = self.default_ttl

        try:
            payload = self.codec.encode(value)
        except (TypeError, ValueError) as e:
            logger.error(
                f"Failed to serialize value for key '{key}': {e}",
                extra=self._log_context(key, value_type=type(value).__name__, error=str(e)),
            )
            return False

        try:
            res = await self._client.setex(store_key, lifetime, payload)
        except RedisError as e:
            logger.error(
                f"Failed to set key '{key}' in Redis: {e}",
                extra=self._log_context(key, lifetime=lifetime, error=str(e)),
            )
            return False

        success = bool(res)
        if success:
            self._sets += 1
        return success

    async def ttl(self, key: str) -> int:
        """Remaining lifetime, negative sentinels passed through unchanged."""
        store_key = self._make_key(key)
        try:
            return int(await self._client.ttl(store_key))
        except RedisError as e:
            logger.error(f"Failed to read TTL of key '{key}': {e}", extra=self._log_context(key, error=str(e)))
            raise CacheOperationError(f"TTL failed for key '{key}'", details={"key": key, "error": str(e)}) from e

    async def delete(self, key: str) -> bool:
        """Delete a single key."""
        store_key = self._make_key(key)
        try:
            deleted = await self._client.delete(store_key)
        except RedisError as e:
            logger.error(f"Failed to delete key '{key}' from Redis: {e}", extra=self._log_context(key, error=str(e)))
            return False

        if deleted:
            self._deletes += 1
        return bool(deleted)

    async def delete_all(self) -> bool:
        """FLUSHALL, then wait out the settle delay."""
        logger.warning(
            f"Flushing every key on {self.server.host}:{self.server.port}",
            extra=self._log_context(),
        )
        try:
            result = bool(await self._client.flushall())
        except RedisError as e:
            logger.error(f"Failed to flush Redis: {e}", extra=self._log_context(error=str(e)))
            result = False

        # Writes issued immediately after a flush may be lost
        await asyncio.sleep(self.flush_settle_seconds)
        return result

    async def increment(self, key: str, step: int = 1) -> int:
        """INCRBY."""
        store_key = self._aux_key(key)
        try:
            return int(await self._client.incrby(store_key, step))
        except RedisError as e:
            logger.error(f"Failed to increment key '{key}': {e}", extra=self._log_context(key, step=step, error=str(e)))
            raise CacheOperationError(
                f"INCRBY failed for key '{key}'", details={"key": key, "step": step, "error": str(e)}
            ) from e

    async def decrement(self, key: str, step: int = 1) -> int:
        """DECRBY."""
        store_key = self._aux_key(key)
        try:
            return int(await self._client.decrby(store_key, step))
        except RedisError as e:
            logger.error(f"Failed to decrement key '{key}': {e}", extra=self._log_context(key, step=step, error=str(e)))
            raise CacheOperationError(
                f"DECRBY failed for key '{key}'", details={"key": key, "step": step, "error": str(e)}
            ) from e

    async def exists(self, key: str) -> bool:
        """Check if a key exists."""
        store_key = self._aux_key(key)
        try:
            return bool(await self._client.exists(store_key))
        except RedisError as e:
            logger.error(
                f"Failed to check existence of key '{key}' in Redis: {e}", extra=self._log_context(key, error=str(e))
            )
            raise CacheOperationError(f"EXISTS failed for key '{key}'", details={"key": key, "error": str(e)}) from e

    async def expire(self, key: str, seconds: int) -> bool:
        """Set a new expiry on an existing key."""
        store_key = self._aux_key(key)
        try:
            return bool(await self._client.expire(store_key, seconds))
        except RedisError as e:
            logger.error(
                f"Failed to set expiry on key '{key}': {e}", extra=self._log_context(key, seconds=seconds, error=str(e))
            )
            return False

    async def get_stats(self) -> dict[str, Any]:
        """Return cache statistics and basic Redis info."""
        stats: dict[str, Any] = {
            "backend": "redis",
            "host": self.server.host,
            "port": self.server.port,
            "persistent": self.server.persistent,
            "namespace": self.namespace,
            "default_ttl": self.default_ttl,
            "codec": self.codec.name,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": 0.0,
            "sets": self._sets,
            "deletes": self._deletes,
            "connected": False,
        }

        total_requests = self._hits + self._misses
        stats["hit_rate"] = round((self._hits / total_requests) * 100, 2) if total_requests else 0.0

        try:
            pong = await self._client.ping()
            stats["connected"] = bool(pong)

            info = await self._client.info(section="server")
            stats["redis_version"] = info.get("redis_version")
            stats["redis_mode"] = info.get("redis_mode")
        except RedisError as e:
            # INFO may be restricted by ACLs; keep the local counters
            logger.warning(f"Failed to get Redis INFO (restricted or unavailable): {e}", extra={"error": str(e)})

        return stats
