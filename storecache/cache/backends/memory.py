"""
storecache — Memory Cache Backend

In-process implementation of the cache contract with Redis-compatible
semantics (TTL sentinels, SETEX-style lifetimes, integer counters) and LRU
eviction. Suitable for tests and single-process deployments.

Values are stored as the codec's encoded bytes, exactly as Redis would hold
them, so the same calls give the same results on either backend.
"""

import asyncio
import logging
import re
import time
from collections import OrderedDict
from typing import Any

from ...config import CodecName
from ...errors import CacheOperationError
from ..codecs import Codec, get_codec
from ..interface import CacheInterface
from ..keys import KeySanitizer

logger = logging.getLogger(__name__)

TTL_MISSING = -2
TTL_PERSISTENT = -1

# Payloads INCRBY accepts: canonical decimal integers within 64 bits
_INTEGER_RE = re.compile(rb"0|-?[1-9][0-9]*")
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


class MemoryCacheBackend(CacheInterface):
    """
    In-memory cache backend with LRU eviction.

    Features:
    - LRU eviction when max_size is reached
    - Per-key expiry, reported through ``ttl`` like Redis does
    - Integer counters with increment/decrement
    - Operations serialized by an asyncio lock
    """

    def __init__(
        self,
        max_size: int = 1000,
        default_ttl: int = 3600,
        namespace: str = "",
        normalize_all_keys: bool = True,
        codec: Codec | CodecName | str = CodecName.JSON,
    ):
        """
        Initialize memory cache backend.

        Args:
            max_size: Maximum number of entries (LRU eviction when exceeded)
            default_ttl: Lifetime used when ``set`` gets no lifetime
            namespace: Prefix applied to normalized keys
            normalize_all_keys: Sanitize keys for counter/exists/expire operations too
            codec: Codec instance or registered codec name
        """
        self.max_size = max_size
        self.default_ttl = default_ttl
        self.namespace = namespace
        self.normalize_all_keys = normalize_all_keys
        self.codec: Codec = get_codec(codec) if isinstance(codec, str) else codec

        self._make_key = KeySanitizer(namespace)

        # Cache storage: key -> (payload, expiry_time)
        self._cache: OrderedDict[str, tuple[bytes, float | None]] = OrderedDict()

        # Stats
        self._hits = 0
        self._misses = 0
        self._sets = 0
        self._deletes = 0
        self._evictions = 0

        self._lock = asyncio.Lock()

    def _aux_key(self, key: str) -> str:
        return self._make_key(key) if self.normalize_all_keys else key

    def _is_expired(self, expiry: float | None) -> bool:
        """Check if entry is expired."""
        if expiry is None:
            return False
        return time.time() > expiry

    def _live_entry(self, cache_key: str) -> tuple[bytes, float | None] | None:
        """Return the entry for ``cache_key``, dropping it if expired. Caller holds the lock."""
        entry = self._cache.get(cache_key)
        if entry is None:
            return None
        if self._is_expired(entry[1]):
            del self._cache[cache_key]
            return None
        return entry

    def _store(self, cache_key: str, payload: bytes, expiry: float | None) -> None:
        """Insert or replace an entry, evicting the LRU entry at capacity. Caller holds the lock."""
        if cache_key not in self._cache and len(self._cache) >= self.max_size:
            evicted_key, _ = self._cache.popitem(last=False)
            self._evictions += 1
            logger.debug(f"Evicted key from memory cache: {evicted_key}")

        self._cache[cache_key] = (payload, expiry)
        self._cache.move_to_end(cache_key)

    async def get(self, key: str, default: Any = None) -> Any:
        """Retrieve value from cache."""
        cache_key = self._make_key(key)
        async with self._lock:
            entry = self._live_entry(cache_key)
            if entry is None:
                self._misses += 1
                return default

            self._cache.move_to_end(cache_key)
            self._hits += 1
            payload = entry[0]

        return self.codec.decode(payload)

    async def set(self, key: str, value: Any, lifetime: int | None = None) -> bool:
        """Store value in cache."""
        cache_key = self._make_key(key)
        if lifetime is None:
            lifetime = self.default_ttl

        if lifetime <= 0:
            # Redis rejects SETEX with a non-positive expire time
            logger.warning(
                f"Rejected non-positive lifetime for key '{key}'",
                extra={"key": key, "namespace": self.namespace, "lifetime": lifetime},
            )
            return False

        try:
            encoded = self.codec.encode(value)
        except (TypeError, ValueError) as e:
            logger.error(
                f"Failed to serialize value for key '{key}': {e}",
                extra={"key": key, "namespace": self.namespace, "value_type": type(value).__name__, "error": str(e)},
            )
            return False
        payload = encoded.encode("utf-8") if isinstance(encoded, str) else encoded

        async with self._lock:
            self._store(cache_key, payload, time.time() + lifetime)
            self._sets += 1
            return True

    async def ttl(self, key: str) -> int:
        """Remaining lifetime in seconds, or -1 (no expiry) / -2 (missing)."""
        cache_key = self._make_key(key)
        async with self._lock:
            entry = self._live_entry(cache_key)
            if entry is None:
                return TTL_MISSING
            expiry = entry[1]
            if expiry is None:
                return TTL_PERSISTENT
            return int(expiry - time.time() + 0.5)

    async def delete(self, key: str) -> bool:
        """Delete key from cache."""
        cache_key = self._make_key(key)
        async with self._lock:
            if self._live_entry(cache_key) is None:
                return False
            del self._cache[cache_key]
            self._deletes += 1
            return True

    async def delete_all(self) -> bool:
        """Clear all entries from cache."""
        async with self._lock:
            size = len(self._cache)
            self._cache.clear()
            logger.info(f"Cleared {size} entries from memory cache")
            return True

    async def _add(self, key: str, delta: int) -> int:
        cache_key = self._aux_key(key)
        async with self._lock:
            entry = self._live_entry(cache_key)
            if entry is None:
                current, expiry = 0, None
            else:
                payload, expiry = entry
                if not _INTEGER_RE.fullmatch(payload) or not _INT64_MIN <= int(payload) <= _INT64_MAX:
                    raise CacheOperationError(
                        f"Value of key '{key}' is not an integer or out of range",
                        details={"key": key, "step": abs(delta)},
                    )
                current = int(payload)

            new_value = current + delta
            if not _INT64_MIN <= new_value <= _INT64_MAX:
                raise CacheOperationError(
                    f"Increment of key '{key}' would overflow",
                    details={"key": key, "step": abs(delta)},
                )

            # Counters keep the expiry of the entry they update
            self._store(cache_key, str(new_value).encode("ascii"), expiry)
            return new_value

    async def increment(self, key: str, step: int = 1) -> int:
        """Add ``step`` to an integer entry (missing entries start at 0)."""
        return await self._add(key, step)

    async def decrement(self, key: str, step: int = 1) -> int:
        """Subtract ``step`` from an integer entry (missing entries start at 0)."""
        return await self._add(key, -step)

    async def exists(self, key: str) -> bool:
        """Check if key exists and is not expired."""
        cache_key = self._aux_key(key)
        async with self._lock:
            return self._live_entry(cache_key) is not None

    async def expire(self, key: str, seconds: int) -> bool:
        """Reset the expiry of an existing key; non-positive seconds delete it."""
        cache_key = self._aux_key(key)
        async with self._lock:
            entry = self._live_entry(cache_key)
            if entry is None:
                return False
            if seconds <= 0:
                del self._cache[cache_key]
                self._deletes += 1
                return True
            self._cache[cache_key] = (entry[0], time.time() + seconds)
            return True

    async def get_stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        async with self._lock:
            total_requests = self._hits + self._misses
            hit_rate = (self._hits / total_requests * 100) if total_requests > 0 else 0.0

            return {
                "backend": "memory",
                "size": len(self._cache),
                "max_size": self.max_size,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(hit_rate, 2),
                "sets": self._sets,
                "deletes": self._deletes,
                "evictions": self._evictions,
                "namespace": self.namespace,
                "codec": self.codec.name,
            }

    async def close(self) -> None:
        """Nothing to release; entries stay in-process."""
        logger.debug(f"Memory cache backend closed for namespace '{self.namespace}'")
