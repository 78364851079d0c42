"""
storecache — Cache Interface

Defines the abstract interface that all cache backends must implement.
"""

from abc import ABC, abstractmethod
from typing import Any


class CacheInterface(ABC):
    """
    Abstract base class for cache backends.

    Callers coded against this interface can swap one backend for another
    (memory, Redis) without changing behavior.
    """

    async def connect(self) -> None:
        """
        Establish the backend's connection.

        Backends without a remote server have nothing to do here.

        Raises:
            CacheConnectionError: If the server cannot be reached
        """
        return None

    @abstractmethod
    async def get(self, key: str, default: Any = None) -> Any:
        """
        Retrieve a value from the cache.

        Args:
            key: Cache key
            default: Returned on a miss

        Returns:
            Cached value if present, ``default`` otherwise. A miss is never an error.

        Raises:
            CacheOperationError: If the store fails
        """
        pass

    @abstractmethod
    async def set(self, key: str, value: Any, lifetime: int | None = None) -> bool:
        """
        Store a value with an expiry, in a single atomic operation.

        Args:
            key: Cache key
            value: Value to cache (must be encodable by the backend's codec)
            lifetime: Seconds to live (None = configured default)

        Returns:
            True if the store acknowledged the write, False otherwise
        """
        pass

    @abstractmethod
    async def ttl(self, key: str) -> int:
        """
        Remaining seconds to live.

        Returns:
            Seconds left, ``-1`` for an entry without expiry, ``-2`` for a missing entry
        """
        pass

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """
        Delete a key from the cache.

        Returns:
            True if a key was removed, False otherwise
        """
        pass

    @abstractmethod
    async def delete_all(self) -> bool:
        """
        Delete every entry visible to the backend.

        For shared stores this is not limited to this cache's namespace:
        every client of the store loses its entries.

        Returns:
            True if the store acknowledged the flush
        """
        pass

    @abstractmethod
    async def increment(self, key: str, step: int = 1) -> int:
        """Atomically add ``step`` to an integer entry and return the new value."""
        pass

    @abstractmethod
    async def decrement(self, key: str, step: int = 1) -> int:
        """Atomically subtract ``step`` from an integer entry and return the new value."""
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        """Check if a key is present."""
        pass

    @abstractmethod
    async def expire(self, key: str, seconds: int) -> bool:
        """
        Set or reset the expiry of an existing key without touching its value.

        Returns:
            True if the expiry was set, False if the key is missing or the store failed
        """
        pass

    @abstractmethod
    async def get_stats(self) -> dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dictionary with cache statistics (hits, misses, sets, ...)
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """
        Release the backend's resources.

        Should be called during graceful shutdown.
        """
        pass
