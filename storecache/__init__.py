"""
storecache — Redis-backed cache adapter

A uniform async cache contract (get, set with expiry, ttl, delete,
delete_all, increment/decrement, exists, expire) with interchangeable
memory and Redis backends.
"""

__version__ = "1.0.0"

from .cache import CacheInterface, close_all_caches, create_cache, get_cache
from .errors import CacheConnectionError, CacheError, CacheOperationError, ConfigurationError, StoreCacheError

__all__ = [
    "CacheInterface",
    "create_cache",
    "get_cache",
    "close_all_caches",
    "StoreCacheError",
    "ConfigurationError",
    "CacheError",
    "CacheConnectionError",
    "CacheOperationError",
]
