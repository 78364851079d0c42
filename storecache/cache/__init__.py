"""
storecache — Cache Module

Named cache instances behind one interface, with memory and Redis backends.

Usage:
    from storecache.cache import create_cache

    cache = await create_cache({"server": {"host": "localhost", "port": 6379, "timeout": 1}})
    await cache.set("key", "value", lifetime=3600)
    value = await cache.get("key")
"""

from .codecs import Codec, JsonCodec, RawCodec, get_codec
from .connections import ConnectionRegistry
from .factory import (
    close_all_caches,
    create_cache,
    get_cache,
    list_cache_instances,
    reset_cache_factory,
)
from .interface import CacheInterface
from .keys import KeySanitizer

__all__ = [
    # Factory functions
    "create_cache",
    "get_cache",
    "close_all_caches",
    "list_cache_instances",
    "reset_cache_factory",
    # Interface
    "CacheInterface",
    # Building blocks
    "Codec",
    "JsonCodec",
    "RawCodec",
    "get_codec",
    "ConnectionRegistry",
    "KeySanitizer",
]
