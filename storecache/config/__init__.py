"""
storecache — Configuration Module

Provides typed configuration loading and validation.
"""

from .loader import get_config, load_config, reload_config, reset_config
from .schemas import (
    CacheBackend,
    CacheConfig,
    CodecName,
    Environment,
    LogLevel,
    ServerConfig,
    StoreCacheConfig,
)

__all__ = [
    # Loader functions
    "load_config",
    "get_config",
    "reload_config",
    "reset_config",
    # Main config
    "StoreCacheConfig",
    # Enums
    "Environment",
    "CacheBackend",
    "CodecName",
    "LogLevel",
    # Config sections
    "CacheConfig",
    "ServerConfig",
]
