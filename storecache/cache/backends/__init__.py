"""
storecache — Cache Backends

Exports available cache backend implementations.

The Redis backend is lazy-loaded via factory.py so that a missing redis
client is reported as a ConfigurationError rather than an ImportError.
"""

from .memory import MemoryCacheBackend

__all__ = [
    "MemoryCacheBackend",
]
