"""
storecache — Configuration Schemas

Typed configuration models using Pydantic for validation and type safety.
Configuration is read-only once a cache backend has been built from it.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Environment(str, Enum):
    """Runtime environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


class CacheBackend(str, Enum):
    """Supported cache backends."""

    MEMORY = "memory"
    REDIS = "redis"


class CodecName(str, Enum):
    """Value encodings available to cache backends."""

    JSON = "json"
    RAW = "raw"


class LogLevel(str, Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ServerConfig(BaseModel):
    """Connection parameters for the remote store."""

    host: str = Field(default="localhost", min_length=1, description="Redis server hostname")
    port: int = Field(default=6379, ge=1, le=65535, description="Redis server port")
    timeout: float = Field(default=1.0, gt=0, description="Connect/read timeout in seconds")
    persistent: bool = Field(
        default=False,
        description="Reuse one shared connection per host/port/timeout within the process",
    )

    model_config = ConfigDict(frozen=True)

    @property
    def endpoint(self) -> tuple[str, int, float]:
        """Identity of a shared connection."""
        return (self.host, self.port, self.timeout)


class CacheConfig(BaseModel):
    """Cache configuration."""

    backend: CacheBackend = Field(default=CacheBackend.REDIS, description="Cache backend to use")
    ttl_seconds: int = Field(default=3600, ge=1, description="Default entry lifetime in seconds")
    max_size: int = Field(default=1000, ge=1, description="Max cache entries (memory backend)")
    namespace: str = Field(default="", description="Optional key prefix applied during normalization")
    codec: CodecName = Field(default=CodecName.JSON, description="Value encoding")
    normalize_all_keys: bool = Field(
        default=True,
        description="Sanitize keys for increment/decrement/exists/expire as well as get/set/ttl/delete",
    )
    flush_settle_seconds: float = Field(
        default=1.0,
        ge=1.0,
        description="Delay awaited after a store-wide flush before returning",
    )

    # Redis-specific settings (only used when backend=redis)
    server: ServerConfig | None = Field(default=None, description="Redis server connection parameters")

    model_config = ConfigDict(frozen=True)

    @field_validator("namespace")
    @classmethod
    def validate_namespace(cls, v: str) -> str:
        """Namespaces are used verbatim as key prefixes and may not contain ':'."""
        v = v.strip()
        if ":" in v:
            raise ValueError("namespace must not contain ':'")
        return v


class StoreCacheConfig(BaseModel):
    """Root configuration for storecache."""

    environment: Environment = Field(default=Environment.DEVELOPMENT, description="Runtime environment")
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")

    cache: CacheConfig = Field(default_factory=CacheConfig)

    @field_validator("cache")
    @classmethod
    def validate_cache(cls, v: CacheConfig, info: Any) -> CacheConfig:
        """Production deployments must not silently fall back to an unconfigured server."""
        environment = info.data.get("environment")
        if environment == Environment.PRODUCTION and v.backend == CacheBackend.REDIS and v.server is None:
            raise ValueError("cache.server must be configured for the redis backend in production")
        return v

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True)
