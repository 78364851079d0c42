"""
storecache — Configuration Loader

Loads and validates configuration from environment variables and .env files.
Provides a singleton configuration instance for the runtime.
"""

import logging
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import ValidationError

from ..errors import ConfigurationError
from .schemas import StoreCacheConfig

logger = logging.getLogger(__name__)

_config_instance: StoreCacheConfig | None = None


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _server_from_env() -> dict[str, Any] | None:
    """Build the server section, or None when no REDIS_HOST is set."""
    host = os.getenv("REDIS_HOST")
    if not host:
        return None
    return {
        "host": host,
        "port": int(os.getenv("REDIS_PORT", "6379")),
        "timeout": float(os.getenv("REDIS_TIMEOUT", "1")),
        "persistent": _env_bool("REDIS_PERSISTENT"),
    }


def load_config(
    env_file: str | None = None,
    reload: bool = False,
) -> StoreCacheConfig:
    """
    Load configuration from environment variables and .env file.

    Args:
        env_file: Path to .env file (default: .env in the working directory)
        reload: Force reload even if config already loaded

    Returns:
        Validated StoreCacheConfig instance

    Raises:
        ConfigurationError: If configuration is invalid
    """
    global _config_instance

    if _config_instance is not None and not reload:
        return _config_instance

    if env_file:
        env_path = Path(env_file)
    else:
        env_path = Path.cwd() / ".env"

    if env_path.exists():
        logger.info(f"Loading environment from {env_path}")
        try:
            load_dotenv(env_path, override=True)
        except Exception as e:
            logger.error(
                f"Failed to load .env file from {env_path}: {e}",
                extra={"path": str(env_path), "error": str(e)},
                exc_info=True,
            )
            raise ConfigurationError(
                f"Failed to load environment file: {e}",
                details={"path": str(env_path), "error": str(e)},
            ) from e
    else:
        logger.debug("No .env file found, using environment variables only")

    try:
        server = _server_from_env()
        # Auto-detect cache backend: redis if REDIS_HOST is set, else memory
        cache_backend = "redis" if server else "memory"

        cache: dict[str, Any] = {
            "backend": os.getenv("CACHE_BACKEND", cache_backend),
            "ttl_seconds": int(os.getenv("CACHE_TTL_SECONDS", "3600")),
            "max_size": int(os.getenv("CACHE_MAX_SIZE", "1000")),
            "namespace": os.getenv("CACHE_NAMESPACE", ""),
            "codec": os.getenv("CACHE_CODEC", "json"),
            "normalize_all_keys": _env_bool("CACHE_NORMALIZE_ALL_KEYS", "true"),
            "flush_settle_seconds": float(os.getenv("CACHE_FLUSH_SETTLE_SECONDS", "1.0")),
            "server": server,
        }
        config_dict: dict[str, Any] = {
            "environment": os.getenv("ENVIRONMENT", "development"),
            "log_level": os.getenv("LOG_LEVEL", "INFO"),
            "cache": cache,
        }
    except ValueError as e:
        # int()/float() on a malformed variable
        raise ConfigurationError(
            f"Malformed numeric environment variable: {e}",
            details={"error": str(e)},
        ) from e

    try:
        _config_instance = StoreCacheConfig(**config_dict)
        logger.info(
            f"Configuration loaded successfully (environment: {_config_instance.environment})",
            extra={"environment": _config_instance.environment, "cache_backend": _config_instance.cache.backend},
        )
        return _config_instance
    except ValidationError as e:
        logger.error(
            f"Configuration validation failed: {e}",
            extra={"validation_errors": e.errors(), "config_dict_keys": list(config_dict.keys())},
            exc_info=True,
        )
        raise ConfigurationError(
            "Configuration validation failed. Check your environment variables and configuration.",
            details={"validation_errors": e.errors()},
        ) from e


def get_config() -> StoreCacheConfig:
    """
    Get the current configuration instance, loading it on first access.

    Returns:
        Current StoreCacheConfig instance
    """
    if _config_instance is None:
        return load_config()

    return _config_instance


def reload_config(env_file: str | None = None) -> StoreCacheConfig:
    """
    Force reload configuration.

    Args:
        env_file: Optional path to .env file

    Returns:
        Reloaded StoreCacheConfig instance
    """
    return load_config(env_file=env_file, reload=True)


def reset_config() -> None:
    """Drop the loaded configuration. Used by tests."""
    global _config_instance
    _config_instance = None
