"""
storecache — Error Types

Exception hierarchy shared by the configuration layer, the cache factory and
every cache backend. All exceptions inherit from StoreCacheError.

Only construction-time failures are raised as errors by the boolean-returning
cache operations; value-returning operations surface store failures as
CacheOperationError.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standard error codes for structured error responses."""

    # Configuration errors
    MISSING_CONFIGURATION = "MISSING_CONFIGURATION"
    INVALID_CONFIGURATION = "INVALID_CONFIGURATION"
    DEPENDENCY_MISSING = "DEPENDENCY_MISSING"

    # Cache errors
    CACHE_CONNECTION_FAILED = "CACHE_CONNECTION_FAILED"
    CACHE_FAILURE = "CACHE_FAILURE"

    # Internal errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class StoreCacheError(Exception):
    """Base exception for all storecache errors."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        status_code: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.status_code = status_code

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(StoreCacheError):
    """Raised when configuration is invalid, missing, or a required client library is unavailable."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, details, status_code=500)


class CacheError(StoreCacheError):
    """Base exception for cache-related errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, details, status_code=500)


class CacheConnectionError(CacheError):
    """Raised when a cache backend cannot reach its server."""

    def __init__(self, host: str, port: int, details: dict[str, Any] | None = None):
        message = f"Could not connect to cache server at host '{host}' using port '{port}'"
        error_details = details or {}
        error_details.update({"host": host, "port": port})
        super().__init__(message, error_details)
        self.host = host
        self.port = port


class CacheOperationError(CacheError):
    """Raised when a value-returning cache operation fails at the store."""

    pass


def extract_error_code(error: Exception) -> ErrorCode:
    """
    Extract appropriate ErrorCode from an exception.

    Args:
        error: Exception to categorize

    Returns:
        Appropriate ErrorCode for the exception
    """
    if isinstance(error, CacheConnectionError):
        return ErrorCode.CACHE_CONNECTION_FAILED

    if isinstance(error, CacheError):
        return ErrorCode.CACHE_FAILURE

    if isinstance(error, ConfigurationError):
        if error.details.get("package"):
            return ErrorCode.DEPENDENCY_MISSING
        if error.details.get("missing"):
            return ErrorCode.MISSING_CONFIGURATION
        return ErrorCode.INVALID_CONFIGURATION

    return ErrorCode.INTERNAL_ERROR
