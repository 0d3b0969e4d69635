"""
Cache Domain Exceptions

Exceptions raised by cache storage and coordination.
Producer failures are never wrapped: they reach the caller unchanged.
"""

from typing import Any, Dict, Optional


class CacheException(Exception):
    """Base exception for cache-related errors.

    Carries a machine readable error code and structured details so that
    callers can log the failure without parsing the message.
    """

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)


class CacheMissException(CacheException):
    """Raised when a value is retrieved for a tag that holds none.

    Callers must check exists() before retrieve().
    """

    def __init__(self, tag: str):
        self.tag = tag
        super().__init__(
            message=f"No cached value for tag '{tag}'",
            error_code="CACHE_MISS",
            details={"tag": tag},
        )


class StorageException(CacheException):
    """Raised when a storage backend fails to complete an operation."""

    def __init__(
        self,
        operation: str,
        tag: Optional[str] = None,
        original_error: Optional[Exception] = None,
        message: Optional[str] = None,
    ):
        details: Dict[str, Any] = {"operation": operation}
        if tag:
            details["tag"] = tag
        if original_error:
            details["original_error"] = str(original_error)
            details["original_error_type"] = type(original_error).__name__

        super().__init__(
            message=message or f"Storage operation '{operation}' failed",
            error_code="CACHE_STORAGE_ERROR",
            details=details,
        )
        self.operation = operation
        self.tag = tag
        # Preserve exception context for debugging (exception chaining)
        if original_error:
            self.__cause__ = original_error
