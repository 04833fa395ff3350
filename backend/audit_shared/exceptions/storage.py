"""
Storage exceptions

OperationTimeoutError and StorageError are siblings: a timeout is never an
instance of StorageError, so callers can map them to different responses
regardless of except-clause order.
"""

from typing import Optional

from .base import AuditServiceException


class OperationTimeoutError(AuditServiceException):
    """Store call exceeded its execution time budget"""

    def __init__(self, operation: str, max_time_ms: int, cause: Optional[str] = None):
        super().__init__(
            message=f"{operation} exceeded {max_time_ms}ms",
            code="OPERATION_TIMEOUT",
            details={"operation": operation, "max_time_ms": max_time_ms, "cause": cause}
        )
        self.operation = operation
        self.max_time_ms = max_time_ms


class StorageError(AuditServiceException):
    """Any other store failure (connectivity, write errors, ...)"""

    def __init__(self, operation: str, cause: Optional[str] = None):
        super().__init__(
            message=f"Storage error during {operation}: {cause}" if cause else f"Storage error during {operation}",
            code="STORAGE_ERROR",
            details={"operation": operation, "cause": cause}
        )
        self.operation = operation
