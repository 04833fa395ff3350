"""
Audit event service exceptions

Taxonomy:
- MalformedEnvelopeError: decode-time, event dropped
- EventValidationError: validation-time, event dropped
- OperationTimeoutError: store call exceeded its time budget
- StorageError: any other store failure
"""

from .base import AuditServiceException
from .pipeline import EventValidationError, MalformedEnvelopeError
from .storage import OperationTimeoutError, StorageError

__all__ = [
    "AuditServiceException",
    "EventValidationError",
    "MalformedEnvelopeError",
    "OperationTimeoutError",
    "StorageError",
]
