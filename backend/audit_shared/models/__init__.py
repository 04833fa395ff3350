"""
Shared model definitions for the audit event service
"""

from .audit_event import (
    AuditBlock,
    AuditEvent,
    BlockState,
    SecurityBlock,
    SecurityDetails,
)
from .views import AuditView, SecurityView, TransformedEvent

__all__ = [
    "AuditBlock",
    "AuditEvent",
    "AuditView",
    "BlockState",
    "SecurityBlock",
    "SecurityDetails",
    "SecurityView",
    "TransformedEvent",
]
