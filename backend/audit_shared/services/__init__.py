"""
Audit event pipeline services
"""

from .audit_event_store import AuditEventStore, create_audit_event_store, generate_audit_id
from .envelope_decoder import decode_envelope
from .event_processor import EventProcessor, ProcessedEvent
from .event_transformer import transform_event
from .event_validator import validate_event
from .security_forwarder import SecurityEventForwarder

__all__ = [
    "AuditEventStore",
    "EventProcessor",
    "ProcessedEvent",
    "SecurityEventForwarder",
    "create_audit_event_store",
    "decode_envelope",
    "generate_audit_id",
    "transform_event",
    "validate_event",
]
