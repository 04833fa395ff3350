"""
Event processing pipeline.

decode -> validate -> transform -> persist (audit view) -> forward (security view)

Each step strictly precedes the next; the first failure propagates and no
later step runs. The pipeline never retries: redelivery by the queue is what
makes the idempotent store necessary.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from audit_shared.exceptions import (
    EventValidationError,
    MalformedEnvelopeError,
    OperationTimeoutError,
    StorageError,
)
from audit_shared.models import TransformedEvent
from audit_shared.observability.metrics import record_outcome
from audit_shared.services.audit_event_store import AuditEventStore
from audit_shared.services.envelope_decoder import RawEnvelope, decode_envelope
from audit_shared.services.event_transformer import transform_event
from audit_shared.services.event_validator import validate_event
from audit_shared.services.security_forwarder import SecurityEventSink
from audit_shared.utils.app_logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProcessedEvent:
    audit_id: Optional[str]
    forwarded: bool


class EventProcessor:
    def __init__(self, store: AuditEventStore, forwarder: SecurityEventSink):
        self.store = store
        self.forwarder = forwarder

    async def process_event(self, raw: RawEnvelope) -> ProcessedEvent:
        try:
            event = validate_event(decode_envelope(raw))
            views: TransformedEvent = transform_event(event)

            audit_id = None
            if views.audit_view is not None:
                audit_id = await self.store.save_audit_event(views.audit_view)
        except MalformedEnvelopeError:
            record_outcome("malformed")
            raise
        except EventValidationError:
            record_outcome("invalid")
            raise
        except OperationTimeoutError:
            record_outcome("timeout")
            raise
        except StorageError:
            record_outcome("storage_error")
            raise

        forwarded = False
        if views.security_view is not None:
            forwarded = self._forward(views.security_view)

        record_outcome("processed")
        logger.info("Event processed successfully (audit_id=%s, forwarded=%s)", audit_id, forwarded)
        return ProcessedEvent(audit_id=audit_id, forwarded=forwarded)

    def _forward(self, security_view) -> bool:
        # Best effort: the audit record is already durable at this point.
        try:
            return bool(self.forwarder.forward(security_view))
        except Exception:
            logger.exception("Failed to forward security event")
            return False
