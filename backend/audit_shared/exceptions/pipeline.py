"""
Event pipeline exceptions

Raised while turning a raw queue message into a validated event. Both are
fatal for the event: it is neither persisted nor forwarded.
"""

from typing import Iterable, List, Optional

from .base import AuditServiceException


class MalformedEnvelopeError(AuditServiceException):
    """Transport envelope (or the payload inside it) is not parseable"""

    def __init__(self, reason: str, layer: Optional[str] = None):
        super().__init__(
            message=f"Malformed envelope: {reason}",
            code="MALFORMED_ENVELOPE",
            details={"reason": reason, "layer": layer} if layer else {"reason": reason}
        )
        self.reason = reason
        self.layer = layer


class EventValidationError(AuditServiceException):
    """Event failed schema validation; carries every collected violation"""

    def __init__(self, violations: Iterable[str]):
        violations = list(violations)
        super().__init__(
            message=f"Event is invalid, {'; '.join(violations)}",
            code="EVENT_VALIDATION_ERROR",
            details={"violations": violations}
        )
        self.violations: List[str] = violations
