"""
Event schema validation.

Field constraints live on the pydantic models (audit_shared.models); rules
that span several fields are plain functions in CROSS_FIELD_RULES. Both are
always evaluated, so a rejected event reports every violation at once.
"""

from __future__ import annotations

from typing import Any, Callable, List, Mapping, Optional

from pydantic import ValidationError

from audit_shared.exceptions import EventValidationError
from audit_shared.models import AuditEvent, BlockState

CrossFieldRule = Callable[[Mapping[str, Any]], Optional[str]]


def require_audit_or_security(event: Mapping[str, Any]) -> Optional[str]:
    states = (BlockState.of(event, "audit"), BlockState.of(event, "security"))
    if BlockState.PRESENT not in states:
        return 'at least one of "audit" or "security" must be provided and not null'
    return None


CROSS_FIELD_RULES: List[CrossFieldRule] = [require_audit_or_security]


def _format_error(error: Mapping[str, Any]) -> str:
    location = ".".join(str(part) for part in error.get("loc", ())) or "event"
    return f"{location}: {error.get('msg')}"


def validate_event(event: Any) -> AuditEvent:
    """
    Validate and normalize a decoded event.

    On success the returned model has `environment` lowercased, dashes
    removed from `security.pmcode`, and null `audit` / `security` blocks
    collapsed to None. Unknown top-level keys are carried in `model_extra`.

    Raises:
        EventValidationError: with every field and cross-field violation
    """
    if not isinstance(event, Mapping):
        raise EventValidationError(["event: Input should be an object"])

    violations: List[str] = []
    validated: Optional[AuditEvent] = None
    try:
        validated = AuditEvent.model_validate(dict(event))
    except ValidationError as e:
        violations.extend(_format_error(error) for error in e.errors())

    for rule in CROSS_FIELD_RULES:
        message = rule(event)
        if message:
            violations.append(message)

    if violations:
        raise EventValidationError(violations)
    return validated
