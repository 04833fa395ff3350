"""
Split a validated event into its audit and security views.

Pure functions: no I/O, input is never mutated, nested dicts are copied.
"""

from __future__ import annotations

import copy
from typing import Any, Dict, Optional, Tuple

from audit_shared.models import AuditEvent, AuditView, SecurityView, TransformedEvent
from audit_shared.models.views import AUDIT_VIEW_FIELDS, SECURITY_VIEW_FIELDS


def _context(event: AuditEvent) -> Dict[str, Any]:
    return {
        "user": event.user,
        "sessionId": event.session_id,
        "datetime": event.timestamp,
        "environment": event.environment,
        "version": event.version,
        "application": event.application,
        "component": event.component,
        "ip": event.ip,
    }


def _project(fields: Tuple[str, ...], values: Dict[str, Any]) -> Dict[str, Any]:
    # Views follow the declared field order; unset optional fields stay absent.
    return {key: values[key] for key in fields if values.get(key) is not None}


def _set_fields(model: Any, names: Dict[str, str]) -> Dict[str, Any]:
    # Absent optional fields stay absent in the view.
    values: Dict[str, Any] = {}
    for attr, key in names.items():
        value = getattr(model, attr)
        if value is not None:
            values[key] = value
    return values


def build_audit_view(event: AuditEvent) -> Optional[AuditView]:
    if event.audit is None:
        return None

    audit = _set_fields(
        event.audit,
        {
            "event_type": "eventType",
            "action": "action",
            "entity": "entity",
            "entity_id": "entityId",
            "status": "status",
        },
    )
    audit["details"] = copy.deepcopy(event.audit.details)

    return _project(AUDIT_VIEW_FIELDS, {**_context(event), "audit": audit})


def build_security_view(event: AuditEvent) -> Optional[SecurityView]:
    if event.security is None:
        return None

    details = _set_fields(
        event.security.details,
        {
            "transaction_code": "transactionCode",
            "message": "message",
            "additional_info": "additionalInfo",
        },
    )
    return _project(
        SECURITY_VIEW_FIELDS,
        {
            **_context(event),
            "pmcode": event.security.pmcode,
            "priority": event.security.priority,
            "details": details,
        },
    )


def transform_event(event: AuditEvent) -> TransformedEvent:
    return TransformedEvent(
        audit_view=build_audit_view(event),
        security_view=build_security_view(event),
    )
