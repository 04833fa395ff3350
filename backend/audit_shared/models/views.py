"""
Derived event views.

AuditView is persisted (plus `_id` and `received`); SecurityView is handed to
the SOC forwarder. Both are plain dicts with a fixed key order so they can be
written to MongoDB or serialized as-is.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional

AuditView = Dict[str, Any]
SecurityView = Dict[str, Any]

CONTEXT_FIELDS = (
    "user",
    "sessionId",
    "datetime",
    "environment",
    "version",
    "application",
    "component",
    "ip",
)
AUDIT_VIEW_FIELDS = CONTEXT_FIELDS + ("audit",)
SECURITY_VIEW_FIELDS = CONTEXT_FIELDS + ("pmcode", "priority", "details")


@dataclass(frozen=True)
class TransformedEvent:
    audit_view: Optional[AuditView] = None
    security_view: Optional[SecurityView] = None
