"""
SOC forwarding sink.

Security views are written as audit-typed JSON log lines on a dedicated
logger; the platform's log shipping routes them to the security operations
centre. Delivery beyond the log line is out of our hands.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from audit_shared.models import SecurityView
from audit_shared.utils.app_logger import get_json_logger

SOC_LOGGER_NAME = "audit.soc"


class SecurityEventSink(Protocol):
    def forward(self, security_view: SecurityView) -> bool:
        """Return True when the view was emitted."""
        ...


class SecurityEventForwarder:
    """Emit security views to the SOC audit stream when enabled."""

    def __init__(self, *, enabled: bool, logger: Optional[logging.Logger] = None):
        self.enabled = enabled
        self._logger = logger or get_json_logger(SOC_LOGGER_NAME)

    def forward(self, security_view: SecurityView) -> bool:
        if not self.enabled:
            return False
        self._logger.info(
            "security event",
            extra={"log.type": "audit", "event": dict(security_view)},
        )
        return True
