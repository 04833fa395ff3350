"""
Base exception for the audit event service
"""

from typing import Any, Dict, Optional


class AuditServiceException(Exception):
    """Base exception carrying a stable code and structured details"""

    def __init__(self, message: str, code: str = "AUDIT_SERVICE_ERROR",
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
