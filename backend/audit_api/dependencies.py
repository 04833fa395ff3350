"""
FastAPI dependencies for the audit API
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from audit_shared.services.audit_event_store import AuditEventStore


def get_audit_store(request: Request) -> AuditEventStore:
    """Store opened by the application lifespan"""
    store = getattr(request.app.state, "audit_store", None)
    if store is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Service Unavailable")
    return store


AuditEventStoreDep = Annotated[AuditEventStore, Depends(get_audit_store)]
