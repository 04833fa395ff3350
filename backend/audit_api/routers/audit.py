"""
Audit record query router.

Errors never leak internals: store timeouts map to 504, everything else to a
generic 500.
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, HTTPException, Query, Request, status
from fastapi.encoders import jsonable_encoder

from audit_api.dependencies import AuditEventStoreDep
from audit_shared.config.settings import get_settings
from audit_shared.exceptions import OperationTimeoutError
from audit_shared.utils.app_logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/audit", tags=["Audit"])

_api_settings = get_settings().api


def build_page_links(request: Request, page: int, page_size: int, *, has_next: bool) -> Dict[str, str]:
    def link(target: int) -> str:
        return str(request.url.include_query_params(page=target, pageSize=page_size))

    links = {"self": link(page), "first": link(1)}
    if page > 1:
        links["prev"] = link(page - 1)
    if has_next:
        links["next"] = link(page + 1)
    return links


@router.get("", summary="Get all audit events")
async def list_audit_events(
    request: Request,
    page: int = Query(1, ge=1, description="The page number for pagination"),
    page_size: int = Query(
        _api_settings.default_page_size,
        ge=1,
        le=_api_settings.max_page_size,
        alias="pageSize",
        description="The number of items per page for pagination",
    ),
    *,
    audit_store: AuditEventStoreDep,
) -> Dict[str, Any]:
    try:
        events = await audit_store.list_audit_events(page, page_size)
    except OperationTimeoutError as e:
        logger.warning("Audit event query timed out: %s", e)
        raise HTTPException(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail="Gateway Timeout") from e
    except Exception as e:
        logger.exception("Audit event query failed")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal Server Error") from e

    return {
        "data": {"events": jsonable_encoder(events)},
        "links": build_page_links(request, page, page_size, has_next=len(events) == page_size),
        "meta": {"page": page, "pageSize": page_size},
    }
