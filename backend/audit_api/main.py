"""
Audit API

Serves paginated reads over stored audit records.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI

from audit_api.routers import audit
from audit_shared.config.settings import get_settings
from audit_shared.services.audit_event_store import create_audit_event_store
from audit_shared.services.service_factory import ServiceInfo, create_fastapi_service
from audit_shared.utils.app_logger import configure_logging, get_logger

logger = get_logger(__name__)

SERVICE_INFO = ServiceInfo(
    name="audit-api",
    title="Audit API",
    description="Paginated access to stored audit records.",
    port=get_settings().api.port,
    host=get_settings().api.host,
    tags=[{"name": "Audit", "description": "Audit record queries"}],
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level)

    store = create_audit_event_store(settings)
    await store.connect()
    app.state.audit_store = store
    try:
        yield
    finally:
        await store.close()
        app.state.audit_store = None


def create_app() -> FastAPI:
    app = create_fastapi_service(
        service_info=SERVICE_INFO,
        custom_lifespan=lifespan,
        include_health_check=True,
        include_logging_middleware=True,
    )
    app.include_router(audit.router)
    return app


app = create_app()


def main() -> None:
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "audit_api.main:app",
        host=SERVICE_INFO.host,
        port=SERVICE_INFO.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
