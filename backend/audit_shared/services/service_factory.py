"""
Service Factory Module

Common FastAPI service creation utilities shared by the audit API and the
audit event worker.
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import Callable, Dict, List, Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from audit_shared.observability.metrics import render_latest

logger = logging.getLogger(__name__)


class ServiceInfo:
    """Service configuration container"""

    def __init__(
        self,
        name: str,
        title: str,
        description: str,
        version: str = "1.0.0",
        port: int = 8000,
        host: str = "localhost",
        tags: Optional[List[Dict[str, str]]] = None
    ):
        self.name = name
        self.title = title
        self.description = description
        self.version = version
        self.port = port
        self.host = host
        self.tags = tags or []


def create_fastapi_service(
    service_info: ServiceInfo,
    custom_lifespan: Optional[Callable] = None,
    include_health_check: bool = True,
    include_logging_middleware: bool = True,
    include_metrics: bool = True,
) -> FastAPI:
    """
    Create a standardized FastAPI application with common configurations.

    Args:
        service_info: Service configuration
        custom_lifespan: Optional custom lifespan function
        include_health_check: Whether to include default health check endpoint
        include_logging_middleware: Whether to include request logging middleware
        include_metrics: Whether to expose /metrics

    Returns:
        Configured FastAPI application
    """
    if custom_lifespan:
        lifespan_func = custom_lifespan
    else:
        @asynccontextmanager
        async def default_lifespan(app: FastAPI):
            logger.info(f"{service_info.name} starting")
            yield
            logger.info(f"{service_info.name} stopped")
        lifespan_func = default_lifespan

    openapi_tags = [
        {"name": "Health", "description": "Health check and service status"}
    ]
    openapi_tags.extend(service_info.tags)

    app = FastAPI(
        title=service_info.title,
        description=service_info.description,
        version=service_info.version,
        lifespan=lifespan_func,
        openapi_tags=openapi_tags
    )

    if include_logging_middleware:
        _add_logging_middleware(app)

    if include_health_check:
        _add_health_check(app, service_info)

    if include_metrics:
        _add_metrics_endpoint(app)

    return app


def _add_logging_middleware(app: FastAPI) -> None:
    """Add request logging middleware"""
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        process_time = time.time() - start_time
        logger.info(
            f"Request: {request.method} {request.url.path} - Response: {response.status_code} - Time: {process_time:.4f}s"
        )
        return response


def _add_health_check(app: FastAPI, service_info: ServiceInfo) -> None:
    """Add standardized health check endpoints"""

    @app.get("/", tags=["Health"])
    async def root():
        return {
            "service": service_info.name,
            "title": service_info.title,
            "version": service_info.version,
            "description": service_info.description,
            "status": "running"
        }

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        store = getattr(request.app.state, "audit_store", None)
        store_ok = bool(store is not None and await store.health_check())
        body = {
            "service": service_info.name,
            "version": service_info.version,
            "status": "healthy" if store_ok else "unhealthy",
            "store_connected": store_ok,
        }
        if store_ok:
            return body
        return JSONResponse(status_code=503, content=body)


def _add_metrics_endpoint(app: FastAPI) -> None:
    @app.get("/metrics", include_in_schema=False)
    async def metrics():
        payload, content_type = render_latest()
        return Response(content=payload, media_type=content_type)
