"""
FastAPI application factory shared by every deployment topology.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from userhub.context import AppContext
from userhub.controllers import default_route_table
from userhub.controllers.docs_controller import router as docs_router
from userhub.error_boundary import install_error_handlers, install_not_found_fallback
from userhub.middleware import ErrorBoundaryMiddleware, RequestSizeLimitMiddleware
from userhub.routing import RouteTable
from userhub.services.resource_service import DEFAULT_DIRECTORIES

logger = logging.getLogger(__name__)


def create_app(context: AppContext, route_table: Optional[RouteTable] = None) -> FastAPI:
    """
    Assemble the application for ``context.topology``.

    Static mounts are only added where the local filesystem is writable;
    their directories must already exist (see ResourceProvisioner).
    """
    settings = context.settings
    route_table = route_table or default_route_table()

    app = FastAPI(
        title="UserHub",
        description="User, upload and profile API",
        version="1.0.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.context = context
    app.state.route_table = route_table

    # Last added runs first: CORS wraps the boundary, which wraps the size limit
    app.add_middleware(RequestSizeLimitMiddleware, max_bytes=settings.BODY_LIMIT_BYTES)
    app.add_middleware(ErrorBoundaryMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=".*",
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    install_error_handlers(app)

    app.include_router(docs_router, prefix="/api-docs")

    @app.get("/health", include_in_schema=False)
    async def health_check():
        return {
            "status": "ok",
            "topology": context.topology.value,
            "database": context.connections.state.value,
        }

    if context.topology.writable_filesystem:
        root = Path(settings.STATIC_ROOT)
        for directory in DEFAULT_DIRECTORIES:
            app.mount(
                f"/{directory.path}",
                StaticFiles(directory=root / directory.path),
                name=directory.path,
            )

    route_table.include_into(app)
    install_not_found_fallback(app)

    logger.info(
        f"Application composed for {context.topology.value} topology "
        f"with mounts {', '.join(route_table.prefixes)}"
    )
    return app
