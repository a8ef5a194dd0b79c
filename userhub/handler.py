"""
Per-invocation entry strategy for function and edge runtimes.

No listener, static mounts or realtime transport. Each request first makes
sure the cached connection exists; if that fails the request gets a fixed
500 body and the process keeps serving later invocations.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi.responses import JSONResponse
from mangum import Mangum
from starlette.types import ASGIApp, Receive, Scope, Send

from userhub.app import create_app
from userhub.bootstrap import wait_for_connection
from userhub.context import AppContext
from userhub.errors import ConfigurationError, DatabaseConnectionError
from userhub.models.error import GatewayErrorResponse
from userhub.routing import RouteTable

logger = logging.getLogger(__name__)


class ConnectionGate:
    """ASGI wrapper that only lets HTTP requests through once the database is reachable."""

    def __init__(self, app: ASGIApp, context: AppContext):
        self.app = app
        self.context = context

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return
        try:
            await wait_for_connection(self.context)
        except DatabaseConnectionError as e:
            logger.error(f"Rejecting {scope.get('path')}: {e.__cause__ or e}")
            response = JSONResponse(
                status_code=500, content=GatewayErrorResponse().model_dump()
            )
            await response(scope, receive, send)
            return
        await self.app(scope, receive, send)


class HandlerAdapter:
    def __init__(self, context: AppContext, route_table: Optional[RouteTable] = None):
        if context.topology.has_listener:
            raise ConfigurationError(
                f"HandlerAdapter does not serve the {context.topology.value} topology"
            )
        self.context = context
        self.app = create_app(context, route_table)
        self.asgi = ConnectionGate(self.app, context)
        self._mangum = Mangum(
            self.asgi,
            lifespan="off",
            api_gateway_base_path=context.settings.API_GATEWAY_BASE_PATH,
        )

    def __call__(self, event: dict, lambda_context: Any) -> dict:
        return self._mangum(event, lambda_context)

