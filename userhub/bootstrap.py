"""
Long-running server entry strategy.

The listener is only started once the database connection is established;
a failed connection ends the process with exit code 1.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import Optional

import uvicorn
from fastapi import FastAPI

from userhub.app import create_app
from userhub.context import AppContext
from userhub.controllers import default_route_table
from userhub.errors import ConfigurationError, DatabaseConnectionError
from userhub.routing import RouteTable
from userhub.services.realtime_service import RealtimeAttachment, RealtimeHub
from userhub.services.resource_service import DEFAULT_DIRECTORIES, ResourceProvisioner
from userhub.topology import DeploymentTopology

logger = logging.getLogger(__name__)


class Listener:
    """A network listener that is configured up front and bound on ``serve()``."""

    def __init__(self, app, host: str, port: int, log_level: str = "info"):
        self.app = app
        self.host = host
        self.port = port
        self.log_level = log_level
        self.realtime: Optional[RealtimeHub] = None
        self.server: Optional[uvicorn.Server] = None

    async def serve(self) -> None:
        config = uvicorn.Config(
            self.app,
            host=self.host,
            port=self.port,
            log_level=self.log_level,
            lifespan="off",
            proxy_headers=True,
            forwarded_allow_ips="*",
        )
        self.server = uvicorn.Server(config)
        await self.server.serve()


async def wait_for_connection(context: AppContext):
    """Ensure the cached connection, bounded by CONNECT_TIMEOUT when configured."""
    timeout = context.settings.CONNECT_TIMEOUT
    if timeout is None:
        return await context.connections.ensure_connection()
    try:
        return await asyncio.wait_for(context.connections.ensure_connection(), timeout)
    except asyncio.TimeoutError as e:
        raise DatabaseConnectionError(
            f"Database connection not established within {timeout}s"
        ) from e


class Bootstrap:
    def __init__(
        self,
        context: AppContext,
        route_table: Optional[RouteTable] = None,
        provisioner: Optional[ResourceProvisioner] = None,
        realtime: Optional[RealtimeAttachment] = None,
    ):
        if context.topology is not DeploymentTopology.LONG_RUNNING_SERVER:
            raise ConfigurationError(
                f"Bootstrap runs the server topology, not {context.topology.value}"
            )
        settings = context.settings
        self.context = context
        self.route_table = route_table or default_route_table()
        self.provisioner = provisioner or ResourceProvisioner(settings.STATIC_ROOT)
        if realtime is None and settings.REALTIME_ENABLED:
            realtime = RealtimeAttachment(settings.REALTIME_PATH)
        self.realtime = realtime
        self.app: Optional[FastAPI] = None
        self.listener: Optional[Listener] = None

    def build(self) -> Listener:
        """Provision, compose and wire the listener without binding it."""
        if self.listener is not None:
            return self.listener

        settings = self.context.settings
        if self.context.topology.writable_filesystem:
            self.provisioner.ensure(DEFAULT_DIRECTORIES)

        self.app = create_app(self.context, self.route_table)
        self.listener = Listener(
            self.app,
            host=settings.HOST,
            port=settings.PORT,
            log_level=settings.LOG_LEVEL.lower(),
        )
        if self.realtime is not None and self.context.topology.supports_realtime:
            self.realtime.attach(self.listener)
        return self.listener

    async def serve(self) -> None:
        listener = self.build()
        await wait_for_connection(self.context)

        logger.info(f"Server running at http://{listener.host}:{listener.port}")
        try:
            await listener.serve()
        finally:
            await self.context.connections.close()

    def run(self) -> None:
        try:
            asyncio.run(self.serve())
        except DatabaseConnectionError as e:
            logger.critical(f"DB connection error, shutting down: {e.__cause__ or e}")
            sys.exit(1)
