"""
Per-process state shared by the app factory and the entry strategies.

A context is built once by the entry module and stored on
``app.state.context``. Tests build a fresh one per test case.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from userhub.services.database_service import (
    ConnectionCache,
    Connector,
    DatabaseConfig,
    create_connection_cache,
)
from userhub.topology import DeploymentTopology
from userhub.utils.config import Settings


@dataclass
class AppContext:
    settings: Settings
    topology: DeploymentTopology
    connections: ConnectionCache
    database_config: DatabaseConfig = field(repr=False)

    @classmethod
    def create(
        cls,
        topology: DeploymentTopology,
        settings: Optional[Settings] = None,
        connector: Optional[Connector] = None,
    ) -> "AppContext":
        settings = settings or Settings()
        database_config = DatabaseConfig.from_settings(settings)
        if connector is None:
            connections = create_connection_cache(database_config)
        else:
            connections = ConnectionCache(connector)
        return cls(
            settings=settings,
            topology=topology,
            connections=connections,
            database_config=database_config,
        )

    async def get_database(self):
        """Return the default database of the cached client, connecting if needed."""
        client = await self.connections.ensure_connection()
        if self.database_config.database_name:
            return client.get_database(self.database_config.database_name)
        return client.get_default_database(default="userhub")
