"""
Entry point for read-only edge runtimes that host an ASGI callable.
Point the runtime at: edge_handler:app
"""
import logging
from userhub.context import AppContext
from userhub.handler import HandlerAdapter
from userhub.topology import DeploymentTopology
from userhub.utils.config import settings

logging.basicConfig(level=settings.LOG_LEVEL)

handler = HandlerAdapter(
    AppContext.create(DeploymentTopology.READ_ONLY_EDGE, settings)
)
app = handler.asgi
