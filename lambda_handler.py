"""
AWS Lambda entry point.
Set Lambda handler to: lambda_handler.handler
Use with Lambda Function URL or API Gateway HTTP API.
"""
import logging
from userhub.context import AppContext
from userhub.handler import HandlerAdapter
from userhub.topology import DeploymentTopology
from userhub.utils.config import settings

logging.basicConfig(level=settings.LOG_LEVEL)

# Single adapter reused across warm invocations; the connection is cached on its context
handler = HandlerAdapter(
    AppContext.create(DeploymentTopology.FUNCTION_PER_INVOCATION, settings)
)
