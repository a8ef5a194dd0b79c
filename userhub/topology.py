from enum import Enum


class DeploymentTopology(Enum):
    """How the process is hosted. Chosen once at startup."""

    LONG_RUNNING_SERVER = "server"
    FUNCTION_PER_INVOCATION = "function"
    READ_ONLY_EDGE = "edge"

    @property
    def writable_filesystem(self) -> bool:
        return self is DeploymentTopology.LONG_RUNNING_SERVER

    @property
    def has_listener(self) -> bool:
        return self is DeploymentTopology.LONG_RUNNING_SERVER

    @property
    def supports_realtime(self) -> bool:
        # A socket transport needs a listener that outlives a single request
        return self.has_listener
