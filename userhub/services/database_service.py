import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional
from urllib.parse import urlsplit

from pymongo import AsyncMongoClient

from userhub.errors import DatabaseConnectionError
from userhub.utils.config import Settings

logger = logging.getLogger(__name__)

Connector = Callable[[], Awaitable[Any]]


@dataclass(frozen=True)
class DatabaseConfig:
    """Options handed to the Mongo client. Anything unset is left to the driver default."""

    uri: str
    database_name: Optional[str] = None
    server_selection_timeout_ms: Optional[int] = None
    max_pool_size: Optional[int] = None
    app_name: str = "userhub-api"

    @classmethod
    def from_settings(cls, settings: Settings) -> "DatabaseConfig":
        return cls(
            uri=settings.MONGO_URI,
            database_name=settings.MONGO_DB_NAME,
            server_selection_timeout_ms=settings.MONGO_SERVER_SELECTION_TIMEOUT_MS,
            max_pool_size=settings.MONGO_MAX_POOL_SIZE,
        )

    def client_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {"appname": self.app_name}
        if self.server_selection_timeout_ms is not None:
            options["serverSelectionTimeoutMS"] = self.server_selection_timeout_ms
        if self.max_pool_size is not None:
            options["maxPoolSize"] = self.max_pool_size
        return options

    @property
    def display_host(self) -> str:
        """Host part of the URI, with credentials stripped, for log lines."""
        netloc = urlsplit(self.uri).netloc
        return netloc.rsplit("@", 1)[-1] or self.uri


class MongoConnector:
    """Opens a client and proves it can reach the server before handing it out."""

    def __init__(self, config: DatabaseConfig):
        self.config = config

    async def __call__(self) -> AsyncMongoClient:
        client = AsyncMongoClient(self.config.uri, **self.config.client_options())
        try:
            await client.admin.command("ping")
        except Exception:
            await client.close()
            raise
        return client


class ConnectionState(Enum):
    UNINITIALIZED = "uninitialized"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    FAILED = "failed"


class ConnectionCache:
    """
    Holds the single database connection for a process.

    Concurrent callers of ``ensure_connection`` share one in-flight attempt.
    A failed attempt is not cached: the next call starts a new one.
    """

    def __init__(self, connector: Connector, *, description: str = "database"):
        self._connector = connector
        self._description = description
        self._state = ConnectionState.UNINITIALIZED
        self._handle: Any = None
        self._pending: Optional[asyncio.Task] = None
        self.last_error: Optional[BaseException] = None
        self.attempts = 0

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def handle(self) -> Any:
        return self._handle

    def is_connected(self) -> bool:
        return self._state is ConnectionState.CONNECTED

    async def ensure_connection(self) -> Any:
        if self._state is ConnectionState.CONNECTED:
            return self._handle

        if self._state is not ConnectionState.CONNECTING:
            self._state = ConnectionState.CONNECTING
            self._pending = asyncio.ensure_future(self._attempt())
            self._pending.add_done_callback(_consume_exception)

        # Shielded so a caller giving up never cancels the shared attempt
        return await asyncio.shield(self._pending)

    async def _attempt(self) -> Any:
        self.attempts += 1
        logger.info(f"Connecting to {self._description} (attempt {self.attempts})")
        try:
            handle = await self._connector()
        except Exception as e:
            self._fail(e)
            logger.error(f"Error connecting to {self._description}: {e}")
            raise DatabaseConnectionError(
                f"Could not connect to {self._description}"
            ) from e
        except BaseException as e:
            # Cancelled or interrupted: leave the cache retryable
            self._fail(e)
            logger.warning(f"Connection attempt to {self._description} aborted: {e!r}")
            raise

        self._handle = handle
        self._state = ConnectionState.CONNECTED
        self.last_error = None
        self._pending = None
        logger.info(f"Connected to {self._description}")
        return handle

    def _fail(self, error: BaseException) -> None:
        self._state = ConnectionState.FAILED
        self.last_error = error
        self._pending = None

    async def close(self) -> None:
        if self._state is not ConnectionState.CONNECTED:
            return
        handle, self._handle = self._handle, None
        self._state = ConnectionState.UNINITIALIZED
        closer = getattr(handle, "close", None)
        if closer is None:
            return
        try:
            result = closer()
            if asyncio.iscoroutine(result):
                await result
            logger.info(f"Disconnected from {self._description}")
        except Exception as e:
            logger.error(f"Error disconnecting from {self._description}: {e}")
            raise


def _consume_exception(task: asyncio.Task) -> None:
    # Mark the failure as retrieved even when every waiter was cancelled
    if not task.cancelled():
        task.exception()


def create_connection_cache(config: DatabaseConfig) -> ConnectionCache:
    return ConnectionCache(
        MongoConnector(config), description=f"MongoDB at {config.display_host}"
    )
