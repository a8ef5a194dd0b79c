import json
import logging
from collections import defaultdict
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from starlette.types import ASGIApp, Receive, Scope, Send
from starlette.websockets import WebSocket, WebSocketDisconnect

from userhub.errors import ConfigurationError

logger = logging.getLogger(__name__)

EventHandler = Callable[["RealtimeHub", WebSocket, Any], Awaitable[None]]


class RealtimeHub:
    """
    WebSocket event hub bound to one listener.

    Frames are JSON objects of the form ``{"event": ..., "data": ...}``.
    Connection and room membership live as long as the listener does.
    """

    def __init__(self, inner: ASGIApp, path: str = "/socket"):
        self.inner = inner
        self.path = path
        self.connections: Set[WebSocket] = set()
        self.rooms: Dict[str, Set[WebSocket]] = defaultdict(set)
        self._handlers: Dict[str, EventHandler] = {
            "ping": _on_ping,
            "join": _on_join,
            "leave": _on_leave,
        }

    @property
    def connection_count(self) -> int:
        return len(self.connections)

    def on(self, event: str) -> Callable[[EventHandler], EventHandler]:
        """Register a handler for a client event."""

        def decorator(handler: EventHandler) -> EventHandler:
            self._handlers[event] = handler
            return handler

        return decorator

    async def emit(self, event: str, data: Any = None, room: Optional[str] = None) -> int:
        """Send an event to every socket, or to the members of ``room``. Returns the number reached."""
        targets = self.rooms.get(room, set()) if room is not None else self.connections
        delivered = 0
        for websocket in list(targets):
            try:
                await websocket.send_json({"event": event, "data": data})
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping socket after failed send: {e}")
                self._forget(websocket)
        return delivered

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "websocket" and scope["path"] == self.path:
            await self._serve(WebSocket(scope, receive=receive, send=send))
            return
        await self.inner(scope, receive, send)

    async def _serve(self, websocket: WebSocket) -> None:
        await websocket.accept()
        self.connections.add(websocket)
        logger.info(f"Realtime client connected ({self.connection_count} open)")
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                raw = message.get("text")
                if raw is None:
                    # Binary frames are not part of the protocol
                    await websocket.send_json({"event": "error", "data": "Malformed frame"})
                    continue
                await self._dispatch(websocket, raw)
        except WebSocketDisconnect:
            pass
        finally:
            self._forget(websocket)
            logger.info(f"Realtime client disconnected ({self.connection_count} open)")

    async def _dispatch(self, websocket: WebSocket, raw: str) -> None:
        try:
            frame = json.loads(raw)
            event = frame["event"]
            if not isinstance(event, str):
                raise TypeError(event)
        except (ValueError, TypeError, KeyError):
            await websocket.send_json({"event": "error", "data": "Malformed frame"})
            return

        handler = self._handlers.get(event)
        if handler is None:
            await websocket.send_json({"event": "error", "data": f"Unknown event: {event}"})
            return
        await handler(self, websocket, frame.get("data"))

    def _forget(self, websocket: WebSocket) -> None:
        self.connections.discard(websocket)
        for name in list(self.rooms):
            self.rooms[name].discard(websocket)
            if not self.rooms[name]:
                del self.rooms[name]


async def _on_ping(hub: RealtimeHub, websocket: WebSocket, data: Any) -> None:
    await websocket.send_json({"event": "pong", "data": data})


async def _on_join(hub: RealtimeHub, websocket: WebSocket, data: Any) -> None:
    room = (data or {}).get("room") if isinstance(data, dict) else None
    if not room:
        await websocket.send_json({"event": "error", "data": "join requires a room"})
        return
    hub.rooms[str(room)].add(websocket)
    await websocket.send_json({"event": "joined", "data": {"room": str(room)}})


async def _on_leave(hub: RealtimeHub, websocket: WebSocket, data: Any) -> None:
    room = data.get("room") if isinstance(data, dict) else None
    room = str(room) if room else None
    if room in hub.rooms:
        hub.rooms[room].discard(websocket)
        if not hub.rooms[room]:
            del hub.rooms[room]
    await websocket.send_json({"event": "left", "data": {"room": room}})


class RealtimeAttachment:
    """Binds a RealtimeHub onto a listener that accepts persistent connections."""

    def __init__(self, path: str = "/socket"):
        self.path = path

    def attach(self, listener) -> RealtimeHub:
        if listener is None or getattr(listener, "app", None) is None:
            raise ConfigurationError("Realtime transport needs a network listener")
        if isinstance(listener.app, RealtimeHub):
            raise ConfigurationError("Listener already has a realtime hub attached")
        hub = RealtimeHub(listener.app, self.path)
        listener.app = hub
        listener.realtime = hub
        logger.info(f"Realtime transport attached at {self.path}")
        return hub
