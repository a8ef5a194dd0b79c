"""
Pure ASGI middlewares installed on every composed application.
"""

from __future__ import annotations

import logging
from typing import List

from starlette.requests import Request
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from userhub.error_boundary import error_response
from userhub.errors import PayloadTooLarge

logger = logging.getLogger(__name__)


class ErrorBoundaryMiddleware:
    """
    Last stop for exceptions that no registered handler claimed.

    Sits inside Starlette's ServerErrorMiddleware, so the translated body is
    sent and the exception goes no further.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception as exc:
            if response_started:
                # Headers are already on the wire; all we can do is record it
                logger.error(f"Error after response started: {exc!r}", exc_info=exc)
                return
            response = error_response(exc, Request(scope))
            await response(scope, receive, send)


class RequestSizeLimitMiddleware:
    """
    Rejects request bodies larger than ``max_bytes`` with a 413.

    A declared Content-Length is checked up front. Bodies without one
    (chunked uploads) are buffered here, up to the limit, and replayed to
    the app, since FastAPI reports any error raised while it reads the body
    as a 400.
    """

    def __init__(self, app: ASGIApp, max_bytes: int = 10 * 1024):
        self.app = app
        self.max_bytes = max_bytes

    def _too_large(self) -> PayloadTooLarge:
        return PayloadTooLarge(f"Request body exceeds the {self.max_bytes} byte limit")

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        headers = dict(scope.get("headers") or [])
        content_length = headers.get(b"content-length")
        if content_length is None or not content_length.isdigit():
            buffered = await self._buffer(receive)
            await self.app(scope, _replay(buffered, receive), send)
            return

        if int(content_length) > self.max_bytes:
            raise self._too_large()

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    raise self._too_large()
            return message

        await self.app(scope, limited_receive, send)

    async def _buffer(self, receive: Receive) -> List[Message]:
        messages: List[Message] = []
        received = 0
        while True:
            message = await receive()
            messages.append(message)
            if message["type"] != "http.request":
                return messages
            received += len(message.get("body", b""))
            if received > self.max_bytes:
                raise self._too_large()
            if not message.get("more_body", False):
                return messages


def _replay(messages: List[Message], receive: Receive) -> Receive:
    pending = list(messages)

    async def replay_receive() -> Message:
        if pending:
            return pending.pop(0)
        return await receive()

    return replay_receive
