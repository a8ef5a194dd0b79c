"""
Not-found fallback and the central error translator.

Every client-visible error body is produced here.
"""

from __future__ import annotations

import logging
import traceback
from typing import Optional, Tuple

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from userhub.errors import AppError, ErrorKind, NotFoundError
from userhub.models.error import ErrorResponse

logger = logging.getLogger(__name__)

GENERIC_MESSAGE = "Something went wrong"
CONNECTION_MESSAGE = "Internal Server Error"
NOT_FOUND_DETAIL = "Not Found"

ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


def original_url(request: Request) -> str:
    """Requested path with its query string, as the client sent it."""
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


def not_found_message(url: str) -> str:
    return f"Can't find {url} on this server"


def _describe_validation(exc: RequestValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ()))
        parts.append(f"{location}: {error.get('msg')}")
    return "Invalid input data. " + "; ".join(parts)


def translate(
    exc: BaseException,
    url: Optional[str] = None,
    include_stack: bool = False,
) -> Tuple[int, ErrorResponse]:
    """Map any exception to a status code and the uniform error body."""
    if isinstance(exc, StarletteHTTPException):
        # Only the bare fallthrough 404 (routing, StaticFiles) gets the echo message
        if exc.status_code == 404 and exc.detail == NOT_FOUND_DETAIL and url is not None:
            return 404, ErrorResponse.for_status(404, not_found_message(url))
        return exc.status_code, ErrorResponse.for_status(exc.status_code, str(exc.detail))

    if isinstance(exc, RequestValidationError):
        return 400, ErrorResponse.for_status(400, _describe_validation(exc))

    kind = exc.kind if isinstance(exc, AppError) else ErrorKind.PROGRAMMING
    stack = None
    if include_stack:
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))

    if kind.exposes_message:
        return exc.status_code, ErrorResponse.for_status(exc.status_code, exc.message)
    if kind is ErrorKind.CONNECTION:
        logger.error(f"Database unavailable while handling {url}: {exc}", exc_info=exc)
        return 500, ErrorResponse.for_status(500, CONNECTION_MESSAGE, stack)
    logger.error(f"Unhandled error while handling {url}: {exc!r}", exc_info=exc)
    return 500, ErrorResponse.for_status(500, GENERIC_MESSAGE, stack)


def error_response(exc: BaseException, request: Request) -> JSONResponse:
    include_stack = False
    context = getattr(request.app.state, "context", None) if "app" in request.scope else None
    if context is not None:
        include_stack = context.settings.ENVIRONMENT == "development"
    status_code, body = translate(exc, original_url(request), include_stack)
    return JSONResponse(
        status_code=status_code,
        content=body.to_body(),
        headers=getattr(exc, "headers", None),
    )


async def _handle(request: Request, exc: Exception) -> JSONResponse:
    return error_response(exc, request)


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, _handle)
    app.add_exception_handler(StarletteHTTPException, _handle)
    app.add_exception_handler(RequestValidationError, _handle)


async def not_found(request: Request, full_path: str):
    raise NotFoundError(not_found_message(original_url(request)))


def install_not_found_fallback(app: FastAPI) -> None:
    """Must be called after every other route and mount is registered."""
    app.add_api_route(
        "/{full_path:path}",
        not_found,
        methods=ALL_METHODS,
        include_in_schema=False,
    )
