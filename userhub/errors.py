"""
Error taxonomy shared by every layer of the service.

Each error carries an ``ErrorKind`` which decides the status code and
whether its message may be shown to the client. The error boundary is the
only place that turns these into HTTP responses.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    OPERATIONAL = "operational"
    PROGRAMMING = "programming"
    CONNECTION = "connection"

    @property
    def exposes_message(self) -> bool:
        return self is ErrorKind.OPERATIONAL


class AppError(Exception):
    """Base class for all errors raised by the service."""

    kind: ErrorKind = ErrorKind.PROGRAMMING
    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class OperationalError(AppError):
    """Expected failure with a status code and a message safe to display."""

    kind = ErrorKind.OPERATIONAL
    status_code = 400


class NotFoundError(OperationalError):
    status_code = 404


class Unauthorized(OperationalError):
    """Missing or wrong credentials. Carries the challenge header for the response."""

    status_code = 401

    def __init__(self, message: str, scheme: str = "Basic"):
        super().__init__(message)
        self.headers = {"WWW-Authenticate": scheme}


class PayloadTooLarge(OperationalError):
    status_code = 413


class ProgrammingError(AppError):
    """Unexpected internal fault. The message is logged, never returned."""

    kind = ErrorKind.PROGRAMMING
    status_code = 500


class ConfigurationError(ProgrammingError):
    pass


class FilesystemError(ProgrammingError):
    pass


class DatabaseConnectionError(AppError):
    """The persistence layer is unreachable or the connect attempt failed."""

    kind = ErrorKind.CONNECTION
    status_code = 500
