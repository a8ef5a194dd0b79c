from pydantic import BaseModel
from typing import Optional


class ErrorResponse(BaseModel):
    """Uniform error body returned for every failed request."""

    status: str
    message: str
    statusCode: int
    stack: Optional[str] = None

    @classmethod
    def for_status(cls, status_code: int, message: str, stack: Optional[str] = None) -> "ErrorResponse":
        status = "fail" if 400 <= status_code < 500 else "error"
        return cls(status=status, message=message, statusCode=status_code, stack=stack)

    def to_body(self) -> dict:
        return self.model_dump(exclude_none=True)


class GatewayErrorResponse(BaseModel):
    status: str = "error"
    message: str = "Internal Server Error"
