"""
Exception types.

Domain failures raised by services carry a procedure error code that the
API layer maps onto an HTTP status.
"""

from enum import Enum


class ErrorCode(str, Enum):
    """Procedure error codes."""

    NOT_FOUND = "NOT_FOUND"
    BAD_REQUEST = "BAD_REQUEST"
    FORBIDDEN = "FORBIDDEN"
    UNAUTHORIZED = "UNAUTHORIZED"
    CONFLICT = "CONFLICT"
    INTERNAL_SERVER_ERROR = "INTERNAL_SERVER_ERROR"


HTTP_STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.BAD_REQUEST: 400,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.UNAUTHORIZED: 401,
    ErrorCode.CONFLICT: 409,
    ErrorCode.INTERNAL_SERVER_ERROR: 500,
}


class ProcedureError(Exception):
    """Base class for errors returned to procedure callers."""

    code: ErrorCode = ErrorCode.INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    @property
    def http_status(self) -> int:
        """HTTP status for this error."""
        return HTTP_STATUS_BY_CODE[self.code]

    def to_dict(self) -> dict[str, str]:
        """Serialize for the JSON error body."""
        return {"code": self.code.value, "message": self.message}


class NotFoundError(ProcedureError):
    """Entity missing or not owned by the caller."""

    code = ErrorCode.NOT_FOUND


class BadRequestError(ProcedureError):
    """Request violates a business rule."""

    code = ErrorCode.BAD_REQUEST


class ForbiddenError(ProcedureError):
    """Caller may not act on this entity."""

    code = ErrorCode.FORBIDDEN


class UnauthorizedError(ProcedureError):
    """Caller identity missing or invalid."""

    code = ErrorCode.UNAUTHORIZED


class ConflictError(ProcedureError):
    """Request conflicts with existing state."""

    code = ErrorCode.CONFLICT


class InternalServerError(ProcedureError):
    """Unexpected failure."""

    code = ErrorCode.INTERNAL_SERVER_ERROR
