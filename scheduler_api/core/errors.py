"""
Typed errors raised by the scheduling services.

Each error carries a stable ``kind`` and a message. The HTTP layer maps the
kind to a status code and passes the message through unchanged.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse


class SchedulingError(Exception):
    """Base class for errors the API reports to callers."""

    kind = "error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(SchedulingError):
    """The referenced row does not exist or is not visible to the caller."""

    kind = "not_found"
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(SchedulingError):
    """The requested write collides with existing state."""

    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT


class InvalidInputError(SchedulingError):
    """A field is missing or out of range."""

    kind = "validation"
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(SchedulingError):
    """The caller does not own the referenced event type."""

    kind = "unauthorized"
    status_code = status.HTTP_403_FORBIDDEN


class StorageUnavailableError(SchedulingError):
    kind = "storage"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


DATABASE_UNAVAILABLE_MESSAGE = 'Database unavailable. Verify DATABASE_URL and database credentials.'


async def scheduling_error_handler(request: Request, exc: SchedulingError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={'detail': exc.message, 'kind': exc.kind},
    )
