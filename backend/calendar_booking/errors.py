# backend/calendar_booking/errors.py
"""
Business error taxonomy.

InvalidInput / NotFound / Conflict are expected outcomes of a request and
are rendered with their own message. StorageFailure wraps unexpected
database errors; its message is generic and the cause is only logged.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from starlette.responses import JSONResponse

logger = logging.getLogger(__name__)


class BookingError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(BookingError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Invalid input"


class NotFound(BookingError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class Conflict(BookingError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Conflict"


class StorageFailure(BookingError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"


async def booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    message = exc.message
    if isinstance(exc, StorageFailure):
        logger.error(f"Storage failure on {request.method} {request.url.path}: {exc.message}")
        message = StorageFailure.default_message
    return JSONResponse(status_code=exc.status_code, content={"detail": message})


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
        message = f"{field}: {first.get('msg')}" if field else first.get("msg")
    else:
        message = InvalidInput.default_message
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": message})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookingError, booking_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
