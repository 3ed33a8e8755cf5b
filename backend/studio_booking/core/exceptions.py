"""
Error taxonomy shared by the services and the HTTP boundary.

Services raise these; the handlers registered in ``register_exception_handlers``
turn them into ``{"detail": ..., "code": ...}`` JSON bodies.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from studio_booking.core.logging import get_logger

logger = get_logger(__name__)


class BookingAppError(Exception):
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "internal_error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(BookingAppError):
    """Malformed or missing input. Raised before any mutation."""

    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"


class NotFoundError(BookingAppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class CapacityExceededError(BookingAppError):
    """The event is full. A business outcome, not a fault."""

    status_code = status.HTTP_409_CONFLICT
    code = "event_full"

    def __init__(self, message: str = "Event is full"):
        super().__init__(message)


class StoreError(BookingAppError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "store_error"

    def __init__(self, message: str = "Internal Server Error"):
        super().__init__(message)


def _error_body(exc: BookingAppError) -> dict:
    return {"detail": exc.message, "code": exc.code}


async def booking_error_handler(request: Request, exc: BookingAppError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("request_error", code=exc.code, error=exc.message)
    else:
        logger.info("request_rejected", code=exc.code, reason=exc.message)
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    reasons = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        reasons.append(f"{location}: {error.get('msg')}" if location else error.get("msg", ""))
    error = ValidationError("; ".join(reasons) or "Invalid request")
    logger.info("request_rejected", code=error.code, reason=error.message)
    return JSONResponse(status_code=error.status_code, content=_error_body(error))


async def store_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    # Full detail stays in the logs; callers get an opaque body
    logger.exception("store_error", error=str(exc))
    return JSONResponse(status_code=StoreError.status_code, content=_error_body(StoreError()))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookingAppError, booking_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, store_error_handler)
