import logging

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import TimeoutError as SQLAlchemyTimeoutError

from flight_booking.domain.exceptions import FlightBookingError

logger = logging.getLogger(__name__)


def error_detail(exc: FlightBookingError) -> dict:
    return {"error": exc.code, "message": str(exc)}


def http_error(status_code: int, exc: FlightBookingError) -> HTTPException:
    headers = None
    if status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return HTTPException(
        status_code=status_code,
        detail=error_detail(exc),
        headers=headers,
    )


def _field_name(location: tuple) -> str:
    parts = [str(part) for part in location if part not in ("body", "query", "path")]
    return ".".join(parts)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    fields = [
        {"field": _field_name(tuple(error.get("loc", ()))), "message": error.get("msg", "")}
        for error in exc.errors()
    ]
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "detail": {
                "error": "validation_error",
                "message": "Invalid request.",
                "fields": fields,
            }
        },
    )


async def _pool_timeout_handler(request: Request, exc: SQLAlchemyTimeoutError) -> JSONResponse:
    logger.warning("Connection pool exhausted while serving %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "detail": {
                "error": "service_unavailable",
                "message": "Server is busy. Please retry shortly.",
            }
        },
        headers={"Retry-After": "1"},
    )


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error while serving %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": {
                "error": "internal_error",
                "message": "Internal server error.",
            }
        },
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(SQLAlchemyTimeoutError, _pool_timeout_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
