"""
Exception handlers mapping the error taxonomy onto HTTP responses.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import DBAPIError, OperationalError

from app.core.exceptions import CapacityInvariantViolation, RegistrationError
from app.core.logging import get_logger

logger = get_logger(__name__)


async def handle_registration_error(request: Request, exc: RegistrationError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "code": exc.code},
    )


async def handle_capacity_invariant_violation(request: Request, exc: CapacityInvariantViolation) -> JSONResponse:
    logger.error(
        "capacity_invariant_violation",
        event_id=exc.event_id,
        delta=exc.delta,
        error=str(exc),
    )
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error.", "code": "internal_error"},
    )


async def handle_database_unavailable(request: Request, exc: DBAPIError) -> JSONResponse:
    """Connectivity problems are transient; nothing was committed, so the caller may retry."""
    if isinstance(exc, OperationalError) or exc.connection_invalidated:
        logger.error("database_unavailable", error=str(exc.orig))
        return JSONResponse(
            status_code=503,
            content={"detail": "Service temporarily unavailable. Please retry.", "code": "store_unavailable"},
            headers={"Retry-After": "1"},
        )
    logger.exception("database_error")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal Server Error.", "code": "internal_error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RegistrationError, handle_registration_error)
    app.add_exception_handler(CapacityInvariantViolation, handle_capacity_invariant_violation)
    app.add_exception_handler(DBAPIError, handle_database_unavailable)
