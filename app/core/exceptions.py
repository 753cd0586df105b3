"""
Domain errors and global exception handlers — prevents stack-trace
leakage to clients.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

logger = logging.getLogger(__name__)


class GeolocationUnavailableError(Exception):
    """Check-in / check-out attempted without a location fix."""

    def __init__(self, message: str = "You need to allow location access to continue") -> None:
        super().__init__(message)
        self.message = message


class BatchAbortedError(Exception):
    """A batch run could not start at all (e.g. the company list is unreadable)."""


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "success": False},
        headers=getattr(exc, "headers", None),
    )


async def _geolocation_error_handler(_request: Request, exc: GeolocationUnavailableError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"detail": exc.message, "success": False},
    )


async def _batch_aborted_handler(_request: Request, exc: BatchAbortedError) -> JSONResponse:
    logger.error("Batch run aborted: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"detail": f"Fatal error: {exc}", "success": False},
    )


async def _integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    logger.error("Database integrity error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=409,
        content={"detail": "Database constraint violation", "success": False},
    )


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal database error", "success": False},
    )


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "success": False},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(GeolocationUnavailableError, _geolocation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(BatchAbortedError, _batch_aborted_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
