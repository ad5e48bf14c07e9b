"""
Auth error taxonomy and global exception handlers.

Handlers prevent stack-trace leakage to clients; full detail stays in the
server log.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException

from taskhub.core.config import settings

logger = logging.getLogger(__name__)


# ── Taxonomy ────────────────────────────────────────────────────────
class AuthError(Exception):
    """Base class for failures that terminate the auth pipeline."""

    status_code = 401
    message = "Not authenticated"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        if message is not None:
            self.message = message


class Unauthenticated(AuthError):
    message = "Not authenticated: missing session token"


class InvalidToken(AuthError):
    message = "Invalid or expired session token"


class UserNotFound(AuthError):
    message = "User not found"


class Forbidden(AuthError):
    status_code = 403
    message = "You do not have permission to perform this action"


class InternalError(Exception):
    """Unexpected failure surfaced as a generic 500."""


# ── Handlers ────────────────────────────────────────────────────────
def _error_body(message: object, exc: Exception | None = None) -> dict:
    body = {"message": message, "success": False}
    if exc is not None and not settings.is_production:
        body["error"] = type(exc).__name__
    return body


async def _auth_error_handler(_request: Request, exc: AuthError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.message),
        headers=headers,
    )


async def _http_exception_handler(_request: Request, exc: HTTPException) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(exc.detail),
        headers=getattr(exc, "headers", None),
    )


async def _validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    else:
        message = "Invalid request"
    return JSONResponse(status_code=400, content=_error_body(message))


async def _integrity_error_handler(_request: Request, exc: IntegrityError) -> JSONResponse:
    logger.error("Database integrity error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=409,
        content=_error_body("Database constraint violation"),
    )


async def _sqlalchemy_error_handler(_request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error: %s", exc, exc_info=True)
    return JSONResponse(
        status_code=500,
        content=_error_body("Internal server error", exc),
    )


async def _internal_error_handler(_request: Request, exc: InternalError) -> JSONResponse:
    logger.error("Internal error: %s", exc, exc_info=exc.__cause__ or exc)
    return JSONResponse(
        status_code=500,
        content=_error_body("Internal server error", exc.__cause__ or exc),
    )


async def _generic_exception_handler(_request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception: %s", exc)
    return JSONResponse(
        status_code=500,
        content=_error_body("Internal server error", exc),
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the FastAPI app."""
    app.add_exception_handler(AuthError, _auth_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(HTTPException, _http_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(InternalError, _internal_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(IntegrityError, _integrity_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SQLAlchemyError, _sqlalchemy_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, _generic_exception_handler)
