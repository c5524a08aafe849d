"""
errors.py — Error taxonomy and JSON error rendering

Every failure a handler can report maps to one AppError subclass carrying
its HTTP status. A single set of exception handlers renders AppError,
HTTPException and request validation errors with the same ErrorResponse
shape, tagged with the request id from the logging middleware.

Business Rules:
- AuthError → 401 (with WWW-Authenticate: Bearer)
- PermissionDeniedError → 403
- ValidationError → 400 (bad content type, extension, missing file)
- NotFoundError → 404 (unknown route or resource)
- UpstreamError → 500 (service / database failure)
- StorageError → 500 (filesystem copy failure)
- Messages are human-readable, never meant to be parsed

Called by: resource_site/main.py (register_error_handlers), routers, services
Depends on: schemas/errors.py
"""

import logging

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .schemas.errors import ErrorResponse

log = logging.getLogger(__name__)


class AppError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class AuthError(AppError):
    status_code = 401
    default_message = "Invalid authentication credentials"


class PermissionDeniedError(AppError):
    status_code = 403
    default_message = "Not allowed"


class ValidationError(AppError):
    status_code = 400
    default_message = "Bad request"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Not found"


class UpstreamError(AppError):
    status_code = 500
    default_message = "Service unavailable"


class StorageError(AppError):
    status_code = 500
    default_message = "Could not store file"


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "")


def error_response(
    request: Request, status_code: int, message: str, detail: list | None = None, headers=None
) -> JSONResponse:
    body = ErrorResponse(
        error=message,
        status_code=status_code,
        request_id=_request_id(request),
        detail=detail,
    )
    return JSONResponse(body.model_dump(), status_code=status_code, headers=headers)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    if exc.status_code >= 500:
        log.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc.message}")
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
    return error_response(request, exc.status_code, exc.message, headers=headers)


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "HTTP error"
    return error_response(
        request, exc.status_code, message, headers=getattr(exc, "headers", None)
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    log.error(f"Database error on {request.method} {request.url.path}: {exc}")
    return error_response(request, UpstreamError.status_code, "Database error, please try again later")


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    detail = [
        {"loc": list(e.get("loc", ())), "msg": e.get("msg", ""), "type": e.get("type", "")}
        for e in exc.errors()
    ]
    return error_response(request, 422, "Request validation failed", detail=detail)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(HTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
