"""
middleware.py — Cross-cutting middleware for the whole app

Business Rules:
- Order, outermost first: CORS → request logging → panic recovery →
  (auth gate, protected routes only) → handler
- Every response carries X-Request-ID (8 hex chars), also bound to every
  log line emitted while the request runs
- Any exception a handler doesn't turn into a response becomes a 500
  ErrorResponse; the server keeps running
- CORS headers apply to every route, open or protected, errors included

Called by: main.py (create_app)
Depends on: config.py, errors.py
"""

import time
import uuid

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware

from .config import settings
from .errors import error_response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = uuid.uuid4().hex[:8]
        request.state.request_id = request_id
        start = time.perf_counter()
        with logger.contextualize(request_id=request_id):
            response = await call_next(request)
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.info(
                "{method} {path} -> {status} ({ms:.1f} ms)",
                method=request.method,
                path=request.url.path,
                status=response.status_code,
                ms=elapsed_ms,
            )
        response.headers["X-Request-ID"] = request_id
        return response


class CatchPanicMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception:
            logger.exception(f"Unhandled error on {request.method} {request.url.path}")
            return error_response(request, 500, "Internal server error")


def install_middleware(app: FastAPI) -> None:
    """Attach the middleware stack; the last one added runs first."""
    app.add_middleware(CatchPanicMiddleware)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
