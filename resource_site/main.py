"""
Resource WebSite API — app assembly

Builds the FastAPI app: logging, error handlers, middleware stack, the
route table under settings.api_prefix, rate limiting, and the OpenAPI
document + Swagger UI derived from the mounted routes.

Run with:  uvicorn resource_site.main:app
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from .config import settings
from .database import create_tables
from .errors import register_error_handlers
from .logging_config import setup_logging
from .middleware import install_middleware
from .rate_limit import limiter
from .routes import build_route_table, mount_routes

log = logging.getLogger(__name__)

OPENAPI_URL = settings.api_prefix + "/api-doc/openapi.json"
DOCS_URL = settings.api_prefix + "/swagger-ui"


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    if os.environ.get("TESTING"):
        log.info("TESTING mode, skipping table creation")
    else:
        create_tables()
        log.info("Tables ready")
    yield
    log.info("Shutting down")


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        openapi_url=OPENAPI_URL,
        docs_url=DOCS_URL,
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    register_error_handlers(app)
    install_middleware(app)

    app.state.route_table = build_route_table()
    mount_routes(app, app.state.route_table, prefix=settings.api_prefix)

    @app.get("/health", tags=["health"])
    def health():
        return {"status": "ok", "version": settings.app_version}

    return app


app = create_app()
