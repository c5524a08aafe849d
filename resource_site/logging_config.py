"""
logging_config.py — Centralized Logging Configuration

Sets up Loguru as the single logging backend. Intercepts Python's stdlib
logging module so every getLogger() call (ours, uvicorn's, SQLAlchemy's)
routes through Loguru with the request id bound by the middleware.

Business Rules:
- All logs go through Loguru (no print() in application code)
- JSON lines when LOG_JSON is set, human-readable otherwise
- Request ID from middleware is included when available

Called by: resource_site/main.py (app lifespan)
Depends on: resource_site/config.py (log_level, log_json)
"""

import logging
import sys

from loguru import logger

from .config import settings


def setup_logging() -> None:
    """Configure Loguru and intercept stdlib logging.

    Safe to call more than once; each call replaces the sinks.
    """
    logger.remove()

    log_level = settings.log_level.upper()

    if settings.log_json:
        logger.add(
            sys.stdout,
            level=log_level,
            format="{message}",
            serialize=True,
        )
    else:
        logger.add(
            sys.stdout,
            level=log_level,
            format=(
                "<green>{time:HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<magenta>{extra[request_id]}</magenta> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
                "{message}"
            ),
            colorize=True,
        )

    # records emitted outside a request have no request_id
    logger.configure(extra={"request_id": "-"})

    logging.basicConfig(handlers=[_InterceptHandler()], level=0, force=True)

    for noisy in ("uvicorn.access", "sqlalchemy.engine", "multipart"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logger.info("Logging configured", level=log_level, json=settings.log_json)


class _InterceptHandler(logging.Handler):
    """Route stdlib logging records to Loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # skip frames that belong to the logging module itself
        frame, depth = logging.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(
            level, record.getMessage()
        )
