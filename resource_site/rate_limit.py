"""Shared rate limiter, in-memory storage, keyed by client address.

Limits apply per process; run behind a proxy that forwards the client
address for them to mean anything.
"""

from loguru import logger
from slowapi import Limiter
from slowapi.util import get_remote_address

from .config import settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.rate_limit_default],
    enabled=settings.rate_limit_enabled,
)

if not settings.rate_limit_enabled:
    logger.info("Rate limiting disabled")
