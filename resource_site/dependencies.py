"""
dependencies.py — Shared FastAPI Dependencies

The auth gate and the request-scoped values handlers receive as
explicit arguments. All route wiring imports from here instead of
defining its own auth logic.

Business Rules:
- require_principal is the auth gate: bearer token → Token Service →
  Principal on request.state; 401 on any failure, handler never runs
- current_principal hands the gate's Principal to a handler; if the gate
  did not run it fails with 401 rather than crashing
- optional_principal never fails: missing or garbage tokens are anonymous
- ensure_self_or_admin raises 403 when a path uuid names another user
- pagination_params applies page=1 / page_size=49 defaults

Called by: routes.py (gate), routers/*.py (principal, pagination)
Depends on: tokens.py, config.py, errors.py
"""

import logging
from uuid import UUID

from fastapi import Depends, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .config import settings
from .errors import AuthError, PermissionDeniedError
from .schemas.resources import PaginationParams
from .tokens import Principal, TokenService, get_token_service

log = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False, description="JWT issued by /comm/login/loading")


# ── Authentication ────────────────────────────────────────────────────


def require_principal(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> Principal:
    """Auth gate: raises 401 unless the request carries a valid bearer token."""
    if not credentials or not credentials.credentials:
        raise AuthError("Missing bearer token")
    principal = tokens.validate(credentials.credentials)
    request.state.principal = principal
    return principal


def current_principal(request: Request) -> Principal:
    """Dependency: the Principal placed on the request by the auth gate."""
    principal = getattr(request.state, "principal", None)
    if not isinstance(principal, Principal):
        log.error(f"Protected handler reached without a principal: {request.url.path}")
        raise AuthError("Not authenticated")
    return principal


def optional_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
    tokens: TokenService = Depends(get_token_service),
) -> Principal | None:
    """Dependency: the caller's Principal if the token is valid, else None."""
    if not credentials or not credentials.credentials:
        return None
    try:
        return tokens.validate(credentials.credentials)
    except AuthError:
        return None


def ensure_self_or_admin(principal: Principal, user_id: UUID) -> None:
    """Raise 403 when a principal addresses another user's data."""
    if principal.user_id != user_id and not principal.is_admin:
        raise PermissionDeniedError("Cannot access another user's profile")


# ── Query Helpers ─────────────────────────────────────────────────────


def pagination_params(
    category: str | None = Query(None, description="Resource category filter"),
    language: str | None = Query(None, description="Programming language filter"),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
) -> PaginationParams:
    return PaginationParams(category=category, language=language, page=page, page_size=page_size)
