"""
tokens.py — JWT Token Service

Issues and validates the bearer tokens carried by every protected request.
A valid token resolves to a Principal (user id + optional role) that lives
for one request and is never persisted.

Business Rules:
- HS256 signed with settings.jwt_secret
- Claims: sub (user uuid), role (int or absent), iat, exp, jti
- Expired, malformed, or wrongly signed tokens raise AuthError
- A token whose sub is not a UUID is rejected

Called by: dependencies.py (auth gate), services/user_service.py (login)
Depends on: config.py, errors.py
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt

from .config import settings
from .errors import AuthError


@dataclass(frozen=True)
class Principal:
    user_id: UUID
    role: int | None = None

    @property
    def is_admin(self) -> bool:
        return self.role is not None and self.role == settings.admin_role


class TokenService:
    """Create and validate JWT access tokens."""

    def __init__(self, secret: str | None = None, algorithm: str | None = None,
                 expire_minutes: int | None = None):
        self.secret = secret or settings.jwt_secret
        self.algorithm = algorithm or settings.jwt_algorithm
        self.expire_minutes = expire_minutes or settings.jwt_expire_minutes

    def issue(self, user_id: UUID, role: int | None = None) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(user_id),
            "iat": now,
            "exp": now + timedelta(minutes=self.expire_minutes),
            "jti": uuid.uuid4().hex,
        }
        if role is not None:
            payload["role"] = role
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def validate(self, token: str) -> Principal:
        """Decode a bearer token into a Principal.

        Raises:
            AuthError: missing, expired, malformed or forged token
        """
        if not token:
            raise AuthError("Missing bearer token")
        try:
            claims = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise AuthError("Token expired")
        except jwt.InvalidTokenError:
            raise AuthError("Invalid token")

        try:
            user_id = UUID(claims["sub"])
        except (ValueError, TypeError):
            raise AuthError("Invalid token subject")

        role = claims.get("role")
        if role is not None and not isinstance(role, int):
            raise AuthError("Invalid token role")
        return Principal(user_id=user_id, role=role)


def get_token_service() -> TokenService:
    """Dependency: the process-wide token service."""
    return _token_service


_token_service = TokenService()
