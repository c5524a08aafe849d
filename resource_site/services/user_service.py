"""
user_service.py — Accounts: login, registration, profile, orders, purchases

Business Rules:
- Usernames and emails are unique (case-insensitive, stored lowercased)
- Passwords are stored as PBKDF2-SHA256 hashes with a per-user salt
- Login failures never say whether the username exists
- Changing a password requires the current one
- Buying a resource twice is a no-op that returns the existing order
- Owners can't buy their own resources

Called by: routers/comm.py, routers/user.py
Depends on: models, tokens.py, services/site_service.py (captcha), errors.py
"""

import base64
import hmac
import logging
import secrets
from uuid import UUID

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..errors import AuthError, NotFoundError, ValidationError
from ..models import Order, User
from ..schemas.users import (
    ChangePasswordRequest,
    ChangeProfileRequest,
    LoginRequest,
    OrderResponse,
    ProfileResponse,
    RegisterRequest,
    TokenResponse,
)
from ..tokens import TokenService
from . import resource_service, site_service

log = logging.getLogger(__name__)

_ITERATIONS = 120_000


# ── Passwords ─────────────────────────────────────────────────────────


def _derive(password: str, salt: bytes) -> bytes:
    kdf = PBKDF2HMAC(algorithm=hashes.SHA256(), length=32, salt=salt, iterations=_ITERATIONS)
    return kdf.derive(password.encode())


def hash_password(password: str) -> str:
    salt = secrets.token_bytes(16)
    digest = _derive(password, salt)
    return "pbkdf2_sha256${}${}${}".format(
        _ITERATIONS,
        base64.b64encode(salt).decode(),
        base64.b64encode(digest).decode(),
    )


def verify_password(password: str, stored: str) -> bool:
    try:
        _, _iterations, salt_b64, digest_b64 = stored.split("$")
        salt = base64.b64decode(salt_b64)
        expected = base64.b64decode(digest_b64)
    except ValueError:
        return False
    return hmac.compare_digest(_derive(password, salt), expected)


# ── Profile helpers ───────────────────────────────────────────────────


def _to_profile(u: User) -> ProfileResponse:
    return ProfileResponse(
        uuid=u.id,
        username=u.username,
        email=u.email,
        nickname=u.nickname,
        bio=u.bio,
        avatar=u.avatar,
        role=u.role,
        created_at=u.created_at,
    )


def get_user(db: Session, user_id: UUID) -> User:
    u = db.get(User, user_id)
    if not u:
        raise NotFoundError(f"User {user_id} not found")
    return u


# ── Login & registration ──────────────────────────────────────────────


def login(db: Session, body: LoginRequest, tokens: TokenService) -> TokenResponse:
    site_service.check_captcha("login", body.captcha_id, body.captcha_code)
    u = db.scalar(select(User).where(User.username == body.username))
    if not u or not verify_password(body.password, u.password_hash):
        log.info(f"Failed login for {body.username!r}")
        raise AuthError("Wrong username or password")
    log.info(f"User {u.id} logged in")
    return TokenResponse(
        token=tokens.issue(u.id, u.role),
        user_id=u.id,
        expires_in=tokens.expire_minutes * 60,
    )


def register(db: Session, body: RegisterRequest) -> ProfileResponse:
    site_service.check_captcha("register", body.captcha_id, body.captcha_code)
    taken = db.scalar(
        select(func.count(User.id)).where(
            or_(User.username == body.username, User.email == body.email)
        )
    )
    if taken:
        raise ValidationError("Username or email already registered")
    u = User(
        username=body.username,
        email=body.email,
        password_hash=hash_password(body.password),
        nickname=body.username,
    )
    db.add(u)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ValidationError("Username or email already registered")
    db.refresh(u)
    log.info(f"Registered user {u.id} ({u.username})")
    return _to_profile(u)


# ── Profile ───────────────────────────────────────────────────────────


def get_user_profile(db: Session, user_id: UUID) -> ProfileResponse:
    return _to_profile(get_user(db, user_id))


def change_profile(db: Session, user_id: UUID, body: ChangeProfileRequest) -> ProfileResponse:
    u = get_user(db, user_id)
    if body.email is not None and body.email != u.email:
        clash = db.scalar(select(User.id).where(User.email == body.email))
        if clash:
            raise ValidationError("Email already registered")
        u.email = body.email
    if body.nickname is not None:
        u.nickname = body.nickname.strip()
    if body.bio is not None:
        u.bio = body.bio
    db.commit()
    return _to_profile(u)


def change_password(db: Session, user_id: UUID, body: ChangePasswordRequest) -> None:
    u = get_user(db, user_id)
    if not verify_password(body.old_password, u.password_hash):
        raise ValidationError("Current password is wrong")
    u.password_hash = hash_password(body.new_password)
    db.commit()
    log.info(f"User {user_id} changed password")


def set_avatar(db: Session, user_id: UUID, path: str) -> ProfileResponse:
    u = get_user(db, user_id)
    u.avatar = path
    db.commit()
    return _to_profile(u)


# ── Orders ────────────────────────────────────────────────────────────


def _to_order(o: Order) -> OrderResponse:
    return OrderResponse(
        uuid=o.id,
        resource_uuid=o.resource_id,
        resource_title=o.resource.title,
        price=o.price,
        created_at=o.created_at,
    )


def get_orders(db: Session, user_id: UUID) -> list[OrderResponse]:
    get_user(db, user_id)
    orders = db.scalars(
        select(Order).where(Order.user_id == user_id).order_by(Order.created_at.desc())
    ).all()
    return [_to_order(o) for o in orders]


def buy_resource(db: Session, user_id: UUID, resource_id: UUID) -> OrderResponse:
    get_user(db, user_id)
    r = resource_service.get_resource(db, resource_id)
    if r.owner_id == user_id:
        raise ValidationError("You already own this resource")
    existing_q = select(Order).where(Order.user_id == user_id, Order.resource_id == resource_id)
    existing = db.scalar(existing_q)
    if existing:
        return _to_order(existing)
    o = Order(user_id=user_id, resource_id=resource_id, price=r.price)
    db.add(o)
    try:
        db.commit()
    except IntegrityError:
        # a concurrent purchase inserted the same order first
        db.rollback()
        existing = db.scalar(existing_q)
        if existing is None:
            raise
        return _to_order(existing)
    db.refresh(o)
    log.info(f"User {user_id} bought resource {resource_id} for {r.price}")
    return _to_order(o)
