"""
site_service.py — Website profile, login background, carousel and captcha challenges

Business Rules:
- Captcha types: "login" and "register"; anything else is 404
- A challenge expires after settings.captcha_ttl_seconds and is consumed
  by its first check, right or wrong
- Codes are compared case-insensitively
- With settings.captcha_enabled off, check_captcha accepts anything
- Carousel lists active slides by sort_order

Called by: routers/comm.py, routers/index.py, services/user_service.py
Depends on: config.py, models, errors.py
"""

import logging
import secrets
import string
import time
import uuid

from sqlalchemy import select
from sqlalchemy.orm import Session

from ..config import settings
from ..errors import NotFoundError, ValidationError
from ..models import CarouselSlide
from ..schemas.site import CaptchaResponse, CarouselItem, LoginBackground, WebsiteProfile

log = logging.getLogger(__name__)

CAPTCHA_TYPES = ("login", "register")
# no 0/O/1/I to keep codes readable
_ALPHABET = "".join(c for c in string.ascii_uppercase + string.digits if c not in "0O1I")

# captcha_id -> (captcha_type, code, expires_at)
_challenges: dict[str, tuple[str, str, float]] = {}


def _purge_expired(now: float) -> None:
    for cid, (_, _, expires_at) in list(_challenges.items()):
        if expires_at <= now:
            _challenges.pop(cid, None)


def new_captcha(captcha_type: str) -> CaptchaResponse:
    if captcha_type not in CAPTCHA_TYPES:
        raise NotFoundError(f"Unknown captcha type: {captcha_type}")
    now = time.monotonic()
    _purge_expired(now)
    code = "".join(secrets.choice(_ALPHABET) for _ in range(settings.captcha_length))
    captcha_id = uuid.uuid4().hex
    _challenges[captcha_id] = (captcha_type, code, now + settings.captcha_ttl_seconds)
    return CaptchaResponse(
        captcha_id=captcha_id,
        captcha_type=captcha_type,
        challenge=code,
        expires_in=settings.captcha_ttl_seconds,
    )


def check_captcha(captcha_type: str, captcha_id: str | None, code: str | None) -> None:
    """Consume a challenge; raise ValidationError unless it matches."""
    if not settings.captcha_enabled:
        return
    if not captcha_id or not code:
        raise ValidationError("Captcha required")
    entry = _challenges.pop(captcha_id, None)
    if entry is None:
        raise ValidationError("Captcha expired, please request a new one")
    kind, expected, expires_at = entry
    if kind != captcha_type or expires_at <= time.monotonic():
        raise ValidationError("Captcha expired, please request a new one")
    if code.strip().upper() != expected:
        raise ValidationError("Wrong captcha")


def get_website_profile() -> WebsiteProfile:
    return WebsiteProfile(
        title=settings.site_title,
        description=settings.site_description,
        keywords=settings.site_keywords,
        version=settings.app_version,
    )


def get_login_background() -> LoginBackground:
    return LoginBackground(url=settings.login_background)


def get_carousel(db: Session) -> list[CarouselItem]:
    slides = db.scalars(
        select(CarouselSlide)
        .where(CarouselSlide.is_active.is_(True))
        .order_by(CarouselSlide.sort_order, CarouselSlide.id)
    ).all()
    return [CarouselItem(id=s.id, image=s.image, link=s.link, title=s.title) for s in slides]
