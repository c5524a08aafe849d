"""
routers/comm.py — Login, registration, captcha and website info

Open endpoints; none of them look at the Authorization header.

Business Rules:
- Login and registration each need a fresh captcha of their own type
  (unless captcha is disabled in settings)
- Login and registration are rate limited per client address
- Successful registration returns 201 with the new profile

Called by: routes.py (route table)
Depends on: services/user_service.py, services/site_service.py, tokens.py
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..rate_limit import limiter
from ..schemas.site import CaptchaResponse, LoginBackground, WebsiteProfile
from ..schemas.users import LoginRequest, ProfileResponse, RegisterRequest, TokenResponse
from ..services import site_service, user_service
from ..tokens import TokenService, get_token_service


def get_captcha(captcha_type: str) -> CaptchaResponse:
    """Issue a captcha challenge for the login or register form."""
    return site_service.new_captcha(captcha_type)


def get_custom_bg() -> LoginBackground:
    """Background image shown behind the login form."""
    return site_service.get_login_background()


def get_website_profile() -> WebsiteProfile:
    return site_service.get_website_profile()


@limiter.limit(settings.rate_limit_login)
def post_login(
    request: Request,
    body: LoginRequest,
    db: Session = Depends(get_db),
    tokens: TokenService = Depends(get_token_service),
) -> TokenResponse:
    """Exchange username + password (+ captcha) for a bearer token."""
    return user_service.login(db, body, tokens)


@limiter.limit(settings.rate_limit_login)
def post_register(
    request: Request,
    body: RegisterRequest,
    db: Session = Depends(get_db),
) -> ProfileResponse:
    """Create an account."""
    return user_service.register(db, body)
