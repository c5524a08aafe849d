"""
schemas/users.py — Pydantic models for login, registration and profile endpoints

Business Rules:
- Usernames are 3-32 chars, lowercased
- Passwords are at least 6 chars
- Email must contain @ and is lowercased
- Captcha fields are optional at the schema level; the service decides
  whether a challenge is required

Called by: routers/comm.py, routers/user.py, services/user_service.py
Depends on: pydantic
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class CaptchaAnswer(BaseModel):
    captcha_id: str | None = None
    captcha_code: str | None = None


class LoginRequest(CaptchaAnswer):
    username: str
    password: str

    @field_validator("username")
    @classmethod
    def lower_username(cls, v: str) -> str:
        return v.strip().lower()


class RegisterRequest(CaptchaAnswer):
    username: str = Field(..., min_length=3, max_length=32)
    password: str = Field(..., min_length=6, max_length=128)
    email: str

    @field_validator("username")
    @classmethod
    def lower_username(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("email")
    @classmethod
    def clean_email(cls, v: str) -> str:
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("invalid email")
        return v


class TokenResponse(BaseModel):
    token: str
    token_type: str = "Bearer"
    user_id: UUID
    expires_in: int


class ProfileResponse(BaseModel):
    uuid: UUID
    username: str
    email: str
    nickname: str | None = None
    bio: str | None = None
    avatar: str | None = None
    role: int | None = None
    created_at: datetime | None = None


class ChangeProfileRequest(BaseModel):
    nickname: str | None = Field(None, max_length=64)
    email: str | None = None
    bio: str | None = Field(None, max_length=500)

    @field_validator("email")
    @classmethod
    def clean_email(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip().lower()
        if "@" not in v:
            raise ValueError("invalid email")
        return v


class ChangePasswordRequest(BaseModel):
    old_password: str
    new_password: str = Field(..., min_length=6, max_length=128)


class OrderResponse(BaseModel):
    uuid: UUID
    resource_uuid: UUID
    resource_title: str
    price: int
    created_at: datetime | None = None
