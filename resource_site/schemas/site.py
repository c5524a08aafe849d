"""schemas/site.py — Website profile, captcha and carousel response models."""

from pydantic import BaseModel


class CaptchaResponse(BaseModel):
    captcha_id: str
    captcha_type: str
    challenge: str
    expires_in: int


class WebsiteProfile(BaseModel):
    title: str
    description: str
    keywords: str
    version: str


class LoginBackground(BaseModel):
    url: str


class CarouselItem(BaseModel):
    id: int
    image: str
    link: str | None = None
    title: str | None = None
