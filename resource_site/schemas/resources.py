"""
schemas/resources.py — Pydantic models for system resource endpoints

Validates resource creation and download-link changes, and shapes the
listing, detail and upload responses.

Business Rules:
- page >= 1 (default 1), page_size >= 1 (default 49)
- category/language are trimmed; empty strings count as absent
- resource_link must be an http(s) URL
- price is a non-negative integer (points)

Called by: routers/index.py, routers/sys_resources.py, services/resource_service.py
Depends on: pydantic
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class PaginationParams(BaseModel):
    category: str | None = None
    language: str | None = None
    page: int = Field(1, ge=1)
    page_size: int = Field(49, ge=1)

    @field_validator("category", "language", mode="before")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = str(v).strip()
        return v or None


def _check_link(v: str) -> str:
    v = v.strip()
    if not v.startswith(("http://", "https://")):
        raise ValueError("resource_link must be an http(s) URL")
    return v


class SysResourceCreateRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    category: str = Field(..., min_length=1, max_length=50)
    language: str = Field("PHP", min_length=1, max_length=50)
    price: int = Field(0, ge=0)
    resource_link: str
    description_file: str | None = None
    image_ids: list[str] = Field(default_factory=list)

    @field_validator("title", "category", "language")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()

    @field_validator("resource_link")
    @classmethod
    def valid_link(cls, v: str) -> str:
        return _check_link(v)


class SysResourceChangeLink(BaseModel):
    uuid: UUID
    resource_link: str

    @field_validator("resource_link")
    @classmethod
    def valid_link(cls, v: str) -> str:
        return _check_link(v)


class SysResourceList(BaseModel):
    uuid: UUID
    title: str
    category: str
    language: str
    price: int
    cover: str | None = None
    created_at: datetime | None = None


class SysResourceResponse(BaseModel):
    uuid: UUID
    title: str
    description: str
    category: str
    language: str
    price: int
    owner_id: UUID
    description_file: str | None = None
    resource_link: str | None = None
    images: list[str] = Field(default_factory=list)
    created_at: datetime | None = None


class UploadResult(BaseModel):
    stored_path: str
    generated_id: str


class UploadFailure(BaseModel):
    filename: str
    reason: str


class ImageUploadResponse(BaseModel):
    stored: list[UploadResult] = Field(default_factory=list)
    failed: list[UploadFailure] = Field(default_factory=list)
