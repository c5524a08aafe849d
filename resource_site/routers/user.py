"""
routers/user.py — Signed-in user: profile, password, orders, avatar, purchases

Every endpoint here sits behind the auth gate and receives the caller's
Principal as an argument.

Business Rules:
- {uuid} in a profile path must be the caller's own id (admins excepted)
- Avatar upload takes the first image part of field "avatar"; the
  previously stored avatar file is removed once the new one is recorded
- Buying is idempotent per (user, resource)

Called by: routes.py (route table)
Depends on: services/user_service.py, uploads.py, dependencies.py
"""

from pathlib import Path
from uuid import UUID

from fastapi import Depends, File, UploadFile
from fastapi.concurrency import run_in_threadpool
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..dependencies import current_principal, ensure_self_or_admin
from ..errors import StorageError, ValidationError
from ..schemas.users import (
    ChangePasswordRequest,
    ChangeProfileRequest,
    OrderResponse,
    ProfileResponse,
)
from ..services import user_service
from ..tokens import Principal
from ..uploads import ingest_images, remove_stored


def get_user_profile(
    uuid: UUID,
    principal: Principal = Depends(current_principal),
    db: Session = Depends(get_db),
) -> ProfileResponse:
    ensure_self_or_admin(principal, uuid)
    return user_service.get_user_profile(db, uuid)


def put_change_password(
    uuid: UUID,
    body: ChangePasswordRequest,
    principal: Principal = Depends(current_principal),
    db: Session = Depends(get_db),
) -> dict:
    ensure_self_or_admin(principal, uuid)
    user_service.change_password(db, uuid, body)
    return {"ok": True}


def put_change_profile(
    uuid: UUID,
    body: ChangeProfileRequest,
    principal: Principal = Depends(current_principal),
    db: Session = Depends(get_db),
) -> ProfileResponse:
    ensure_self_or_admin(principal, uuid)
    return user_service.change_profile(db, uuid, body)


def get_orders(
    uuid: UUID,
    principal: Principal = Depends(current_principal),
    db: Session = Depends(get_db),
) -> list[OrderResponse]:
    ensure_self_or_admin(principal, uuid)
    return user_service.get_orders(db, uuid)


async def put_upload_avatar(
    avatar: list[UploadFile] | None = File(None),
    principal: Principal = Depends(current_principal),
    db: Session = Depends(get_db),
) -> ProfileResponse:
    """Replace the caller's avatar with the first image in the request."""
    result = await ingest_images((avatar or [])[:1], settings.avatar_dir)
    if result.failed:
        raise StorageError(f"Could not store avatar: {result.failed[0].reason}")
    if not result.stored:
        raise ValidationError("Avatar must be an image")
    new_path = result.stored[0].stored_path
    try:
        previous = await run_in_threadpool(user_service.get_user_profile, db, principal.user_id)
        profile = await run_in_threadpool(user_service.set_avatar, db, principal.user_id, new_path)
    except Exception:
        remove_stored(new_path)
        raise
    # only files this service stored are removed, never an external URL
    if previous.avatar and Path(previous.avatar).parent == Path(settings.avatar_dir):
        remove_stored(previous.avatar)
    return profile


def put_buy_resource(
    uuid: UUID,
    principal: Principal = Depends(current_principal),
    db: Session = Depends(get_db),
) -> OrderResponse:
    return user_service.buy_resource(db, principal.user_id, uuid)
