"""
resource_service.py — System resource CRUD, listings and screenshot metadata

Business Rules:
- Listings are newest first, offset = (page - 1) * page_size
- The download link in a detail is visible to the owner, an admin, or a
  user who bought the resource; everyone else gets resource_link=None
- Only the owner (or an admin) may change a resource's download link
- Screenshots are saved unattached and claimed by create_resource via
  image_ids, by their uploader only; only the uploader (or an admin) may
  delete one
- Unknown resource / image ids raise NotFoundError

Called by: routers/index.py, routers/sys_resources.py, services/user_service.py
Depends on: models, schemas/resources.py, errors.py
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from ..config import settings
from ..errors import NotFoundError, PermissionDeniedError, ValidationError
from ..models import Order, ResourceImage, SysResource
from ..schemas.resources import (
    SysResourceChangeLink,
    SysResourceCreateRequest,
    SysResourceList,
    SysResourceResponse,
)

log = logging.getLogger(__name__)


# ── Serialization ─────────────────────────────────────────────────────


def _to_list_item(r: SysResource) -> SysResourceList:
    return SysResourceList(
        uuid=r.id,
        title=r.title,
        category=r.category,
        language=r.language,
        price=r.price,
        cover=r.images[0].path if r.images else None,
        created_at=r.created_at,
    )


def _to_detail(r: SysResource, show_link: bool) -> SysResourceResponse:
    return SysResourceResponse(
        uuid=r.id,
        title=r.title,
        description=r.description or "",
        category=r.category,
        language=r.language,
        price=r.price,
        owner_id=r.owner_id,
        description_file=r.description_file,
        resource_link=r.resource_link if show_link else None,
        images=[img.path for img in r.images],
        created_at=r.created_at,
    )


def get_resource(db: Session, resource_id: UUID) -> SysResource:
    r = db.get(SysResource, resource_id)
    if not r:
        raise NotFoundError(f"Resource {resource_id} not found")
    return r


# ── Listings ──────────────────────────────────────────────────────────


def _page(db: Session, q, page: int, page_size: int) -> list[SysResourceList]:
    q = (
        q.options(selectinload(SysResource.images))
        .order_by(SysResource.created_at.desc(), SysResource.id)
        .offset((page - 1) * page_size)
        .limit(page_size)
    )
    return [_to_list_item(r) for r in db.scalars(q).all()]


def get_resource_list(db: Session, page: int, page_size: int) -> list[SysResourceList]:
    return _page(db, select(SysResource), page, page_size)


def get_resources_of_category(
    db: Session, category: str, page: int, page_size: int
) -> list[SysResourceList]:
    q = select(SysResource).where(SysResource.category == category)
    return _page(db, q, page, page_size)


def get_resources_of_language(
    db: Session, language: str, page: int, page_size: int
) -> list[SysResourceList]:
    q = select(SysResource).where(SysResource.language == language)
    return _page(db, q, page, page_size)


def get_resources_by_category_and_language(
    db: Session, category: str, language: str, page: int, page_size: int
) -> list[SysResourceList]:
    q = select(SysResource).where(
        SysResource.category == category, SysResource.language == language
    )
    return _page(db, q, page, page_size)


# ── Detail ────────────────────────────────────────────────────────────


def can_download(db: Session, r: SysResource, requester_id: UUID | None, role: int | None) -> bool:
    """Owner, admin, or buyer may see the download link."""
    if requester_id is None:
        return False
    if r.owner_id == requester_id or role == settings.admin_role:
        return True
    bought = db.scalar(
        select(Order.id).where(Order.user_id == requester_id, Order.resource_id == r.id)
    )
    return bought is not None


def get_resource_detail_by_uuid(
    db: Session, resource_id: UUID, requester_id: UUID | None, role: int | None
) -> SysResourceResponse:
    r = get_resource(db, resource_id)
    return _to_detail(r, can_download(db, r, requester_id, role))


# ── Mutations ─────────────────────────────────────────────────────────


def create_resource(db: Session, payload: SysResourceCreateRequest, owner_id: UUID) -> SysResourceResponse:
    r = SysResource(
        title=payload.title,
        description=payload.description,
        category=payload.category,
        language=payload.language,
        price=payload.price,
        resource_link=payload.resource_link,
        description_file=payload.description_file,
        owner_id=owner_id,
    )
    db.add(r)
    db.flush()

    if payload.image_ids:
        images = db.scalars(
            select(ResourceImage).where(ResourceImage.id.in_(payload.image_ids))
        ).all()
        missing = set(payload.image_ids) - {img.id for img in images}
        if missing:
            db.rollback()
            raise ValidationError(f"Unknown image ids: {', '.join(sorted(missing))}")
        for img in images:
            if img.uploaded_by != owner_id:
                db.rollback()
                raise ValidationError(f"Image {img.id} was uploaded by another user")
            if img.resource_id is not None and img.resource_id != r.id:
                db.rollback()
                raise ValidationError(f"Image {img.id} already belongs to another resource")
            img.resource_id = r.id

    db.commit()
    db.refresh(r)
    log.info(f"Resource {r.id} created by {owner_id}")
    return _to_detail(r, show_link=True)


def change_resource_link(
    db: Session, payload: SysResourceChangeLink, requester_id: UUID, role: int | None = None
) -> str:
    """Point a resource at a new download link; owner or admin only."""
    r = get_resource(db, payload.uuid)
    if r.owner_id != requester_id and role != settings.admin_role:
        raise PermissionDeniedError("Only the owner can change the download link")
    r.resource_link = payload.resource_link
    db.commit()
    log.info(f"Resource {r.id} download link changed")
    return r.resource_link


def save_resource_image(
    db: Session, pairs: list[tuple[str, str]], uploaded_by: UUID | None = None
) -> int:
    """Record (stored_path, generated_id) pairs as unattached screenshots."""
    for path, image_id in pairs:
        db.add(ResourceImage(id=image_id, path=path, uploaded_by=uploaded_by))
    db.commit()
    return len(pairs)


def delete_image(db: Session, image_id: str, requester_id: UUID, role: int | None = None) -> str:
    """Remove a screenshot record and return its stored path."""
    img = db.get(ResourceImage, image_id)
    if not img:
        raise NotFoundError(f"Image {image_id} not found")
    owner = img.uploaded_by
    if img.resource_id is not None:
        owner = img.resource.owner_id
    if owner != requester_id and role != settings.admin_role:
        raise PermissionDeniedError("Only the uploader can delete this image")
    path = img.path
    db.delete(img)
    db.commit()
    log.info(f"Image {image_id} deleted by {requester_id}")
    return path
