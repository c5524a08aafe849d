"""
routers/sys_resources.py — Resource management: create, change link, uploads, screenshots

Every endpoint here sits behind the auth gate.

Business Rules:
- Created resources are owned by the caller; 201 with the full detail
- Only the owner (or an admin) may change a download link
- Description upload: field "description", .md/.txt text only
- Screenshot upload: field "avatar", many parts; non-images are dropped,
  copy failures are listed per file, stored files are recorded as
  unattached screenshots owned by the caller
- If screenshot metadata can't be saved the stored files are removed and
  the request fails with 500
- Only the uploader (or an admin) may delete a screenshot

Called by: routes.py (route table)
Depends on: services/resource_service.py, uploads.py, dependencies.py
"""

import logging

from fastapi import Depends, File, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database import get_db
from ..dependencies import current_principal
from ..errors import UpstreamError
from ..schemas.resources import (
    SysResourceChangeLink,
    SysResourceCreateRequest,
    SysResourceResponse,
    UploadResult,
)
from ..services import resource_service
from ..tokens import Principal
from ..uploads import ingest_description, ingest_images, remove_stored

log = logging.getLogger(__name__)


def post_create_resource(
    body: SysResourceCreateRequest,
    principal: Principal = Depends(current_principal),
    db: Session = Depends(get_db),
) -> SysResourceResponse:
    """Create a source package owned by the caller."""
    return resource_service.create_resource(db, body, principal.user_id)


def put_change_link(
    body: SysResourceChangeLink,
    principal: Principal = Depends(current_principal),
    db: Session = Depends(get_db),
) -> dict:
    """Point a resource at a new download link."""
    link = resource_service.change_resource_link(db, body, principal.user_id, principal.role)
    log.info(f"User {principal.user_id} changed link of resource {body.uuid}")
    return {"uuid": str(body.uuid), "resource_link": link}


async def put_upload_description(
    description: UploadFile | None = File(None),
    principal: Principal = Depends(current_principal),
) -> UploadResult:
    """Store a .md or .txt description file."""
    return await ingest_description(description)


async def put_upload_image(
    avatar: list[UploadFile] | None = File(None),
    principal: Principal = Depends(current_principal),
    db: Session = Depends(get_db),
):
    """Store resource screenshots and report each file's outcome."""
    result = await ingest_images(avatar or [])

    if result.stored:
        pairs = [(r.stored_path, r.generated_id) for r in result.stored]
        try:
            await run_in_threadpool(
                resource_service.save_resource_image, db, pairs, principal.user_id
            )
        except SQLAlchemyError as e:
            db.rollback()
            for r in result.stored:
                remove_stored(r.stored_path)
            raise UpstreamError(f"Could not save image metadata: {e.__class__.__name__}")

    status_code = 500 if result.failed and not result.stored else 200
    return JSONResponse(result.model_dump(), status_code=status_code)


def delete_image(
    image_id: str,
    principal: Principal = Depends(current_principal),
    db: Session = Depends(get_db),
) -> dict:
    """Delete a screenshot record and its stored file."""
    path = resource_service.delete_image(db, image_id, principal.user_id, principal.role)
    remove_stored(path)
    return {"ok": True}
