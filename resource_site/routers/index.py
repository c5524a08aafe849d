"""
routers/index.py — Home page: resource listings, resource detail, carousel

Open endpoints. The detail endpoint reads the token if one is sent, so
owners, admins and buyers see the download link; a missing or invalid
token is treated as an anonymous visitor.

Business Rules:
- page defaults to 1, page_size to 49
- /index/resources picks the listing by which filters are present
- list_of_language defaults language to "PHP"
- list_of_category requires a category

Called by: routes.py (route table)
Depends on: services/resource_service.py, services/site_service.py, dependencies.py
"""

from uuid import UUID

from fastapi import Depends, Query
from sqlalchemy.orm import Session

from ..config import settings
from ..database import get_db
from ..dependencies import optional_principal, pagination_params
from ..schemas.resources import PaginationParams, SysResourceList, SysResourceResponse
from ..schemas.site import CarouselItem
from ..services import resource_service, site_service
from ..tokens import Principal


def get_resource_list(
    query: PaginationParams = Depends(pagination_params),
    db: Session = Depends(get_db),
) -> list[SysResourceList]:
    """Resource listing, filtered by category and/or language when given."""
    if query.category and query.language:
        return resource_service.get_resources_by_category_and_language(
            db, query.category, query.language, query.page, query.page_size
        )
    if query.category:
        return resource_service.get_resources_of_category(
            db, query.category, query.page, query.page_size
        )
    if query.language:
        return resource_service.get_resources_of_language(
            db, query.language, query.page, query.page_size
        )
    return resource_service.get_resource_list(db, query.page, query.page_size)


def get_resource_list_of_language(
    language: str | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    db: Session = Depends(get_db),
) -> list[SysResourceList]:
    return resource_service.get_resources_of_language(db, language or "PHP", page, page_size)


def get_resources_of_category(
    category: str = Query(..., min_length=1),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    db: Session = Depends(get_db),
) -> list[SysResourceList]:
    return resource_service.get_resources_of_category(db, category, page, page_size)


def get_resources_of_category_and_language(
    category: str = Query(..., min_length=1),
    language: str = Query(..., min_length=1),
    page: int = Query(1, ge=1),
    page_size: int = Query(settings.default_page_size, ge=1, le=settings.max_page_size),
    db: Session = Depends(get_db),
) -> list[SysResourceList]:
    return resource_service.get_resources_by_category_and_language(
        db, category, language, page, page_size
    )


def get_resource_detail_by_uuid(
    uuid: UUID,
    principal: Principal | None = Depends(optional_principal),
    db: Session = Depends(get_db),
) -> SysResourceResponse:
    """Resource detail; the download link needs ownership, admin role or a purchase."""
    requester_id = principal.user_id if principal else None
    role = principal.role if principal else None
    return resource_service.get_resource_detail_by_uuid(db, uuid, requester_id, role)


def get_carousel(db: Session = Depends(get_db)) -> list[CarouselItem]:
    return site_service.get_carousel(db)
