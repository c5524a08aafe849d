"""
routes.py — The route table and the function that mounts it

The whole HTTP surface is one tuple of Route entries built by
build_route_table(). mount_routes() registers every entry on the app,
attaching the auth gate to the entries marked auth_required. The OpenAPI
document FastAPI serves is generated from exactly these registrations.

Business Rules:
- Open group: comm/* (login, register, captcha, website info), index/*
  (listings, detail, carousel)
- Protected group: user/* (profile, password, orders, avatar, purchase),
  sys/resources/* (create, link, uploads, screenshot delete)
- A protected entry is mounted with require_principal as a route-level
  dependency, so it resolves before any handler argument
- Static segments come before parameterised siblings (get_login_bg
  before {captcha_type}, list_of_* before {uuid})
- The table is built once at startup and never mutated

Called by: main.py (create_app)
Depends on: routers/*, dependencies.py, schemas/resources.py
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from fastapi import Depends, FastAPI

from .dependencies import require_principal
from .routers import comm, index, sys_resources, user
from .schemas.resources import ImageUploadResponse


@dataclass(frozen=True)
class Route:
    method: str
    path: str
    handler: Callable[..., Any]
    auth_required: bool = False
    summary: str = ""
    tags: tuple[str, ...] = ()
    status_code: int = 200
    response_model: Any = None


def _open(method, path, handler, summary, tag, **kw) -> Route:
    return Route(method, path, handler, False, summary, (tag,), **kw)


def _protected(method, path, handler, summary, tag, **kw) -> Route:
    return Route(method, path, handler, True, summary, (tag,), **kw)


def build_route_table() -> tuple[Route, ...]:
    """Every endpoint of the API, open group first."""
    open_group = (
        # login
        _open("GET", "/comm/login/get_login_bg", comm.get_custom_bg, "Login background", "comm"),
        _open("GET", "/comm/login/{captcha_type}", comm.get_captcha, "Login captcha", "comm"),
        _open("POST", "/comm/login/loading", comm.post_login, "Log in", "comm"),
        # website info
        _open("GET", "/comm/get_website", comm.get_website_profile, "Website profile", "comm"),
        # registration
        _open("GET", "/comm/register/{captcha_type}", comm.get_captcha, "Register captcha", "comm"),
        _open("POST", "/comm/register/create", comm.post_register, "Register", "comm",
              status_code=201),
        # home page
        _open("GET", "/index/resources", index.get_resource_list, "Resource list", "index"),
        _open("GET", "/index/resources/list_of_language", index.get_resource_list_of_language,
              "Resources by language", "index"),
        _open("GET", "/index/resources/list_of_category", index.get_resources_of_category,
              "Resources by category", "index"),
        _open("GET", "/index/resources/list_category_language",
              index.get_resources_of_category_and_language,
              "Resources by category and language", "index"),
        _open("GET", "/index/resources/{uuid}", index.get_resource_detail_by_uuid,
              "Resource detail", "index"),
        _open("GET", "/index/carousel", index.get_carousel, "Carousel", "index"),
    )

    protected_group = (
        _protected("GET", "/user/profile/view/{uuid}", user.get_user_profile,
                   "View profile", "user"),
        _protected("PUT", "/user/profile/change_pwd/{uuid}", user.put_change_password,
                   "Change password", "user"),
        _protected("PUT", "/user/profile/change_profile/{uuid}", user.put_change_profile,
                   "Edit profile", "user"),
        _protected("GET", "/user/profile/orders/{uuid}", user.get_orders,
                   "Order history", "user"),
        _protected("PUT", "/user/profile/avatar", user.put_upload_avatar,
                   "Upload avatar", "user"),
        _protected("PUT", "/user/resource/{uuid}", user.put_buy_resource,
                   "Buy resource", "user"),
        _protected("POST", "/sys/resources", sys_resources.post_create_resource,
                   "Create resource", "sys_resources", status_code=201),
        _protected("PUT", "/sys/resources/link", sys_resources.put_change_link,
                   "Change download link", "sys_resources"),
        _protected("PUT", "/sys/resources/description", sys_resources.put_upload_description,
                   "Upload description file", "sys_resources"),
        _protected("PUT", "/sys/resources/images", sys_resources.put_upload_image,
                   "Upload screenshots", "sys_resources",
                   response_model=ImageUploadResponse),
        _protected("DELETE", "/sys/resources/images/{image_id}", sys_resources.delete_image,
                   "Delete screenshot", "sys_resources"),
    )

    return open_group + protected_group


def mount_routes(app: FastAPI, table: tuple[Route, ...], prefix: str = "") -> None:
    """Register every Route on the app, gating the protected ones."""
    for route in table:
        kwargs: dict[str, Any] = {
            "methods": [route.method],
            "summary": route.summary or None,
            "tags": list(route.tags),
            "status_code": route.status_code,
            "name": f"{route.handler.__module__.rsplit('.', 1)[-1]}.{route.handler.__name__}",
        }
        if route.response_model is not None:
            kwargs["response_model"] = route.response_model
        if route.auth_required:
            kwargs["dependencies"] = [Depends(require_principal)]
        app.add_api_route(prefix + route.path, route.handler, **kwargs)


def protected_paths(table: tuple[Route, ...]) -> list[tuple[str, str]]:
    return [(r.method, r.path) for r in table if r.auth_required]
