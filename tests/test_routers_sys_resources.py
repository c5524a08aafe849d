"""
tests/test_routers_sys_resources.py — Tests for resource management endpoints

Covers: create + read-back, download link changes, description uploads,
screenshot uploads (per-file outcomes, copy failures, metadata failure
cleanup), and screenshot deletion permissions.

Called by: pytest
Depends on: routers/sys_resources.py, uploads.py, services/resource_service.py, conftest.py
"""

import io
import uuid
from pathlib import Path
from unittest.mock import patch

from sqlalchemy.exc import OperationalError

from resource_site.config import settings
from resource_site.models import ResourceImage

API = settings.api_prefix

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
JPEG = b"\xff\xd8\xff\xe0" + b"\x00" * 64
PDF = b"%PDF-1.4\n" + b"\x00" * 64

NEW_RESOURCE = {
    "title": "Shop Kit",
    "description": "An online shop",
    "category": "shop",
    "language": "Python",
    "price": 12,
    "resource_link": "https://files.example.com/shop-kit.zip",
}


def _image_parts(*parts):
    return [("avatar", (name, io.BytesIO(data), ctype)) for name, data, ctype in parts]


# ── Create & link ────────────────────────────────────────────────────


class TestCreateResource:
    def test_create_then_read_back(self, client, auth_headers, test_user):
        resp = client.post(f"{API}/sys/resources", json=NEW_RESOURCE, headers=auth_headers)
        assert resp.status_code == 201
        created = resp.json()
        assert created["owner_id"] == str(test_user.id)
        assert created["resource_link"] == NEW_RESOURCE["resource_link"]

        detail = client.get(f"{API}/index/resources/{created['uuid']}", headers=auth_headers)
        assert detail.status_code == 200
        assert detail.json() == created

    def test_language_defaults_to_php(self, client, auth_headers):
        body = {k: v for k, v in NEW_RESOURCE.items() if k != "language"}
        resp = client.post(f"{API}/sys/resources", json=body, headers=auth_headers)
        assert resp.json()["language"] == "PHP"

    def test_bad_link_rejected(self, client, auth_headers):
        resp = client.post(f"{API}/sys/resources",
                           json={**NEW_RESOURCE, "resource_link": "ftp://x"}, headers=auth_headers)
        assert resp.status_code == 422

    def test_negative_price_rejected(self, client, auth_headers):
        resp = client.post(f"{API}/sys/resources", json={**NEW_RESOURCE, "price": -1},
                           headers=auth_headers)
        assert resp.status_code == 422

    def test_claims_uploaded_images(self, client, auth_headers):
        upload = client.put(f"{API}/sys/resources/images",
                            files=_image_parts(("a.png", PNG, "image/png")), headers=auth_headers)
        image = upload.json()["stored"][0]
        resp = client.post(f"{API}/sys/resources",
                           json={**NEW_RESOURCE, "image_ids": [image["generated_id"]]},
                           headers=auth_headers)
        assert resp.status_code == 201
        assert resp.json()["images"] == [image["stored_path"]]

    def test_cannot_claim_other_users_image(self, client, auth_headers, other_headers,
                                            db_session):
        upload = client.put(f"{API}/sys/resources/images",
                            files=_image_parts(("a.png", PNG, "image/png")), headers=auth_headers)
        image_id = upload.json()["stored"][0]["generated_id"]

        resp = client.post(f"{API}/sys/resources",
                           json={**NEW_RESOURCE, "image_ids": [image_id]}, headers=other_headers)
        assert resp.status_code == 400
        assert db_session.get(ResourceImage, image_id).resource_id is None

    def test_unknown_image_id_rejected(self, client, auth_headers):
        resp = client.post(f"{API}/sys/resources",
                           json={**NEW_RESOURCE, "image_ids": ["nope"]}, headers=auth_headers)
        assert resp.status_code == 400
        assert "nope" in resp.json()["error"]


class TestChangeLink:
    def test_change_link(self, client, auth_headers, test_resource):
        new = "https://mirror.example.com/tiny-cms.zip"
        resp = client.put(f"{API}/sys/resources/link",
                          json={"uuid": str(test_resource.id), "resource_link": new},
                          headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json() == {"uuid": str(test_resource.id), "resource_link": new}

        detail = client.get(f"{API}/index/resources/{test_resource.id}", headers=auth_headers)
        assert detail.json()["resource_link"] == new

    def test_unknown_resource(self, client, auth_headers):
        resp = client.put(f"{API}/sys/resources/link",
                          json={"uuid": str(uuid.uuid4()), "resource_link": "https://x.example.com/a"},
                          headers=auth_headers)
        assert resp.status_code == 404

    def test_non_owner_forbidden(self, client, other_headers, auth_headers, test_resource):
        resp = client.put(f"{API}/sys/resources/link",
                          json={"uuid": str(test_resource.id),
                                "resource_link": "https://evil.example.com/x.zip"},
                          headers=other_headers)
        assert resp.status_code == 403

        detail = client.get(f"{API}/index/resources/{test_resource.id}", headers=auth_headers)
        assert detail.json()["resource_link"] == "https://files.example.com/tiny-cms.zip"

    def test_admin_may_change(self, client, admin_headers, test_resource):
        new = "https://mirror.example.com/tiny-cms.zip"
        resp = client.put(f"{API}/sys/resources/link",
                          json={"uuid": str(test_resource.id), "resource_link": new},
                          headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json()["resource_link"] == new


# ── Description upload ──────────────────────────────────────────────


class TestDescriptionUpload:
    def _put(self, client, headers, name, data, ctype):
        return client.put(f"{API}/sys/resources/description",
                          files={"description": (name, io.BytesIO(data), ctype)}, headers=headers)

    def test_markdown_stored(self, client, auth_headers, upload_dirs):
        resp = self._put(client, auth_headers, "notes.md", b"# Notes\n", "text/markdown")
        assert resp.status_code == 200
        body = resp.json()
        assert body["stored_path"].endswith(f"{body['generated_id']}.md")
        stored = Path(body["stored_path"])
        assert stored.parent == upload_dirs["description"]
        assert stored.read_bytes() == b"# Notes\n"

    def test_txt_stored(self, client, auth_headers):
        resp = self._put(client, auth_headers, "README.TXT", b"hello", "text/plain")
        assert resp.status_code == 200
        assert resp.json()["stored_path"].endswith(".txt")

    def test_image_content_type_rejected(self, client, auth_headers, upload_dirs):
        resp = self._put(client, auth_headers, "photo.png", PNG, "image/png")
        assert resp.status_code == 400
        assert not upload_dirs["description"].exists()

    def test_wrong_extension_rejected(self, client, auth_headers):
        resp = self._put(client, auth_headers, "notes.html", b"<p>hi</p>", "text/html")
        assert resp.status_code == 400

    def test_no_extension_rejected(self, client, auth_headers):
        resp = self._put(client, auth_headers, "README", b"hello", "text/plain")
        assert resp.status_code == 400

    def test_binary_behind_text_type_rejected(self, client, auth_headers):
        resp = self._put(client, auth_headers, "notes.md", PNG, "text/markdown")
        assert resp.status_code == 400

    def test_missing_file(self, client, auth_headers):
        resp = client.put(f"{API}/sys/resources/description", headers=auth_headers)
        assert resp.status_code == 400
        assert resp.json()["error"] == "file not found in request"

    def test_same_name_twice_gets_distinct_paths(self, client, auth_headers):
        a = self._put(client, auth_headers, "notes.md", b"one", "text/markdown").json()
        b = self._put(client, auth_headers, "notes.md", b"two", "text/markdown").json()
        assert a["stored_path"] != b["stored_path"]
        assert Path(a["stored_path"]).read_bytes() == b"one"


# ── Screenshot upload ───────────────────────────────────────────────


class TestImageUpload:
    URL = f"{API}/sys/resources/images"

    def test_non_images_skipped(self, client, auth_headers, db_session, test_user, upload_dirs):
        parts = _image_parts(
            ("a.png", PNG, "image/png"),
            ("b.jpg", JPEG, "image/jpeg"),
            ("c.pdf", PDF, "application/pdf"),
        )
        resp = client.put(self.URL, files=parts, headers=auth_headers)
        assert resp.status_code == 200
        body = resp.json()
        assert len(body["stored"]) == 2
        assert body["failed"] == []
        assert sorted(p.suffix for p in upload_dirs["avatar"].iterdir()) == [".jpg", ".png"]

        rows = db_session.query(ResourceImage).all()
        assert {r.id for r in rows} == {s["generated_id"] for s in body["stored"]}
        assert all(r.uploaded_by == test_user.id and r.resource_id is None for r in rows)

    def test_pdf_declared_as_image_skipped(self, client, auth_headers):
        resp = client.put(self.URL, files=_image_parts(("x.png", PDF, "image/png")),
                          headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json() == {"stored": [], "failed": []}

    def test_missing_extension_stored_as_jpg(self, client, auth_headers):
        resp = client.put(self.URL, files=_image_parts(("shot", PNG, "image/png")),
                          headers=auth_headers)
        assert resp.json()["stored"][0]["stored_path"].endswith(".jpg")

    def test_repeated_filename_distinct_paths(self, client, auth_headers):
        parts = _image_parts(("same.png", PNG, "image/png"), ("same.png", PNG, "image/png"))
        stored = client.put(self.URL, files=parts, headers=auth_headers).json()["stored"]
        assert len({s["stored_path"] for s in stored}) == 2

    def test_no_parts_is_400(self, client, auth_headers):
        resp = client.put(self.URL, headers=auth_headers)
        assert resp.status_code == 400

    def test_one_copy_failure_reported_per_file(self, client, auth_headers):
        from resource_site import uploads

        real_copy = uploads._copy_atomic
        calls = []

        def flaky(src, dest, limit):
            calls.append(dest)
            if len(calls) == 1:
                raise OSError("disk full")
            return real_copy(src, dest, limit)

        parts = _image_parts(("a.png", PNG, "image/png"), ("b.png", PNG, "image/png"))
        with patch("resource_site.uploads._copy_atomic", side_effect=flaky):
            resp = client.put(self.URL, files=parts, headers=auth_headers)
        assert resp.status_code == 200
        body = resp.json()
        assert len(body["stored"]) == 1
        assert body["failed"][0]["filename"] == "a.png"
        assert "disk full" in body["failed"][0]["reason"]

    def test_all_copies_failing_is_500(self, client, auth_headers):
        with patch("resource_site.uploads._copy_atomic", side_effect=OSError("read-only")):
            resp = client.put(self.URL, files=_image_parts(("a.png", PNG, "image/png")),
                              headers=auth_headers)
        assert resp.status_code == 500
        assert len(resp.json()["failed"]) == 1

    def test_metadata_failure_removes_files(self, client, auth_headers, upload_dirs):
        with patch("resource_site.routers.sys_resources.resource_service.save_resource_image",
                   side_effect=OperationalError("INSERT", {}, Exception("locked"))):
            resp = client.put(self.URL, files=_image_parts(("a.png", PNG, "image/png")),
                              headers=auth_headers)
        assert resp.status_code == 500
        assert list(upload_dirs["avatar"].iterdir()) == []


# ── Screenshot delete ───────────────────────────────────────────────


class TestDeleteImage:
    def _upload(self, client, headers):
        resp = client.put(f"{API}/sys/resources/images",
                          files=_image_parts(("a.png", PNG, "image/png")), headers=headers)
        return resp.json()["stored"][0]

    def test_uploader_can_delete(self, client, auth_headers, db_session):
        image = self._upload(client, auth_headers)
        resp = client.delete(f"{API}/sys/resources/images/{image['generated_id']}",
                             headers=auth_headers)
        assert resp.status_code == 200
        assert not Path(image["stored_path"]).exists()
        assert db_session.get(ResourceImage, image["generated_id"]) is None

    def test_other_user_forbidden(self, client, auth_headers, other_headers):
        image = self._upload(client, auth_headers)
        resp = client.delete(f"{API}/sys/resources/images/{image['generated_id']}",
                             headers=other_headers)
        assert resp.status_code == 403
        assert Path(image["stored_path"]).exists()

    def test_admin_can_delete(self, client, auth_headers, admin_headers):
        image = self._upload(client, auth_headers)
        resp = client.delete(f"{API}/sys/resources/images/{image['generated_id']}",
                             headers=admin_headers)
        assert resp.status_code == 200

    def test_unknown_image(self, client, auth_headers):
        resp = client.delete(f"{API}/sys/resources/images/missing", headers=auth_headers)
        assert resp.status_code == 404
