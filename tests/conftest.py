"""
conftest.py — Shared Test Fixtures for the Resource WebSite API

Provides an in-memory SQLite database, a FastAPI TestClient wired to it,
per-test upload directories, and factory fixtures for users, resources
and bearer tokens.

Business Rules:
- All tests run against an isolated in-memory DB
- Uploads land in pytest's tmp_path, never in the real asset directories
- Tokens are issued by the real TokenService, so the auth gate is exercised
- Rate limiting is off unless a test turns it on

Called by: all test files via pytest autodiscovery
Depends on: resource_site.models (Base), resource_site.database (get_db), resource_site.tokens
"""

import os
os.environ["TESTING"] = "1"  # Must be set before importing app modules
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["DATABASE_URL"] = "sqlite://"

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from resource_site.config import settings
from resource_site.models import Base, SysResource, User
from resource_site.services.user_service import hash_password
from resource_site.tokens import TokenService

API = settings.api_prefix
PASSWORD = "s3cret-pass"

# ── In-memory SQLite engine ──────────────────────────────────────────

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@event.listens_for(engine, "connect")
def _enable_fk(dbapi_conn, _):
    """SQLite ignores FKs by default."""
    dbapi_conn.execute("PRAGMA foreign_keys=ON")


# ── Fixtures ─────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def db_session():
    """Create all tables, yield a session, then tear down."""
    Base.metadata.create_all(bind=engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def upload_dirs(tmp_path, monkeypatch):
    """Point both upload directories at a per-test tmp dir."""
    description_dir = tmp_path / "description"
    avatar_dir = tmp_path / "avatar"
    monkeypatch.setattr(settings, "description_dir", str(description_dir))
    monkeypatch.setattr(settings, "avatar_dir", str(avatar_dir))
    return {"description": description_dir, "avatar": avatar_dir}


@pytest.fixture()
def tokens() -> TokenService:
    return TokenService()


def _make_user(db: Session, username: str, role: int | None = None) -> User:
    user = User(
        username=username,
        email=f"{username}@example.com",
        password_hash=hash_password(PASSWORD),
        nickname=username.title(),
        role=role,
        created_at=datetime.now(timezone.utc),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture()
def test_user(db_session: Session) -> User:
    """A regular user."""
    return _make_user(db_session, "alice")


@pytest.fixture()
def other_user(db_session: Session) -> User:
    """A second regular user, for cross-account checks."""
    return _make_user(db_session, "bob")


@pytest.fixture()
def admin_user(db_session: Session) -> User:
    """A user holding the admin role."""
    return _make_user(db_session, "root", role=settings.admin_role)


@pytest.fixture()
def auth_headers(test_user: User, tokens: TokenService) -> dict:
    return {"Authorization": f"Bearer {tokens.issue(test_user.id)}"}


@pytest.fixture()
def other_headers(other_user: User, tokens: TokenService) -> dict:
    return {"Authorization": f"Bearer {tokens.issue(other_user.id)}"}


@pytest.fixture()
def admin_headers(admin_user: User, tokens: TokenService) -> dict:
    return {"Authorization": f"Bearer {tokens.issue(admin_user.id, admin_user.role)}"}


@pytest.fixture()
def test_resource(db_session: Session, test_user: User) -> SysResource:
    """A PHP CMS package owned by test_user."""
    r = SysResource(
        title="Tiny CMS",
        description="A small CMS",
        category="cms",
        language="PHP",
        price=30,
        resource_link="https://files.example.com/tiny-cms.zip",
        owner_id=test_user.id,
        created_at=datetime.now(timezone.utc),
    )
    db_session.add(r)
    db_session.commit()
    db_session.refresh(r)
    return r


@pytest.fixture()
def client(db_session: Session) -> TestClient:
    """FastAPI TestClient using the test session for every request."""
    from resource_site.database import get_db
    from resource_site.main import app

    def _override_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()
