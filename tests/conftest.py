# tests/conftest.py

from __future__ import annotations

import os

# Settings are read at import time; keep the suite off the dev database and
# away from the per-client rate limit.
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("AUTO_CREATE_DB", "false")
os.environ.setdefault("RATE_LIMIT", "100000/minute")
os.environ.setdefault("TZ_DEFAULT", "Europe/Istanbul")
os.environ.setdefault("CORPORATE_EMAIL_DOMAIN", "@netmon.com.tr")
os.environ.setdefault("FRONTEND_DIST", "does-not-exist")

from typing import Callable, Dict, Iterator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from fieldservice.auth.security import create_access_token
from fieldservice.db import Base, get_db
from fieldservice.main import app
from fieldservice.models.models import User, utcnow


@pytest.fixture()
def engine():
    """Fresh in-memory SQLite database per test, shared across connections."""
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=eng)
    yield eng
    Base.metadata.drop_all(bind=eng)
    eng.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)


@pytest.fixture()
def db(session_factory) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory) -> Iterator[TestClient]:
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_db, None)


@pytest.fixture()
def make_user(db: Session) -> Callable[..., User]:
    def _make(user_id: str, email: str, role: str = "technician", first_name: str = "", last_name: str = "") -> User:
        now = utcnow()
        user = User(
            id=user_id,
            email=email,
            first_name=first_name or user_id.title(),
            last_name=last_name or "Test",
            role=role,
            created_at=now,
            updated_at=now,
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture()
def admin(make_user) -> User:
    return make_user("admin-1", "admin@netmon.com.tr", role="admin", first_name="Ayse")


@pytest.fixture()
def tech1(make_user) -> User:
    return make_user("tech-1", "ali@netmon.com.tr", first_name="Ali")


@pytest.fixture()
def tech2(make_user) -> User:
    return make_user("tech-2", "mehmet@netmon.com.tr", first_name="Mehmet")


@pytest.fixture()
def outsider(make_user) -> User:
    # Admin role on paper, but not on the corporate domain
    return make_user("outsider-1", "someone@gmail.com", role="admin", first_name="Zed")


def auth_headers(user: User) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture()
def headers() -> Callable[[User], Dict[str, str]]:
    return auth_headers


@pytest.fixture()
def create_task(client: TestClient, admin: User):
    """Create a task through the API as the admin and return its JSON."""

    def _create(**fields) -> dict:
        body = {"title": "Task", "location": "Istanbul"}
        body.update(fields)
        resp = client.post("/api/field-tasks", json=body, headers=auth_headers(admin))
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create


REPORT_BODY = {
    "location": "Kadikoy, Istanbul",
    "vehiclePlate": "34 ABC 123",
    "operationType": "Fiber splice",
    "customerName": "Moda Residence",
    "customerPhone": "+90 216 555 0101",
    "details": "Closure replaced",
    "photos": ["photos/a.jpg", "photos/b.jpg"],
    "reportDate": "2024-05-01T10:00:00Z",
    "reportTime": "10:45",
}


@pytest.fixture()
def report_body() -> dict:
    return dict(REPORT_BODY)
