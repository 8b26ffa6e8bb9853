from __future__ import annotations

import io
from typing import Callable

import pytest
from fastapi import HTTPException
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import reportdesk.models  # noqa: F401
from reportdesk.core.deps import get_current_user
from reportdesk.core.settings import settings
from reportdesk.db.base import Base
from reportdesk.db.session import get_db
from reportdesk.main import app
from reportdesk.models.enums import Role
from reportdesk.models.user import User
from reportdesk.services import notifications, storage
from reportdesk.services.reports import UploadedFile


@pytest.fixture()
def db():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest.fixture(autouse=True)
def uploads_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "uploads_dir", str(path))
    return path


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    outbox = []

    def _capture(notification):
        outbox.append(notification)
        return True

    monkeypatch.setattr(notifications, "deliver", _capture)
    return outbox


@pytest.fixture()
def make_user(db) -> Callable[..., User]:
    counter = {"n": 0}

    def _make(role: Role, **overrides) -> User:
        counter["n"] += 1
        values = {
            "email": f"{role.value}{counter['n']}@example.com",
            "hashed_password": "not-used",
            "full_name": f"{role.value.replace('_', ' ').title()} {counter['n']}",
            "role": role,
            "department": "Computer Science",
            "level": "400",
            "is_active": True,
        }
        values.update(overrides)
        user = User(**values)
        db.add(user)
        db.flush()
        return user

    return _make


@pytest.fixture()
def student(make_user):
    return make_user(Role.STUDENT, full_name="Ada Student", registration_number="CS/2020/001")


@pytest.fixture()
def supervisor(make_user):
    return make_user(Role.SUPERVISOR, full_name="Sam Supervisor")


@pytest.fixture()
def coordinator(make_user):
    return make_user(Role.LEVEL_COORDINATOR, full_name="Cora Coordinator")


@pytest.fixture()
def hod(make_user):
    return make_user(Role.HOD, full_name="Hana Head")


@pytest.fixture()
def admin(make_user):
    return make_user(Role.ADMIN, full_name="Alex Admin")


@pytest.fixture()
def make_upload() -> Callable[..., UploadedFile]:
    def _make(name: str = "Proposal.pdf", data: bytes = b"%PDF-1.4 report body") -> UploadedFile:
        temp_path = storage.save_temp_upload(io.BytesIO(data), name)
        return UploadedFile(temp_path=temp_path, original_name=name, size=len(data))

    return _make


@pytest.fixture()
def client(db):
    acting = {"user": None}

    def override_get_db():
        try:
            yield db
        finally:
            pass

    def override_get_current_user():
        if acting["user"] is None:
            raise HTTPException(status_code=401, detail="Not authenticated")
        return acting["user"]

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user

    client_instance = TestClient(app)

    def act_as(user: User | None) -> TestClient:
        acting["user"] = user
        return client_instance

    client_instance.act_as = act_as
    try:
        yield client_instance
    finally:
        client_instance.close()
        app.dependency_overrides.clear()
