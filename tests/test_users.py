from __future__ import annotations

import pytest
from sqlalchemy import event
from sqlalchemy.orm import sessionmaker

import reportdesk.models  # noqa: F401
from reportdesk.core.errors import ValidationError
from reportdesk.db.base import Base
from reportdesk.db.session import build_engine
from reportdesk.models.assignment import StudentSupervisorAssignment
from reportdesk.models.audit import ActivityLog
from reportdesk.models.enums import Role
from reportdesk.models.user import User
from reportdesk.services import users
from reportdesk.services.activity import log_activity


def _session_for(engine):
    Base.metadata.create_all(bind=engine)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)()


def _add_user(db, role: Role, email: str) -> User:
    user = User(
        email=email,
        hashed_password="not-used",
        full_name=email.split("@")[0].title(),
        role=role,
        department="Computer Science",
        level="400",
        is_active=True,
    )
    db.add(user)
    db.flush()
    return user


@pytest.fixture()
def file_engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'reportdesk.db'}")
    yield engine
    engine.dispose()


@pytest.fixture()
def strict_engine(file_engine):
    @event.listens_for(file_engine, "connect")
    def _foreign_keys_on(dbapi_connection, _record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    return file_engine


def test_delete_user_after_login(file_engine):
    db = _session_for(file_engine)
    admin = _add_user(db, Role.ADMIN, "admin@example.com")
    student = _add_user(db, Role.STUDENT, "ada@example.com")
    supervisor = _add_user(db, Role.SUPERVISOR, "sam@example.com")
    log_activity(db, actor_user_id=student.id, action="login", resource_type="user", resource_id=student.id)
    db.add(
        StudentSupervisorAssignment(
            student_id=student.id, supervisor_id=supervisor.id, level_coordinator_id=admin.id, is_active=True
        )
    )
    db.commit()
    student_id = student.id

    users.delete_user(db, student_id, actor=admin)
    db.commit()
    db.expire_all()

    assert db.get(User, student_id) is None
    login = db.query(ActivityLog).filter(ActivityLog.action == "login").one()
    assert login.resource_id == student_id
    assignment = db.query(StudentSupervisorAssignment).one()
    assert assignment.student_id == student_id
    assert db.query(ActivityLog).filter(ActivityLog.action == "Deleted User").count() == 1
    db.close()


def test_delete_user_with_enforced_foreign_keys(strict_engine):
    db = _session_for(strict_engine)
    admin = _add_user(db, Role.ADMIN, "admin@example.com")
    student = _add_user(db, Role.STUDENT, "ada@example.com")
    log_activity(db, actor_user_id=student.id, action="login", resource_type="user", resource_id=student.id)
    db.commit()
    student_id = student.id

    users.delete_user(db, student_id, actor=admin)
    db.commit()
    db.expire_all()

    assert db.get(User, student_id) is None
    login = db.query(ActivityLog).filter(ActivityLog.action == "login").one()
    assert login.actor_user_id is None
    assert login.resource_id == student_id
    db.close()


def test_delete_referenced_user_with_enforced_foreign_keys(strict_engine):
    db = _session_for(strict_engine)
    admin = _add_user(db, Role.ADMIN, "admin@example.com")
    student = _add_user(db, Role.STUDENT, "ada@example.com")
    supervisor = _add_user(db, Role.SUPERVISOR, "sam@example.com")
    db.add(
        StudentSupervisorAssignment(
            student_id=student.id, supervisor_id=supervisor.id, level_coordinator_id=admin.id, is_active=True
        )
    )
    db.commit()
    supervisor_id = supervisor.id

    with pytest.raises(ValidationError):
        users.delete_user(db, supervisor_id, actor=admin)

    assert db.get(User, supervisor_id) is not None
    db.close()


def test_delete_own_account_refused(db, admin):
    with pytest.raises(ValidationError):
        users.delete_user(db, admin.id, actor=admin)
