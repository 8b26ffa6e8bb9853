from __future__ import annotations

import argparse

from sqlalchemy.orm import Session

from reportdesk.core.security import get_password_hash
from reportdesk.core.settings import settings
from reportdesk.db.base import Base
from reportdesk.db.session import SessionLocal, engine
from reportdesk.models.enums import Role
from reportdesk.models.user import User
from reportdesk.services import assignments as assignment_service

DEMO_PASSWORD = "password"
DEPARTMENT = "Computer Science"


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Seed the ReportDesk database with demo accounts")
    parser.add_argument("--reset", action="store_true", help="Drop and recreate all tables before seeding")
    return parser.parse_args()


def reset_db() -> None:
    if settings.is_production:
        raise RuntimeError("Refusing to reset the database in production.")
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)


def get_or_create_user(
    db: Session,
    *,
    email: str,
    role: Role,
    full_name: str,
    level: str | None = None,
    registration_number: str | None = None,
) -> User:
    user = db.query(User).filter(User.email == email).first()
    if user:
        return user
    user = User(
        email=email,
        hashed_password=get_password_hash(DEMO_PASSWORD),
        role=role,
        full_name=full_name,
        department=DEPARTMENT,
        level=level,
        registration_number=registration_number,
        is_active=True,
    )
    db.add(user)
    db.flush()
    return user


def main() -> None:
    args = parse_args()
    if args.reset:
        reset_db()
    else:
        Base.metadata.create_all(bind=engine)

    with SessionLocal() as db:
        if db.query(User).filter(User.email == "admin@reportdesk.local").first() and not args.reset:
            print("Seed appears to have already run. Use --reset to reseed.")
            return

        get_or_create_user(db, email="admin@reportdesk.local", role=Role.ADMIN, full_name="Admin")
        get_or_create_user(db, email="hod@reportdesk.local", role=Role.HOD, full_name="Head of Department")
        coordinator = get_or_create_user(
            db,
            email="coordinator@reportdesk.local",
            role=Role.LEVEL_COORDINATOR,
            full_name="Level Coordinator",
            level="400",
        )
        supervisor = get_or_create_user(
            db,
            email="supervisor@reportdesk.local",
            role=Role.SUPERVISOR,
            full_name="Project Supervisor",
        )
        student = get_or_create_user(
            db,
            email="student@reportdesk.local",
            role=Role.STUDENT,
            full_name="Demo Student",
            level="400",
            registration_number="CSC/2021/001",
        )
        if assignment_service.get_active_assignment(db, student.id) is None:
            assignment_service.assign(
                db,
                student_id=student.id,
                supervisor_id=supervisor.id,
                coordinator_id=coordinator.id,
            )

        db.commit()
        print("Seed complete.")
        print(f"Logins: <role>@reportdesk.local / {DEMO_PASSWORD}")


if __name__ == "__main__":
    main()
