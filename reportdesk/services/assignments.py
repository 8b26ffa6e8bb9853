"""Student to supervisor assignment management.

A student has at most one active assignment. Reassignment deactivates the
previous row and inserts a new one inside the caller's transaction; the
partial unique index on ``student_id`` rejects a concurrent second insert.
Assignment rows are never deleted.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, aliased, joinedload

from reportdesk.core.errors import AssignmentConflict, NotFoundOrUnauthorized, ValidationError
from reportdesk.core.settings import settings
from reportdesk.models.assignment import StudentSupervisorAssignment
from reportdesk.models.enums import Role
from reportdesk.models.user import User
from reportdesk.services.activity import log_activity

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 50


@dataclass
class SupervisorLoad:
    supervisor: User
    assigned_students: int
    capacity: int

    @property
    def available_slots(self) -> int:
        return max(0, self.capacity - self.assigned_students)

    @property
    def is_full(self) -> bool:
        return self.assigned_students >= self.capacity


def _get_user_with_role(db: Session, user_id: int, role: Role) -> Optional[User]:
    user = db.get(User, user_id)
    if not user or user.role != role:
        return None
    return user


def get_active_assignment(db: Session, student_id: int) -> Optional[StudentSupervisorAssignment]:
    return (
        db.query(StudentSupervisorAssignment)
        .filter(
            StudentSupervisorAssignment.student_id == student_id,
            StudentSupervisorAssignment.is_active.is_(True),
        )
        .first()
    )


def assign(db: Session, *, student_id: int, supervisor_id: int, coordinator_id: int) -> StudentSupervisorAssignment:
    """Make ``supervisor_id`` the student's only active supervisor.

    No capacity check is applied; the per-supervisor capacity is advisory.
    The caller commits.
    """
    if not _get_user_with_role(db, student_id, Role.STUDENT):
        raise ValidationError("Student not found")
    supervisor = _get_user_with_role(db, supervisor_id, Role.SUPERVISOR)
    if not supervisor or not supervisor.is_active:
        raise ValidationError("Supervisor not found or inactive")

    try:
        previous = (
            db.query(StudentSupervisorAssignment)
            .filter(
                StudentSupervisorAssignment.student_id == student_id,
                StudentSupervisorAssignment.is_active.is_(True),
            )
            .with_for_update()
            .all()
        )
        for row in previous:
            row.is_active = False
        # Deactivation must reach the database before the insert or the unique index fires.
        db.flush()

        assignment = StudentSupervisorAssignment(
            student_id=student_id,
            supervisor_id=supervisor_id,
            level_coordinator_id=coordinator_id,
            is_active=True,
        )
        db.add(assignment)
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("Concurrent assignment detected", extra={"student_id": student_id})
        raise AssignmentConflict() from exc

    log_activity(
        db,
        actor_user_id=coordinator_id,
        action="Assigned Student to Supervisor",
        resource_type="assignment",
        resource_id=student_id,
        payload={
            "supervisor_id": supervisor_id,
            "assignment_id": assignment.id,
            "replaced_assignment_ids": [row.id for row in previous],
        },
    )
    return assignment


def unassign(db: Session, *, assignment_id: int, coordinator_id: int) -> None:
    """Deactivate an assignment created by ``coordinator_id``.

    Ownership is checked by the update itself: zero affected rows means the
    assignment does not exist or belongs to another coordinator.
    """
    affected = (
        db.query(StudentSupervisorAssignment)
        .filter(
            StudentSupervisorAssignment.id == assignment_id,
            StudentSupervisorAssignment.level_coordinator_id == coordinator_id,
        )
        .update({StudentSupervisorAssignment.is_active: False}, synchronize_session="fetch")
    )
    if affected == 0:
        raise NotFoundOrUnauthorized("Assignment not found or unauthorized")

    log_activity(
        db,
        actor_user_id=coordinator_id,
        action="Unassigned Student from Supervisor",
        resource_type="assignment",
        resource_id=assignment_id,
    )


def list_active(db: Session, level: Optional[str] = None) -> List[StudentSupervisorAssignment]:
    student = aliased(User)
    query = (
        db.query(StudentSupervisorAssignment)
        .join(student, StudentSupervisorAssignment.student_id == student.id)
        .options(
            joinedload(StudentSupervisorAssignment.student),
            joinedload(StudentSupervisorAssignment.supervisor),
        )
        .filter(StudentSupervisorAssignment.is_active.is_(True))
    )
    if level is not None:
        query = query.filter(student.level == level)
    return query.order_by(student.full_name.asc()).all()


def assignment_history(db: Session, level: Optional[str] = None, limit: int = HISTORY_LIMIT) -> List[StudentSupervisorAssignment]:
    student = aliased(User)
    query = (
        db.query(StudentSupervisorAssignment)
        .join(student, StudentSupervisorAssignment.student_id == student.id)
        .options(
            joinedload(StudentSupervisorAssignment.student),
            joinedload(StudentSupervisorAssignment.supervisor),
            joinedload(StudentSupervisorAssignment.coordinator),
        )
    )
    if level is not None:
        query = query.filter(student.level == level)
    return (
        query.order_by(StudentSupervisorAssignment.created_at.desc(), StudentSupervisorAssignment.id.desc())
        .limit(limit)
        .all()
    )


def unassigned_students(db: Session, level: Optional[str] = None) -> List[User]:
    active_ids = select(StudentSupervisorAssignment.student_id).where(StudentSupervisorAssignment.is_active.is_(True))
    query = db.query(User).filter(User.role == Role.STUDENT, User.id.not_in(active_ids))
    if level is not None:
        query = query.filter(User.level == level)
    return query.order_by(User.full_name.asc()).all()


def supervisor_loads(db: Session, *, active_only: bool = False) -> List[SupervisorLoad]:
    query = (
        db.query(User, func.count(StudentSupervisorAssignment.id))
        .outerjoin(
            StudentSupervisorAssignment,
            (StudentSupervisorAssignment.supervisor_id == User.id)
            & StudentSupervisorAssignment.is_active.is_(True),
        )
        .filter(User.role == Role.SUPERVISOR)
    )
    if active_only:
        query = query.filter(User.is_active.is_(True))
    rows = query.group_by(User.id).order_by(User.full_name.asc()).all()
    return [
        SupervisorLoad(supervisor=user, assigned_students=count or 0, capacity=settings.supervisor_capacity)
        for user, count in rows
    ]


def supervisor_student_ids(db: Session, supervisor_id: int, *, active_only: bool = True) -> List[int]:
    query = db.query(StudentSupervisorAssignment.student_id).filter(
        StudentSupervisorAssignment.supervisor_id == supervisor_id
    )
    if active_only:
        query = query.filter(StudentSupervisorAssignment.is_active.is_(True))
    return [student_id for (student_id,) in query.distinct().all()]
