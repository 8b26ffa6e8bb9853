from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from reportdesk.core.deps import require_roles
from reportdesk.db.session import get_db
from reportdesk.models.enums import Role
from reportdesk.models.user import User
from reportdesk.schemas.assignment import AssignmentCreate, AssignmentRead, SupervisorLoadRead
from reportdesk.schemas.user import UserSummary
from reportdesk.services import assignments as assignment_service

router = APIRouter(prefix="/api/assignments", tags=["assignments"])

_coordinator = require_roles(Role.LEVEL_COORDINATOR)


@router.get("", response_model=List[AssignmentRead])
def list_active_assignments(
    db: Session = Depends(get_db),
    current_user: User = Depends(_coordinator),
) -> List[AssignmentRead]:
    rows = assignment_service.list_active(db, level=current_user.level)
    return [AssignmentRead.model_validate(row) for row in rows]


@router.post("", response_model=AssignmentRead, status_code=status.HTTP_201_CREATED)
def assign_student(
    payload: AssignmentCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(_coordinator),
) -> AssignmentRead:
    assignment = assignment_service.assign(
        db,
        student_id=payload.student_id,
        supervisor_id=payload.supervisor_id,
        coordinator_id=current_user.id,
    )
    db.commit()
    db.refresh(assignment)
    return AssignmentRead.model_validate(assignment)


@router.post("/{assignment_id}/unassign", response_model=dict)
def unassign_student(
    assignment_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(_coordinator),
) -> dict:
    assignment_service.unassign(db, assignment_id=assignment_id, coordinator_id=current_user.id)
    db.commit()
    return {"assignment_id": assignment_id, "is_active": False}


@router.get("/history", response_model=List[AssignmentRead])
def assignment_history(
    db: Session = Depends(get_db),
    current_user: User = Depends(_coordinator),
) -> List[AssignmentRead]:
    rows = assignment_service.assignment_history(db, level=current_user.level)
    return [AssignmentRead.model_validate(row) for row in rows]


@router.get("/unassigned", response_model=List[UserSummary])
def unassigned_students(
    db: Session = Depends(get_db),
    current_user: User = Depends(_coordinator),
) -> List[UserSummary]:
    students = assignment_service.unassigned_students(db, level=current_user.level)
    return [UserSummary.model_validate(student) for student in students]


@router.get("/supervisors", response_model=List[SupervisorLoadRead])
def supervisor_loads(
    db: Session = Depends(get_db),
    _current_user: User = Depends(_coordinator),
) -> List[SupervisorLoadRead]:
    loads = assignment_service.supervisor_loads(db, active_only=True)
    return [SupervisorLoadRead.model_validate(load) for load in loads]
