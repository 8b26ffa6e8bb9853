from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from reportdesk.core.deps import require_roles
from reportdesk.db.session import get_db
from reportdesk.models.enums import Role
from reportdesk.models.user import User
from reportdesk.schemas.report import ReportRead, StudentProgressRead
from reportdesk.schemas.stats import (
    AdminStats,
    CoordinatorStats,
    DepartmentStats,
    HodDashboardStats,
    StudentDashboard,
    SupervisorStats,
)
from reportdesk.schemas.user import UserSummary
from reportdesk.services import reports as report_service
from reportdesk.services import statistics
from reportdesk.services.assignments import get_active_assignment

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])

RECENT_REPORTS = 5


@router.get("/admin", response_model=AdminStats)
def admin_dashboard(
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_roles(Role.ADMIN)),
) -> AdminStats:
    return statistics.admin_overview(db)


@router.get("/hod", response_model=HodDashboardStats)
def hod_dashboard(
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_roles(Role.HOD)),
) -> HodDashboardStats:
    return statistics.hod_dashboard(db)


@router.get("/hod/statistics", response_model=DepartmentStats)
def hod_statistics(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(Role.HOD)),
) -> DepartmentStats:
    return statistics.department_statistics(db, current_user.department)


@router.get("/coordinator", response_model=CoordinatorStats)
def coordinator_dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(Role.LEVEL_COORDINATOR)),
) -> CoordinatorStats:
    return statistics.coordinator_overview(db, current_user.level)


@router.get("/supervisor", response_model=SupervisorStats)
def supervisor_dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(Role.SUPERVISOR)),
) -> SupervisorStats:
    return statistics.supervisor_overview(db, current_user.id)


@router.get("/student", response_model=StudentDashboard)
def student_dashboard(
    db: Session = Depends(get_db),
    current_user: User = Depends(require_roles(Role.STUDENT)),
) -> StudentDashboard:
    assignment = get_active_assignment(db, current_user.id)
    progress = report_service.student_progress(db, current_user.id)
    recent = report_service.list_for_student(db, current_user.id)[:RECENT_REPORTS]
    return StudentDashboard(
        supervisor=UserSummary.model_validate(assignment.supervisor) if assignment else None,
        progress=StudentProgressRead.model_validate(progress),
        recent_reports=[ReportRead.model_validate(row) for row in recent],
    )
