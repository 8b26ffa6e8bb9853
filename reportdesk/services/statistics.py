"""Read-only aggregates backing the role dashboards.

Counts are point-in-time and computed per request. Month buckets are built
in Python so the queries stay portable between SQLite and PostgreSQL.
"""
from __future__ import annotations

import math
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, List, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from reportdesk.core.settings import settings
from reportdesk.models.assignment import StudentSupervisorAssignment
from reportdesk.models.audit import ActivityLog
from reportdesk.models.enums import ReportStatus, Role
from reportdesk.models.feedback import Feedback
from reportdesk.models.report import Report
from reportdesk.models.user import User
from reportdesk.schemas.assignment import SupervisorLoadRead
from reportdesk.schemas.stats import (
    AdminStats,
    CoordinatorStats,
    DepartmentStats,
    HodDashboardStats,
    MonthlyReports,
    MonthlyUserGrowth,
    SupervisorStats,
)
from reportdesk.services.assignments import supervisor_loads, supervisor_student_ids

MONTH_WINDOW = 6


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _month_keys(now: datetime, count: int = MONTH_WINDOW) -> List[str]:
    keys: List[str] = []
    year, month = now.year, now.month
    for _ in range(count):
        keys.append(f"{year:04d}-{month:02d}")
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(keys))


def _window_start(keys: List[str]) -> datetime:
    year, month = (int(part) for part in keys[0].split("-"))
    return datetime(year, month, 1, tzinfo=timezone.utc)


def _month_of(value: datetime) -> str:
    return value.strftime("%Y-%m")


def _status_breakdown(statuses: Iterable[ReportStatus]) -> Dict[str, int]:
    counts = Counter(statuses)
    return {status.value: counts.get(status, 0) for status in ReportStatus}


def _count_reports(db: Session, status: Optional[ReportStatus] = None) -> int:
    query = db.query(func.count(Report.id))
    if status is not None:
        query = query.filter(Report.status == status)
    return query.scalar() or 0


def _count_users(db: Session, role: Role, *, department: Optional[str] = None, level: Optional[str] = None) -> int:
    query = db.query(func.count(User.id)).filter(User.role == role)
    if department is not None:
        query = query.filter(User.department == department)
    if level is not None:
        query = query.filter(User.level == level)
    return query.scalar() or 0


def admin_overview(db: Session) -> AdminStats:
    now = _now()
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)

    role_counts = dict(db.query(User.role, func.count(User.id)).group_by(User.role).all())
    users_by_role = {role.value: role_counts.get(role, 0) for role in Role}

    active_users_today = (
        db.query(func.count(func.distinct(ActivityLog.actor_user_id)))
        .filter(ActivityLog.created_at >= start_of_day, ActivityLog.actor_user_id.is_not(None))
        .scalar()
        or 0
    )
    activities_today = (
        db.query(func.count(ActivityLog.id)).filter(ActivityLog.created_at >= start_of_day).scalar() or 0
    )

    users_by_department = {
        department: count
        for department, count in db.query(User.department, func.count(User.id))
        .filter(User.department.is_not(None))
        .group_by(User.department)
        .all()
    }
    report_statuses = [status for (status,) in db.query(Report.status).all()]

    keys = _month_keys(now)
    growth = {key: Counter() for key in keys}
    for created_at, role in db.query(User.created_at, User.role).filter(User.created_at >= _window_start(keys)).all():
        bucket = growth.get(_month_of(created_at))
        if bucket is not None:
            bucket[role] += 1
    user_growth = [
        MonthlyUserGrowth(
            month=key,
            user_count=sum(growth[key].values()),
            students=growth[key][Role.STUDENT],
            supervisors=growth[key][Role.SUPERVISOR],
            coordinators=growth[key][Role.LEVEL_COORDINATOR],
        )
        for key in keys
    ]

    return AdminStats(
        users_by_role=users_by_role,
        total_users=sum(users_by_role.values()),
        total_reports=len(report_statuses),
        active_users_today=active_users_today,
        activities_today=activities_today,
        users_by_department=users_by_department,
        reports_by_status=_status_breakdown(report_statuses),
        user_growth=user_growth,
    )


def available_supervisors(total_supervisors: int, total_students: int, capacity: int | None = None) -> int:
    """Supervisors left over once every student has a seat at ``capacity`` per supervisor."""
    capacity = capacity or settings.supervisor_capacity
    return max(0, total_supervisors - math.ceil(total_students / capacity))


def hod_dashboard(db: Session) -> HodDashboardStats:
    now = _now()
    total_students = _count_users(db, Role.STUDENT)
    total_supervisors = _count_users(db, Role.SUPERVISOR)

    keys = _month_keys(now)
    monthly = {key: [0, 0] for key in keys}
    for submitted_at, status in db.query(Report.submitted_at, Report.status).filter(
        Report.submitted_at >= _window_start(keys)
    ):
        bucket = monthly.get(_month_of(submitted_at))
        if bucket is None:
            continue
        bucket[0] += 1
        if status == ReportStatus.APPROVED:
            bucket[1] += 1

    students_by_department = {
        department or "Unassigned": count
        for department, count in db.query(User.department, func.count(User.id))
        .filter(User.role == Role.STUDENT)
        .group_by(User.department)
        .all()
    }

    return HodDashboardStats(
        total_students=total_students,
        total_supervisors=total_supervisors,
        total_reports=_count_reports(db),
        approved_reports=_count_reports(db, ReportStatus.APPROVED),
        pending_reports=_count_reports(db, ReportStatus.PENDING),
        rejected_reports=_count_reports(db, ReportStatus.REJECTED),
        reports_this_month=monthly[keys[-1]][0],
        available_supervisors=available_supervisors(total_supervisors, total_students),
        monthly_reports=[
            MonthlyReports(month=key, total_reports=monthly[key][0], approved_reports=monthly[key][1])
            for key in keys
        ],
        students_by_department=students_by_department,
    )


def department_statistics(db: Session, department: Optional[str]) -> DepartmentStats:
    students = db.query(User.level).filter(User.role == Role.STUDENT, User.department == department).all()
    statuses = [
        status
        for (status,) in db.query(Report.status)
        .join(User, Report.student_id == User.id)
        .filter(User.department == department)
        .all()
    ]
    loads = [load for load in supervisor_loads(db) if load.supervisor.department == department]

    return DepartmentStats(
        department=department,
        total_students=len(students),
        total_supervisors=len(loads),
        total_reports=len(statuses),
        status_breakdown=_status_breakdown(statuses),
        students_by_level=dict(Counter(level or "Unassigned" for (level,) in students)),
        supervisor_stats=[SupervisorLoadRead.model_validate(load) for load in loads],
    )


def coordinator_overview(db: Session, level: Optional[str]) -> CoordinatorStats:
    student_ids = [
        student_id
        for (student_id,) in db.query(User.id).filter(User.role == Role.STUDENT, User.level == level).all()
    ]
    assigned = 0
    if student_ids:
        assigned = (
            db.query(func.count(func.distinct(StudentSupervisorAssignment.student_id)))
            .filter(
                StudentSupervisorAssignment.is_active.is_(True),
                StudentSupervisorAssignment.student_id.in_(student_ids),
            )
            .scalar()
            or 0
        )

    loads = supervisor_loads(db, active_only=True)
    total_load = sum(load.assigned_students for load in loads)

    active_students = 0
    if student_ids:
        active_students = (
            db.query(func.count(func.distinct(Report.student_id)))
            .filter(Report.submitted_at >= _now() - timedelta(days=30), Report.student_id.in_(student_ids))
            .scalar()
            or 0
        )

    return CoordinatorStats(
        level=level,
        total_students=len(student_ids),
        assigned_students=assigned,
        unassigned_students=len(student_ids) - assigned,
        total_supervisors=len(loads),
        total_capacity=sum(load.capacity for load in loads),
        available_capacity=sum(load.available_slots for load in loads),
        average_load=round(total_load / len(loads), 2) if loads else 0.0,
        fully_booked_supervisors=sum(1 for load in loads if load.is_full),
        active_students_30d=active_students,
    )


def supervisor_overview(db: Session, supervisor_id: int) -> SupervisorStats:
    total_students = len(supervisor_student_ids(db, supervisor_id, active_only=False))
    statuses = [status for (status,) in db.query(Report.status).filter(Report.supervisor_id == supervisor_id).all()]
    breakdown = _status_breakdown(statuses)
    feedback_given = (
        db.query(func.count(func.distinct(Feedback.report_id)))
        .filter(Feedback.supervisor_id == supervisor_id)
        .scalar()
        or 0
    )
    return SupervisorStats(
        total_students=total_students,
        total_reports=len(statuses),
        pending_reports=breakdown[ReportStatus.PENDING.value],
        approved_reports=breakdown[ReportStatus.APPROVED.value],
        rejected_reports=breakdown[ReportStatus.REJECTED.value],
        feedback_given=feedback_given,
    )
