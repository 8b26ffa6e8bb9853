from __future__ import annotations

from typing import Dict, List, Optional

from reportdesk.schemas.assignment import SupervisorLoadRead
from reportdesk.schemas.base import ORMModel
from reportdesk.schemas.report import ReportRead, StudentProgressRead
from reportdesk.schemas.user import UserSummary


class MonthlyUserGrowth(ORMModel):
    month: str
    user_count: int
    students: int
    supervisors: int
    coordinators: int


class MonthlyReports(ORMModel):
    month: str
    total_reports: int
    approved_reports: int


class AdminStats(ORMModel):
    users_by_role: Dict[str, int]
    total_users: int
    total_reports: int
    active_users_today: int
    activities_today: int
    users_by_department: Dict[str, int]
    reports_by_status: Dict[str, int]
    user_growth: List[MonthlyUserGrowth]


class HodDashboardStats(ORMModel):
    total_students: int
    total_supervisors: int
    total_reports: int
    approved_reports: int
    pending_reports: int
    rejected_reports: int
    reports_this_month: int
    available_supervisors: int
    monthly_reports: List[MonthlyReports]
    students_by_department: Dict[str, int]


class DepartmentStats(ORMModel):
    department: Optional[str] = None
    total_students: int
    total_supervisors: int
    total_reports: int
    status_breakdown: Dict[str, int]
    students_by_level: Dict[str, int]
    supervisor_stats: List[SupervisorLoadRead]


class CoordinatorStats(ORMModel):
    level: Optional[str] = None
    total_students: int
    assigned_students: int
    unassigned_students: int
    total_supervisors: int
    total_capacity: int
    available_capacity: int
    average_load: float
    fully_booked_supervisors: int
    active_students_30d: int


class SupervisorStats(ORMModel):
    total_students: int
    total_reports: int
    pending_reports: int
    approved_reports: int
    rejected_reports: int
    feedback_given: int


class StudentDashboard(ORMModel):
    supervisor: Optional[UserSummary] = None
    progress: StudentProgressRead
    recent_reports: List[ReportRead]
