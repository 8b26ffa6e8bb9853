from __future__ import annotations

from datetime import datetime
from typing import Optional

from reportdesk.schemas.base import ORMModel
from reportdesk.schemas.user import UserSummary


class AssignmentCreate(ORMModel):
    student_id: int
    supervisor_id: int


class AssignmentRead(ORMModel):
    id: int
    student_id: int
    supervisor_id: int
    level_coordinator_id: int
    is_active: bool
    created_at: datetime
    student: Optional[UserSummary] = None
    supervisor: Optional[UserSummary] = None


class SupervisorLoadRead(ORMModel):
    supervisor: UserSummary
    assigned_students: int
    capacity: int
    available_slots: int
    is_full: bool
