from __future__ import annotations

import enum


class Role(str, enum.Enum):
    STUDENT = "student"
    SUPERVISOR = "supervisor"
    LEVEL_COORDINATOR = "level_coordinator"
    HOD = "hod"
    ADMIN = "admin"


class ReportStage(str, enum.Enum):
    PROGRESS_1 = "progress_1"
    PROGRESS_2 = "progress_2"
    PROGRESS_3 = "progress_3"
    FINAL = "final"


class ReportStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    FEEDBACK_GIVEN = "feedback_given"


STAGE_ORDER: tuple[ReportStage, ...] = (
    ReportStage.PROGRESS_1,
    ReportStage.PROGRESS_2,
    ReportStage.PROGRESS_3,
    ReportStage.FINAL,
)

REUPLOADABLE_STATUSES = frozenset({ReportStatus.FEEDBACK_GIVEN, ReportStatus.REJECTED})
