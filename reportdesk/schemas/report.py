from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from reportdesk.models.enums import ReportStage, ReportStatus
from reportdesk.schemas.base import ORMModel
from reportdesk.schemas.feedback import FeedbackRead, HodFeedbackRead
from reportdesk.schemas.user import UserSummary


class ReportRead(ORMModel):
    id: int
    student_id: int
    supervisor_id: int
    title: str
    report_stage: ReportStage
    file_url: str
    file_name: str
    file_size: int
    version: int
    status: ReportStatus
    submitted_at: datetime
    updated_at: datetime


class ReportListItem(ReportRead):
    student: Optional[UserSummary] = None
    feedback_count: int = 0
    hod_feedback_count: int = 0


class ReportWithPeople(ReportRead):
    student: Optional[UserSummary] = None
    supervisor: Optional[UserSummary] = None


class ReportDetail(ReportWithPeople):
    feedback: List[FeedbackRead] = []
    hod_feedback: List[HodFeedbackRead] = []
    versions: List[ReportRead] = []
    next_stage: Optional[ReportStage] = None
    can_reupload: bool = False


class StageProgressRead(ORMModel):
    stage: ReportStage
    has_report: bool
    completed: bool
    can_reupload: bool
    report: Optional[ReportRead] = None
    history: List[ReportRead] = []


class StudentProgressRead(ORMModel):
    total_reports: int
    approved_reports: int
    pending_reports: int
    feedback_reports: int
    rejected_reports: int
    completed_stages: int
    total_stages: int
    completion_percentage: int
    stages: List[StageProgressRead]


class FileInfo(ORMModel):
    report_id: int
    file_name: str
    file_url: str
    extension: str
    mime_type: str
    size: str
    exists: bool
    modified: Optional[datetime] = None
    is_editable: bool
    is_previewable: bool
    student_name: Optional[str] = None
    supervisor_name: Optional[str] = None


class FileView(ORMModel):
    report_id: int
    file_name: str
    extension: str
    language: str
    is_editable: bool
    is_code: bool
    content: Optional[str] = None
    size: str


class FileContentUpdate(ORMModel):
    content: str


class FileUpdateResult(ORMModel):
    report_id: int
    file_size: int
    size: str
    backup_created: bool
    updated_at: datetime
