from __future__ import annotations

from datetime import datetime
from typing import Optional

from reportdesk.models.enums import ReportStage, ReportStatus
from reportdesk.schemas.base import ORMModel
from reportdesk.schemas.user import UserSummary


class FeedbackCreate(ORMModel):
    comment: Optional[str] = None
    action_taken: Optional[str] = None


class FeedbackRead(ORMModel):
    id: int
    report_id: int
    supervisor_id: int
    comment: str
    action_taken: str
    created_at: datetime
    supervisor: Optional[UserSummary] = None


class FeedbackResult(ORMModel):
    feedback: FeedbackRead
    report_id: int
    status: ReportStatus


class HodFeedbackCreate(ORMModel):
    comment: Optional[str] = None


class HodFeedbackRead(ORMModel):
    id: int
    report_id: int
    hod_id: int
    comment: str
    created_at: datetime
    hod: Optional[UserSummary] = None


class StageAdvanceResult(ORMModel):
    report_id: int
    report_stage: ReportStage
    status: ReportStatus
    message: str
