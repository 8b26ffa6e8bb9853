"""Supervisor feedback, status transitions and stage advancement."""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session, joinedload

from reportdesk.core.errors import AlreadyFinalStage, NotFoundOrUnauthorized, ValidationError
from reportdesk.core.observability import feedback_posted_total
from reportdesk.db.base import utcnow
from reportdesk.models.enums import STAGE_ORDER, ReportStage, ReportStatus
from reportdesk.models.feedback import Feedback, HodFeedback
from reportdesk.models.report import Report
from reportdesk.models.user import User
from reportdesk.services.activity import log_activity

logger = logging.getLogger(__name__)

ACTION_STATUS = {
    "minor_changes": ReportStatus.APPROVED,
    "no_action": ReportStatus.APPROVED,
    "revise": ReportStatus.REJECTED,
    "meet_discuss": ReportStatus.FEEDBACK_GIVEN,
}


def status_for_action(action_taken: str) -> ReportStatus:
    """Unrecognised actions leave the report awaiting the student's response."""
    return ACTION_STATUS.get(action_taken, ReportStatus.FEEDBACK_GIVEN)


def next_stage(stage: ReportStage) -> Optional[ReportStage]:
    index = STAGE_ORDER.index(stage)
    if index == len(STAGE_ORDER) - 1:
        return None
    return STAGE_ORDER[index + 1]


def _get_supervised_report(db: Session, report_id: int, supervisor_id: int) -> Report:
    report = (
        db.query(Report)
        .options(joinedload(Report.student))
        .filter(Report.id == report_id, Report.supervisor_id == supervisor_id)
        .with_for_update(of=Report)
        .first()
    )
    if report is None:
        raise NotFoundOrUnauthorized("Report not found")
    return report


def post_feedback(
    db: Session,
    *,
    report_id: int,
    supervisor: User,
    comment: Optional[str],
    action_taken: Optional[str],
) -> tuple[Report, Feedback]:
    report = _get_supervised_report(db, report_id, supervisor.id)

    if not comment or not comment.strip():
        raise ValidationError("Feedback comment is required")
    if not action_taken or not action_taken.strip():
        raise ValidationError("Action taken is required")
    action_taken = action_taken.strip()

    feedback = Feedback(
        report_id=report.id,
        supervisor_id=supervisor.id,
        comment=comment.strip(),
        action_taken=action_taken,
    )
    db.add(feedback)

    previous_status = report.status
    report.status = status_for_action(action_taken)
    report.updated_at = utcnow()
    db.flush()

    log_activity(
        db,
        actor_user_id=supervisor.id,
        action="feedback_provided",
        resource_type="report",
        resource_id=report.id,
        payload={
            "student_name": report.student.full_name if report.student else None,
            "action": action_taken,
            "from_status": previous_status.value,
            "to_status": report.status.value,
        },
    )
    feedback_posted_total.labels(status=report.status.value).inc()
    return report, feedback


def advance_stage(db: Session, *, report_id: int, supervisor: User) -> Report:
    report = _get_supervised_report(db, report_id, supervisor.id)

    target = next_stage(report.report_stage)
    if target is None:
        raise AlreadyFinalStage()

    from_stage = report.report_stage
    report.report_stage = target
    report.status = ReportStatus.PENDING
    report.updated_at = utcnow()
    db.flush()

    log_activity(
        db,
        actor_user_id=supervisor.id,
        action="report_moved_stage",
        resource_type="report",
        resource_id=report.id,
        payload={
            "student_name": report.student.full_name if report.student else None,
            "from_stage": from_stage.value,
            "to_stage": target.value,
        },
    )
    return report


def post_hod_feedback(db: Session, *, report_id: int, hod: User, comment: Optional[str]) -> HodFeedback:
    """Record a head-of-department remark on a report from their department."""
    report = (
        db.query(Report)
        .join(User, Report.student_id == User.id)
        .filter(Report.id == report_id, User.department == hod.department)
        .first()
    )
    if report is None:
        raise NotFoundOrUnauthorized("Report not found or not in your department")
    if not comment or not comment.strip():
        raise ValidationError("Feedback comment is required")

    entry = HodFeedback(report_id=report.id, hod_id=hod.id, comment=comment.strip())
    db.add(entry)
    db.flush()

    log_activity(
        db,
        actor_user_id=hod.id,
        action="Provided HOD Feedback",
        resource_type="report",
        resource_id=report.id,
        payload={"hod_feedback_id": entry.id},
    )
    return entry
