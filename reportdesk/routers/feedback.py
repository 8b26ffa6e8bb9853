from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from reportdesk.core.deps import require_roles
from reportdesk.db.session import get_db
from reportdesk.models.enums import Role
from reportdesk.models.user import User
from reportdesk.schemas.feedback import (
    FeedbackCreate,
    FeedbackRead,
    FeedbackResult,
    HodFeedbackCreate,
    HodFeedbackRead,
    StageAdvanceResult,
)
from reportdesk.services import feedback as feedback_service
from reportdesk.services import notifications

router = APIRouter(prefix="/api/reports", tags=["feedback"])

_supervisor = require_roles(Role.SUPERVISOR)
_hod = require_roles(Role.HOD)


@router.post("/{report_id}/feedback", response_model=FeedbackResult, status_code=status.HTTP_201_CREATED)
def post_feedback(
    report_id: int,
    payload: FeedbackCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    current_user: User = Depends(_supervisor),
) -> FeedbackResult:
    report, feedback = feedback_service.post_feedback(
        db,
        report_id=report_id,
        supervisor=current_user,
        comment=payload.comment,
        action_taken=payload.action_taken,
    )
    db.commit()
    db.refresh(feedback)

    student = report.student
    if student and student.email:
        background_tasks.add_task(
            notifications.deliver,
            notifications.feedback_received(
                student_email=student.email,
                student_name=student.full_name,
                title=report.title,
                comment=feedback.comment,
                new_status=report.status.value,
            ),
        )
    return FeedbackResult(
        feedback=FeedbackRead.model_validate(feedback),
        report_id=report.id,
        status=report.status,
    )


@router.put("/{report_id}/advance-stage", response_model=StageAdvanceResult)
def advance_stage(
    report_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(_supervisor),
) -> StageAdvanceResult:
    report = feedback_service.advance_stage(db, report_id=report_id, supervisor=current_user)
    db.commit()
    return StageAdvanceResult(
        report_id=report.id,
        report_stage=report.report_stage,
        status=report.status,
        message=f"Report moved to {report.report_stage.value.replace('_', ' ')} stage",
    )


@router.post("/{report_id}/hod-feedback", response_model=HodFeedbackRead, status_code=status.HTTP_201_CREATED)
def post_hod_feedback(
    report_id: int,
    payload: HodFeedbackCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(_hod),
) -> HodFeedbackRead:
    entry = feedback_service.post_hod_feedback(db, report_id=report_id, hod=current_user, comment=payload.comment)
    db.commit()
    db.refresh(entry)
    return HodFeedbackRead.model_validate(entry)
