from __future__ import annotations

import pytest

from reportdesk.core.errors import AlreadyFinalStage, NotFoundOrUnauthorized, ValidationError
from reportdesk.models.audit import ActivityLog
from reportdesk.models.enums import ReportStage, ReportStatus, Role
from reportdesk.models.feedback import Feedback, HodFeedback
from reportdesk.services import feedback, reports


@pytest.fixture()
def report(db, student, supervisor, make_upload):
    row = reports.submit(db, student=student, title="Thesis Proposal", stage="progress_1", upload=make_upload())
    db.commit()
    return row


@pytest.mark.parametrize(
    ("action", "expected"),
    [
        ("minor_changes", ReportStatus.APPROVED),
        ("no_action", ReportStatus.APPROVED),
        ("revise", ReportStatus.REJECTED),
        ("meet_discuss", ReportStatus.FEEDBACK_GIVEN),
        ("something_else", ReportStatus.FEEDBACK_GIVEN),
    ],
)
def test_status_for_action(action, expected):
    assert feedback.status_for_action(action) == expected


def test_post_feedback_updates_status(db, report, supervisor):
    updated, entry = feedback.post_feedback(
        db, report_id=report.id, supervisor=supervisor, comment="Needs more detail", action_taken="revise"
    )
    db.commit()

    assert updated.status == ReportStatus.REJECTED
    assert entry.comment == "Needs more detail"
    assert db.query(Feedback).filter(Feedback.report_id == report.id).count() == 1

    log = db.query(ActivityLog).filter(ActivityLog.action == "feedback_provided").one()
    assert log.payload_json["from_status"] == "pending"
    assert log.payload_json["to_status"] == "rejected"


def test_post_feedback_requires_comment_and_action(db, report, supervisor):
    with pytest.raises(ValidationError, match="Feedback comment is required"):
        feedback.post_feedback(db, report_id=report.id, supervisor=supervisor, comment=" ", action_taken="revise")
    with pytest.raises(ValidationError, match="Action taken is required"):
        feedback.post_feedback(db, report_id=report.id, supervisor=supervisor, comment="Fine", action_taken="")
    assert db.query(Feedback).count() == 0


def test_post_feedback_by_other_supervisor(db, make_user, report):
    stranger = make_user(Role.SUPERVISOR)
    with pytest.raises(NotFoundOrUnauthorized):
        feedback.post_feedback(db, report_id=report.id, supervisor=stranger, comment="Hi", action_taken="no_action")


def test_advance_stage_walks_to_final(db, report, supervisor):
    report.status = ReportStatus.APPROVED
    db.commit()

    seen = []
    for _ in range(3):
        advanced = feedback.advance_stage(db, report_id=report.id, supervisor=supervisor)
        db.commit()
        seen.append(advanced.report_stage)
        assert advanced.status == ReportStatus.PENDING
        assert advanced.id == report.id

    assert seen == [ReportStage.PROGRESS_2, ReportStage.PROGRESS_3, ReportStage.FINAL]
    report.status = ReportStatus.APPROVED
    db.commit()
    db.refresh(report)
    before = (report.report_stage, report.status, report.updated_at)

    with pytest.raises(AlreadyFinalStage):
        feedback.advance_stage(db, report_id=report.id, supervisor=supervisor)
    db.commit()
    db.refresh(report)

    assert (report.report_stage, report.status, report.updated_at) == before
    assert db.query(ActivityLog).filter(ActivityLog.action == "report_moved_stage").count() == 3


def test_next_stage():
    assert feedback.next_stage(ReportStage.PROGRESS_1) == ReportStage.PROGRESS_2
    assert feedback.next_stage(ReportStage.FINAL) is None


def test_hod_feedback_is_department_scoped(db, make_user, report, hod):
    entry = feedback.post_hod_feedback(db, report_id=report.id, hod=hod, comment="Good progress")
    db.commit()
    assert entry.hod_id == hod.id
    assert db.query(HodFeedback).count() == 1

    outsider = make_user(Role.HOD, department="Physics")
    with pytest.raises(NotFoundOrUnauthorized):
        feedback.post_hod_feedback(db, report_id=report.id, hod=outsider, comment="Looks fine")
    with pytest.raises(ValidationError):
        feedback.post_hod_feedback(db, report_id=report.id, hod=hod, comment="")
