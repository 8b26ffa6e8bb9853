from __future__ import annotations

import pytest

from reportdesk.core.errors import NoSupervisorAvailable, NotFoundOrUnauthorized, ReuploadNotAllowed, ValidationError
from reportdesk.core.settings import settings
from reportdesk.models.audit import ActivityLog
from reportdesk.models.enums import ReportStage, ReportStatus, Role
from reportdesk.models.report import Report
from reportdesk.services import reports, storage


def _submit(db, student, make_upload, title="Thesis Proposal", stage="progress_1", name="Proposal.pdf"):
    report = reports.submit(db, student=student, title=title, stage=stage, upload=make_upload(name))
    db.commit()
    return report


def test_submit_picks_first_active_supervisor(db, make_user, student, make_upload):
    make_user(Role.SUPERVISOR, is_active=False)
    first = make_user(Role.SUPERVISOR)
    make_user(Role.SUPERVISOR)

    report = _submit(db, student, make_upload)

    assert report.supervisor_id == first.id
    assert report.version == 1
    assert report.status == ReportStatus.PENDING
    assert report.report_stage == ReportStage.PROGRESS_1
    assert report.file_url.startswith(storage.PUBLIC_PREFIX)
    assert storage.resolve_path(report.file_url).is_file()
    assert db.query(ActivityLog).filter(ActivityLog.action == "Uploaded report").count() == 1


def test_submit_without_supervisor_discards_upload(db, student, make_upload):
    upload = make_upload()
    with pytest.raises(NoSupervisorAvailable):
        reports.submit(db, student=student, title="Thesis", stage="progress_1", upload=upload)
    assert not upload.temp_path.exists()
    assert db.query(Report).count() == 0


def test_submit_collects_validation_errors(db, student, supervisor):
    with pytest.raises(ValidationError) as excinfo:
        reports.submit(db, student=student, title="  ", stage="progress_9", upload=None)
    assert excinfo.value.message == "No file uploaded, Title is required, Invalid report stage"


def test_submit_rejects_extension_and_size(db, student, supervisor, make_upload, monkeypatch):
    upload = make_upload("slides.pptx")
    with pytest.raises(ValidationError) as excinfo:
        reports.submit(db, student=student, title="Thesis", stage="final", upload=upload)
    assert "Only PDF, DOC, DOCX, and TXT files are allowed" in excinfo.value.message
    assert not upload.temp_path.exists()

    monkeypatch.setattr(settings, "submission_max_bytes", 4)
    with pytest.raises(ValidationError) as excinfo:
        reports.submit(db, student=student, title="Thesis", stage="final", upload=make_upload("big.txt", b"too large"))
    assert "File size must be less than" in excinfo.value.message


def test_reupload_requires_feedback(db, student, supervisor, make_upload):
    report = _submit(db, student, make_upload)
    upload = make_upload("Proposal-v2.pdf")

    with pytest.raises(ReuploadNotAllowed):
        reports.reupload(db, report_id=report.id, student=student, upload=upload)
    assert not upload.temp_path.exists()

    report.status = ReportStatus.APPROVED
    db.commit()
    with pytest.raises(ReuploadNotAllowed):
        reports.reupload(db, report_id=report.id, student=student, upload=make_upload())


def test_reupload_mutates_same_row(db, student, supervisor, make_upload):
    report = _submit(db, student, make_upload)

    for status in (ReportStatus.REJECTED, ReportStatus.FEEDBACK_GIVEN, ReportStatus.REJECTED):
        report.status = status
        db.commit()
        reports.reupload(db, report_id=report.id, student=student, upload=make_upload("Proposal-next.pdf"))
        db.commit()

    history = reports.history_for(db, student.id, "Thesis Proposal", "progress_1")
    assert len(history) == 1
    assert history[0].id == report.id
    assert history[0].version == 4
    assert history[0].status == ReportStatus.PENDING
    assert history[0].file_name == "Proposal-next.pdf"

    log = db.query(ActivityLog).filter(ActivityLog.action == "Reuploaded report").order_by(ActivityLog.id.desc()).first()
    assert log.payload_json == {"old_version": 3, "new_version": 4}


def test_reupload_of_other_students_report(db, make_user, student, supervisor, make_upload):
    report = _submit(db, student, make_upload)
    report.status = ReportStatus.REJECTED
    db.commit()
    other = make_user(Role.STUDENT)

    with pytest.raises(NotFoundOrUnauthorized):
        reports.reupload(db, report_id=report.id, student=other, upload=make_upload())
    with pytest.raises(NotFoundOrUnauthorized):
        reports.get_for_student(db, report_id=report.id, student_id=other.id)


def test_history_groups_by_title_and_stage(db, student, supervisor, make_upload):
    first = _submit(db, student, make_upload)
    second = _submit(db, student, make_upload)
    _submit(db, student, make_upload, stage="progress_2")
    second.version = 2
    db.commit()

    history = reports.history_for(db, student.id, "Thesis Proposal", ReportStage.PROGRESS_1)
    assert [row.id for row in history] == [second.id, first.id]


def test_student_progress(db, student, supervisor, make_upload):
    first = _submit(db, student, make_upload)
    _submit(db, student, make_upload, title="Chapter Two", stage="progress_2")
    first.status = ReportStatus.APPROVED
    db.commit()

    progress = reports.student_progress(db, student.id)
    assert progress.total_reports == 2
    assert progress.approved_reports == 1
    assert progress.pending_reports == 1
    assert progress.completed_stages == 2
    assert progress.total_stages == 4
    assert progress.completion_percentage == 50
    stage_one = progress.stages[0]
    assert stage_one.stage == ReportStage.PROGRESS_1
    assert stage_one.completed
    assert not stage_one.can_reupload
    assert not progress.stages[3].has_report


def test_supervisor_listing_filters(db, make_user, student, supervisor, make_upload):
    _submit(db, student, make_upload, title="Thesis Proposal")
    other_student = make_user(Role.STUDENT, full_name="Bayo Other", registration_number="CS/2020/099")
    _submit(db, other_student, make_upload, title="Network Design", stage="progress_2")

    rows = reports.list_for_supervisor(db, supervisor.id)
    assert len(rows) == 2
    assert all(fb == 0 and hod == 0 for _, fb, hod in rows)

    rows = reports.list_for_supervisor(db, supervisor.id, search="099")
    assert [report.title for report, _, _ in rows] == ["Network Design"]

    rows = reports.list_for_supervisor(db, supervisor.id, stage=ReportStage.PROGRESS_1)
    assert [report.title for report, _, _ in rows] == ["Thesis Proposal"]
