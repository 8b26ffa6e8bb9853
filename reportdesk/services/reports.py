"""Report submission, reupload versioning and read models.

A report row is created on submission with ``version=1`` and is mutated in
place on every accepted reupload. The lineage of a report is every row that
shares ``(student_id, title, report_stage)``.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload, selectinload

from reportdesk.core.errors import NoSupervisorAvailable, NotFoundOrUnauthorized, ReuploadNotAllowed, StorageFailure, ValidationError
from reportdesk.core.observability import reports_submitted_total
from reportdesk.core.settings import settings
from reportdesk.db.base import utcnow
from reportdesk.models.enums import REUPLOADABLE_STATUSES, STAGE_ORDER, ReportStage, ReportStatus, Role
from reportdesk.models.feedback import Feedback, HodFeedback
from reportdesk.models.report import Report
from reportdesk.models.user import User
from reportdesk.services import storage
from reportdesk.services.activity import log_activity

logger = logging.getLogger(__name__)


@dataclass
class UploadedFile:
    """An upload already spooled to the temp area."""

    temp_path: Path
    original_name: str
    size: int


@dataclass
class StageProgress:
    stage: ReportStage
    report: Optional[Report]
    history: List[Report] = field(default_factory=list)

    @property
    def has_report(self) -> bool:
        return self.report is not None

    @property
    def completed(self) -> bool:
        return self.report is not None and self.report.status == ReportStatus.APPROVED

    @property
    def can_reupload(self) -> bool:
        return self.report is not None and self.report.status in REUPLOADABLE_STATUSES


@dataclass
class StudentProgress:
    total_reports: int
    approved_reports: int
    pending_reports: int
    feedback_reports: int
    rejected_reports: int
    completed_stages: int
    total_stages: int
    completion_percentage: int
    stages: List[StageProgress]


def validate_upload(upload: Optional[UploadedFile], title: Optional[str], stage: Optional[str]) -> List[str]:
    errors: List[str] = []
    if upload is None:
        errors.append("No file uploaded")
    if not title or not title.strip():
        errors.append("Title is required")
    if not stage:
        errors.append("Report stage is required")
    elif stage not in {s.value for s in ReportStage}:
        errors.append("Invalid report stage")
    if upload is not None:
        if storage.file_extension(upload.original_name) not in storage.REPORT_EXTENSIONS:
            errors.append("Only PDF, DOC, DOCX, and TXT files are allowed")
        if upload.size > settings.submission_max_bytes:
            limit_mb = settings.submission_max_bytes // (1024 * 1024)
            errors.append(f"File size must be less than {limit_mb}MB")
    return errors


def pick_supervisor(db: Session) -> Optional[User]:
    """First active supervisor by id; independent of the student's assignment."""
    return (
        db.query(User)
        .filter(User.role == Role.SUPERVISOR, User.is_active.is_(True))
        .order_by(User.id.asc())
        .first()
    )


def _discard_upload(upload: Optional[UploadedFile]) -> None:
    if upload is not None:
        storage.discard(upload.temp_path)


def _flush_or_cleanup(db: Session, stored: storage.StoredFile) -> None:
    try:
        db.flush()
    except SQLAlchemyError as exc:
        logger.exception("Failed to persist report row for %s", stored.file_url)
        storage.discard(stored.path)
        raise StorageFailure("Error saving report") from exc


def submit(
    db: Session,
    *,
    student: User,
    title: Optional[str],
    stage: Optional[str],
    upload: Optional[UploadedFile],
) -> Report:
    errors = validate_upload(upload, title, stage)
    if errors:
        _discard_upload(upload)
        raise ValidationError(", ".join(errors))

    supervisor = pick_supervisor(db)
    if supervisor is None:
        _discard_upload(upload)
        raise NoSupervisorAvailable()

    stored = storage.store_upload(upload.temp_path, upload.original_name)
    report = Report(
        student_id=student.id,
        supervisor_id=supervisor.id,
        title=title.strip(),
        report_stage=ReportStage(stage),
        file_url=stored.file_url,
        file_name=upload.original_name,
        file_size=stored.size,
        version=1,
        status=ReportStatus.PENDING,
        submitted_at=utcnow(),
    )
    db.add(report)
    _flush_or_cleanup(db, stored)

    log_activity(
        db,
        actor_user_id=student.id,
        action="Uploaded report",
        resource_type="report",
        resource_id=report.id,
        payload={"title": report.title, "stage": report.report_stage.value, "supervisor_id": supervisor.id},
    )
    reports_submitted_total.labels(kind="new").inc()
    logger.info("Report submitted", extra={"report_id": report.id, "student_id": student.id})
    return report


def reupload(db: Session, *, report_id: int, student: User, upload: Optional[UploadedFile]) -> Report:
    report = (
        db.query(Report)
        .filter(Report.id == report_id, Report.student_id == student.id)
        .with_for_update()
        .first()
    )
    if report is None:
        _discard_upload(upload)
        raise NotFoundOrUnauthorized("Report not found")
    if report.status not in REUPLOADABLE_STATUSES:
        _discard_upload(upload)
        raise ReuploadNotAllowed()

    errors = validate_upload(upload, report.title, report.report_stage.value)
    if errors:
        _discard_upload(upload)
        raise ValidationError(", ".join(errors))

    stored = storage.store_upload(upload.temp_path, upload.original_name)
    old_version = report.version
    report.file_url = stored.file_url
    report.file_name = upload.original_name
    report.file_size = stored.size
    report.version = old_version + 1
    report.status = ReportStatus.PENDING
    report.updated_at = utcnow()
    _flush_or_cleanup(db, stored)

    log_activity(
        db,
        actor_user_id=student.id,
        action="Reuploaded report",
        resource_type="report",
        resource_id=report.id,
        payload={"old_version": old_version, "new_version": report.version},
    )
    reports_submitted_total.labels(kind="reupload").inc()
    return report


def history_for(db: Session, student_id: int, title: str, stage: ReportStage | str) -> List[Report]:
    return (
        db.query(Report)
        .filter(
            Report.student_id == student_id,
            Report.title == title,
            Report.report_stage == ReportStage(stage),
        )
        .order_by(Report.version.desc(), Report.id.desc())
        .all()
    )


def list_for_student(db: Session, student_id: int) -> List[Report]:
    return (
        db.query(Report)
        .filter(Report.student_id == student_id)
        .order_by(Report.submitted_at.desc(), Report.id.desc())
        .all()
    )


def reports_by_stage(reports: List[Report]) -> Dict[ReportStage, List[Report]]:
    grouped: Dict[ReportStage, List[Report]] = {stage: [] for stage in STAGE_ORDER}
    for report in reports:
        grouped[report.report_stage].append(report)
    return grouped


def student_progress(db: Session, student_id: int) -> StudentProgress:
    reports = list_for_student(db, student_id)
    grouped = reports_by_stage(reports)
    stages = [
        StageProgress(stage=stage, report=items[0] if items else None, history=items[1:])
        for stage, items in grouped.items()
    ]
    completed = sum(1 for items in grouped.values() if items)

    def _count(status: ReportStatus) -> int:
        return sum(1 for report in reports if report.status == status)

    return StudentProgress(
        total_reports=len(reports),
        approved_reports=_count(ReportStatus.APPROVED),
        pending_reports=_count(ReportStatus.PENDING),
        feedback_reports=_count(ReportStatus.FEEDBACK_GIVEN),
        rejected_reports=_count(ReportStatus.REJECTED),
        completed_stages=completed,
        total_stages=len(STAGE_ORDER),
        completion_percentage=round(completed / len(STAGE_ORDER) * 100),
        stages=stages,
    )


def _detail_query(db: Session):
    return db.query(Report).options(
        joinedload(Report.student),
        joinedload(Report.supervisor),
        selectinload(Report.feedback).joinedload(Feedback.supervisor),
        selectinload(Report.hod_feedback).joinedload(HodFeedback.hod),
    )


def get_for_student(db: Session, *, report_id: int, student_id: int) -> Report:
    report = _detail_query(db).filter(Report.id == report_id, Report.student_id == student_id).first()
    if report is None:
        raise NotFoundOrUnauthorized("Report not found")
    return report


def get_for_supervisor(db: Session, *, report_id: int, supervisor_id: int) -> Report:
    report = _detail_query(db).filter(Report.id == report_id, Report.supervisor_id == supervisor_id).first()
    if report is None:
        raise NotFoundOrUnauthorized("Report not found or unauthorized")
    return report


def get_for_department(db: Session, *, report_id: int, department: Optional[str]) -> Report:
    report = (
        _detail_query(db)
        .join(User, Report.student_id == User.id)
        .filter(Report.id == report_id, User.department == department)
        .first()
    )
    if report is None:
        raise NotFoundOrUnauthorized("Report not found or not in your department")
    return report


def _feedback_counts():
    feedback_count = (
        select(func.count(Feedback.id)).where(Feedback.report_id == Report.id).correlate(Report).scalar_subquery()
    )
    hod_feedback_count = (
        select(func.count(HodFeedback.id)).where(HodFeedback.report_id == Report.id).correlate(Report).scalar_subquery()
    )
    return feedback_count, hod_feedback_count


def list_for_supervisor(
    db: Session,
    supervisor_id: int,
    *,
    status: Optional[ReportStatus] = None,
    stage: Optional[ReportStage] = None,
    search: Optional[str] = None,
) -> List[tuple[Report, int, int]]:
    """Reports routed to a supervisor with feedback counts, newest first."""
    feedback_count, hod_feedback_count = _feedback_counts()
    query = (
        db.query(Report, feedback_count.label("feedback_count"), hod_feedback_count.label("hod_feedback_count"))
        .join(User, Report.student_id == User.id)
        .options(joinedload(Report.student))
        .filter(Report.supervisor_id == supervisor_id)
    )
    if status is not None:
        query = query.filter(Report.status == status)
    if stage is not None:
        query = query.filter(Report.report_stage == stage)
    if search:
        term = f"%{search.strip()}%"
        query = query.filter(
            or_(
                Report.title.ilike(term),
                User.full_name.ilike(term),
                User.registration_number.ilike(term),
            )
        )
    rows = query.order_by(Report.submitted_at.desc(), Report.id.desc()).all()
    return [(report, fb or 0, hod or 0) for report, fb, hod in rows]


def list_for_department(db: Session, department: Optional[str], *, status: Optional[ReportStatus] = None) -> List[Report]:
    query = (
        db.query(Report)
        .join(User, Report.student_id == User.id)
        .options(joinedload(Report.student), joinedload(Report.supervisor))
        .filter(User.department == department)
    )
    if status is not None:
        query = query.filter(Report.status == status)
    return query.order_by(Report.submitted_at.desc(), Report.id.desc()).all()


def list_for_level(db: Session, level: Optional[str], *, status: Optional[ReportStatus] = None) -> List[Report]:
    query = (
        db.query(Report)
        .join(User, Report.student_id == User.id)
        .options(joinedload(Report.student), joinedload(Report.supervisor))
        .filter(User.level == level)
    )
    if status is not None:
        query = query.filter(Report.status == status)
    return query.order_by(Report.submitted_at.desc(), Report.id.desc()).all()
