from __future__ import annotations

from pathlib import Path
from typing import List

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.orm import Session

from reportdesk.core.deps import require_roles
from reportdesk.db.session import get_db
from reportdesk.models.enums import REUPLOADABLE_STATUSES, ReportStage, ReportStatus, Role
from reportdesk.models.report import Report
from reportdesk.models.user import User
from reportdesk.schemas.report import (
    ReportDetail,
    ReportListItem,
    ReportRead,
    ReportWithPeople,
    StudentProgressRead,
)
from reportdesk.services import notifications, storage
from reportdesk.services import reports as report_service
from reportdesk.services.feedback import next_stage

router = APIRouter(prefix="/api/reports", tags=["reports"])

_student = require_roles(Role.STUDENT)
_supervisor = require_roles(Role.SUPERVISOR)
_hod = require_roles(Role.HOD)
_coordinator = require_roles(Role.LEVEL_COORDINATOR)


def _spool_upload(file: UploadFile | None) -> report_service.UploadedFile | None:
    if file is None or not file.filename:
        return None
    # Only the basename of the client-supplied name is kept.
    safe_name = Path(file.filename).name
    temp_path = storage.save_temp_upload(file.file, safe_name)
    return report_service.UploadedFile(
        temp_path=temp_path,
        original_name=safe_name,
        size=temp_path.stat().st_size,
    )


def _detail(db: Session, report: Report) -> ReportDetail:
    detail = ReportDetail.model_validate(report)
    detail.versions = [
        ReportRead.model_validate(row)
        for row in report_service.history_for(db, report.student_id, report.title, report.report_stage)
    ]
    detail.next_stage = next_stage(report.report_stage)
    detail.can_reupload = report.status in REUPLOADABLE_STATUSES
    return detail


def _notify_supervisor(background_tasks: BackgroundTasks, report: Report, student: User) -> None:
    supervisor = report.supervisor
    if not supervisor or not supervisor.email:
        return
    background_tasks.add_task(
        notifications.deliver,
        notifications.report_uploaded(
            supervisor_email=supervisor.email,
            supervisor_name=supervisor.full_name,
            student_name=student.full_name,
            title=report.title,
            stage=report.report_stage.value,
            file_name=report.file_name,
        ),
    )


@router.post("", response_model=ReportRead, status_code=status.HTTP_201_CREATED)
def submit_report(
    background_tasks: BackgroundTasks,
    title: str | None = Form(default=None),
    report_stage: str | None = Form(default=None),
    file: UploadFile | None = File(default=None),
    db: Session = Depends(get_db),
    current_user: User = Depends(_student),
) -> ReportRead:
    upload = _spool_upload(file)
    report = report_service.submit(db, student=current_user, title=title, stage=report_stage, upload=upload)
    db.commit()
    db.refresh(report)
    _notify_supervisor(background_tasks, report, current_user)
    return ReportRead.model_validate(report)


@router.post("/{report_id}/reupload", response_model=ReportRead)
def reupload_report(
    report_id: int,
    file: UploadFile | None = File(default=None),
    db: Session = Depends(get_db),
    current_user: User = Depends(_student),
) -> ReportRead:
    upload = _spool_upload(file)
    report = report_service.reupload(db, report_id=report_id, student=current_user, upload=upload)
    db.commit()
    db.refresh(report)
    return ReportRead.model_validate(report)


@router.get("/mine", response_model=List[ReportRead])
def my_reports(
    db: Session = Depends(get_db),
    current_user: User = Depends(_student),
) -> List[ReportRead]:
    return [ReportRead.model_validate(row) for row in report_service.list_for_student(db, current_user.id)]


@router.get("/progress", response_model=StudentProgressRead)
def my_progress(
    db: Session = Depends(get_db),
    current_user: User = Depends(_student),
) -> StudentProgressRead:
    return StudentProgressRead.model_validate(report_service.student_progress(db, current_user.id))


@router.get("/history", response_model=List[ReportRead])
def my_report_history(
    title: str = Query(..., min_length=1),
    stage: ReportStage = Query(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(_student),
) -> List[ReportRead]:
    rows = report_service.history_for(db, current_user.id, title, stage)
    return [ReportRead.model_validate(row) for row in rows]


@router.get("/assigned", response_model=List[ReportListItem])
def supervisor_reports(
    status_filter: ReportStatus | None = Query(None, alias="status"),
    stage: ReportStage | None = Query(None),
    search: str | None = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(_supervisor),
) -> List[ReportListItem]:
    rows = report_service.list_for_supervisor(
        db,
        current_user.id,
        status=status_filter,
        stage=stage,
        search=search,
    )
    items: List[ReportListItem] = []
    for report, feedback_count, hod_feedback_count in rows:
        item = ReportListItem.model_validate(report)
        item.feedback_count = feedback_count
        item.hod_feedback_count = hod_feedback_count
        items.append(item)
    return items


@router.get("/supervised/{report_id}", response_model=ReportDetail)
def supervised_report_detail(
    report_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(_supervisor),
) -> ReportDetail:
    report = report_service.get_for_supervisor(db, report_id=report_id, supervisor_id=current_user.id)
    return _detail(db, report)


@router.get("/department", response_model=List[ReportWithPeople])
def department_reports(
    status_filter: ReportStatus | None = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(_hod),
) -> List[ReportWithPeople]:
    rows = report_service.list_for_department(db, current_user.department, status=status_filter)
    return [ReportWithPeople.model_validate(row) for row in rows]


@router.get("/department/{report_id}", response_model=ReportDetail)
def department_report_detail(
    report_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(_hod),
) -> ReportDetail:
    report = report_service.get_for_department(db, report_id=report_id, department=current_user.department)
    return _detail(db, report)


@router.get("/level", response_model=List[ReportWithPeople])
def level_reports(
    status_filter: ReportStatus | None = Query(None, alias="status"),
    db: Session = Depends(get_db),
    current_user: User = Depends(_coordinator),
) -> List[ReportWithPeople]:
    rows = report_service.list_for_level(db, current_user.level, status=status_filter)
    return [ReportWithPeople.model_validate(row) for row in rows]


@router.get("/{report_id}", response_model=ReportDetail)
def my_report_detail(
    report_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(_student),
) -> ReportDetail:
    report = report_service.get_for_student(db, report_id=report_id, student_id=current_user.id)
    return _detail(db, report)
