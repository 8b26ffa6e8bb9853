from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from reportdesk.core.deps import require_roles
from reportdesk.core.errors import NotFoundOrUnauthorized, ValidationError
from reportdesk.core.settings import settings
from reportdesk.db.base import utcnow
from reportdesk.db.session import get_db
from reportdesk.models.enums import Role
from reportdesk.models.report import Report
from reportdesk.models.user import User
from reportdesk.schemas.report import FileContentUpdate, FileInfo, FileUpdateResult, FileView
from reportdesk.services import reports as report_service
from reportdesk.services import storage
from reportdesk.services.activity import log_activity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/files", tags=["files"])

_supervisor = require_roles(Role.SUPERVISOR)


def _ascii_filename(name: str) -> str:
    return "".join(ch if ch.isalnum() or ch in ".-_" else "_" for ch in name) or "report"


def _existing_path(report: Report):
    path = storage.resolve_path(report.file_url)
    if not path.is_file():
        raise NotFoundOrUnauthorized("File not found on server")
    return path


@router.get("/{report_id}/info", response_model=FileInfo)
def file_info(
    report_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(_supervisor),
) -> FileInfo:
    report = report_service.get_for_supervisor(db, report_id=report_id, supervisor_id=current_user.id)
    path = storage.resolve_path(report.file_url)
    exists = path.is_file()
    stats = path.stat() if exists else None
    return FileInfo(
        report_id=report.id,
        file_name=report.file_name,
        file_url=report.file_url,
        extension=storage.file_extension(report.file_name),
        mime_type=storage.mime_type_for(report.file_name),
        size=storage.format_file_size(stats.st_size if stats else report.file_size),
        exists=exists,
        modified=datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc) if stats else None,
        is_editable=storage.is_editable(report.file_name),
        is_previewable=storage.is_previewable(report.file_name),
        student_name=report.student.full_name if report.student else None,
        supervisor_name=report.supervisor.full_name if report.supervisor else None,
    )


@router.get("/{report_id}/view", response_model=FileView)
def view_file(
    report_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(_supervisor),
) -> FileView:
    report = report_service.get_for_supervisor(db, report_id=report_id, supervisor_id=current_user.id)
    path = _existing_path(report)
    content = None
    if storage.is_editable(report.file_name):
        try:
            content = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            logger.warning("Could not read %s as text", path, exc_info=True)
            content = "Unable to read file content"
    return FileView(
        report_id=report.id,
        file_name=report.file_name,
        extension=storage.file_extension(report.file_name),
        language=storage.detect_language(report.file_name),
        is_editable=storage.is_editable(report.file_name),
        is_code=storage.file_extension(report.file_name) in storage.CODE_EXTENSIONS,
        content=content,
        size=storage.format_file_size(path.stat().st_size),
    )


@router.get("/{report_id}/download")
def download_file(
    report_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(_supervisor),
):
    report = report_service.get_for_supervisor(db, report_id=report_id, supervisor_id=current_user.id)
    path = _existing_path(report)
    log_activity(
        db,
        actor_user_id=current_user.id,
        action=f"Downloaded file: {report.file_name}",
        resource_type="file",
        resource_id=report.id,
    )
    db.commit()
    return FileResponse(
        path=str(path),
        media_type=storage.mime_type_for(report.file_name),
        filename=_ascii_filename(report.file_name),
    )


@router.get("/{report_id}/preview")
def preview_file(
    report_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(_supervisor),
):
    report = report_service.get_for_supervisor(db, report_id=report_id, supervisor_id=current_user.id)
    if not storage.is_previewable(report.file_name):
        raise ValidationError("Preview is only available for PDF and image files")
    path = _existing_path(report)
    return FileResponse(
        path=str(path),
        media_type=storage.mime_type_for(report.file_name),
        headers={"Content-Disposition": f'inline; filename="{_ascii_filename(report.file_name)}"'},
    )


@router.put("/{report_id}/content", response_model=FileUpdateResult)
def update_file_content(
    report_id: int,
    payload: FileContentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(_supervisor),
) -> FileUpdateResult:
    report = report_service.get_for_supervisor(db, report_id=report_id, supervisor_id=current_user.id)
    if not storage.is_editable(report.file_name):
        raise ValidationError("File format not editable")
    if len(payload.content.encode("utf-8")) > settings.file_management_max_bytes:
        raise ValidationError("File content exceeds the maximum allowed size")
    path = _existing_path(report)

    backup_path = storage.backup(path)
    size = storage.write_text(path, payload.content)

    report.file_size = size
    report.updated_at = utcnow()
    log_activity(
        db,
        actor_user_id=current_user.id,
        action=f"Updated file content: {report.file_name}",
        resource_type="file",
        resource_id=report.id,
        payload={"backup": backup_path.name, "file_size": size},
    )
    db.commit()
    return FileUpdateResult(
        report_id=report.id,
        file_size=size,
        size=storage.format_file_size(size),
        backup_created=backup_path.exists(),
        updated_at=report.updated_at,
    )
