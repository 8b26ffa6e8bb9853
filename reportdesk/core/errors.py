"""Domain errors raised by the service layer.

Routers never translate these by hand: ``reportdesk.main`` registers a single
exception handler that maps each subclass to its HTTP status. Authentication
and role guards sit outside the domain and raise ``HTTPException`` directly.
"""
from __future__ import annotations

from fastapi import status


class ReportDeskError(Exception):
    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "error"
    default_message: str = "Request could not be processed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(ReportDeskError):
    code = "validation_error"
    default_message = "Invalid input"


class NotFoundOrUnauthorized(ReportDeskError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"
    default_message = "Not found or not authorised"


class ReuploadNotAllowed(ReportDeskError):
    code = "reupload_not_allowed"
    default_message = "Reupload is only allowed after feedback or rejection"


class StorageFailure(ReportDeskError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "storage_failure"
    default_message = "Error saving file"


class NoSupervisorAvailable(ReportDeskError):
    status_code = status.HTTP_409_CONFLICT
    code = "no_supervisor_available"
    default_message = "No supervisor available. Please contact administrator."


class AlreadyFinalStage(ReportDeskError):
    code = "already_final_stage"
    default_message = "Report is already at final stage"


class AssignmentConflict(ReportDeskError):
    status_code = status.HTTP_409_CONFLICT
    code = "assignment_conflict"
    default_message = "Student assignment changed concurrently, retry"
