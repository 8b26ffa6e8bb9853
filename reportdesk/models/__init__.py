from reportdesk.models.assignment import StudentSupervisorAssignment
from reportdesk.models.audit import ActivityLog
from reportdesk.models.enums import ReportStage, ReportStatus, Role
from reportdesk.models.feedback import Feedback, HodFeedback
from reportdesk.models.report import Report
from reportdesk.models.user import User

__all__ = [
    "ActivityLog",
    "Feedback",
    "HodFeedback",
    "Report",
    "ReportStage",
    "ReportStatus",
    "Role",
    "StudentSupervisorAssignment",
    "User",
]
