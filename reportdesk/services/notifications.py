"""Notification emails sent after report events.

Messages are built eagerly from plain values while the request session is
still open, then handed to ``deliver`` through FastAPI background tasks.
Delivery problems are logged and never reach the caller.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from html import escape
from typing import Optional

from reportdesk.core.observability import emails_failed_total
from reportdesk.core.settings import settings
from reportdesk.services.email import EmailSendError, send_email

logger = logging.getLogger(__name__)

_SIGNATURE = "This is an automated notification from the ReportDesk project submission system."


@dataclass(frozen=True)
class EmailNotification:
    recipient: str
    subject: str
    html: str
    text: str


def _stage_label(stage: str) -> str:
    return stage.replace("_", " ").title()


def report_uploaded(
    *,
    supervisor_email: str,
    supervisor_name: Optional[str],
    student_name: Optional[str],
    title: str,
    stage: str,
    file_name: str,
) -> EmailNotification:
    student = student_name or "Student"
    portal_url = f"{settings.app_base_url}/supervisor/reports"
    html = f"""
    <html>
      <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
        <h2 style="color: #2563eb;">New Report Uploaded</h2>
        <p>Hello {escape(supervisor_name or 'Supervisor')},</p>
        <p>{escape(student)} has submitted a new report for your review:</p>
        <div style="background-color: #f3f4f6; padding: 16px; border-radius: 8px; margin: 20px 0;">
          <strong>Title:</strong> {escape(title)}<br>
          <strong>Stage:</strong> {escape(_stage_label(stage))}<br>
          <strong>File:</strong> {escape(file_name)}
        </div>
        <p><a href="{portal_url}">Review the report</a></p>
        <p style="color: #6b7280; font-size: 14px; margin-top: 30px;">{_SIGNATURE}</p>
      </body>
    </html>
    """
    text = (
        f"{student} has submitted a new report.\n\n"
        f"Title: {title}\nStage: {_stage_label(stage)}\nFile: {file_name}\n\n"
        f"Review it at {portal_url}\n\n---\n{_SIGNATURE}"
    )
    return EmailNotification(
        recipient=supervisor_email,
        subject=f"New Report Uploaded by {student}",
        html=html,
        text=text,
    )


def feedback_received(
    *,
    student_email: str,
    student_name: Optional[str],
    title: str,
    comment: str,
    new_status: str,
) -> EmailNotification:
    portal_url = f"{settings.app_base_url}/student/reports"
    html = f"""
    <html>
      <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
        <h2 style="color: #2563eb;">New Feedback on Your Report</h2>
        <p>Hello {escape(student_name or 'there')},</p>
        <p>Your supervisor has reviewed <strong>{escape(title)}</strong>.</p>
        <div style="background-color: #f3f4f6; padding: 16px; border-radius: 8px; margin: 20px 0;">
          <strong>Status:</strong> {escape(new_status.replace('_', ' '))}<br>
          <strong>Comment:</strong> {escape(comment)}
        </div>
        <p><a href="{portal_url}">Open your dashboard</a></p>
        <p style="color: #6b7280; font-size: 14px; margin-top: 30px;">{_SIGNATURE}</p>
      </body>
    </html>
    """
    text = (
        f'You have received new feedback on your report titled "{title}". '
        f"Login to your dashboard to read it: {portal_url}"
    )
    return EmailNotification(
        recipient=student_email,
        subject="New Feedback on Your Project Report",
        html=html,
        text=text,
    )


def deliver(notification: EmailNotification) -> bool:
    """Send a notification, returning False instead of raising on failure."""
    try:
        result = send_email(
            to_address=notification.recipient,
            subject=notification.subject,
            html=notification.html,
            text=notification.text,
        )
    except EmailSendError as exc:
        emails_failed_total.inc()
        logger.warning("Email to %s not sent: %s", notification.recipient, exc)
        return False
    except Exception:
        emails_failed_total.inc()
        logger.exception("Unexpected error sending email to %s", notification.recipient)
        return False
    logger.info("Email sent to %s via %s", notification.recipient, result.provider)
    return True
