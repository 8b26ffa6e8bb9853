from __future__ import annotations

import pytest

from reportdesk.core.settings import settings
from reportdesk.services import email, notifications
from reportdesk.services.email import EmailSendError, EmailSendResult

# Captured before the autouse fixture swaps in the outbox.
deliver = notifications.deliver


def _notification():
    return notifications.report_uploaded(
        supervisor_email="sup@example.com",
        supervisor_name="Sam",
        student_name="<Ada>",
        title="Thesis & Scope",
        stage="progress_2",
        file_name="Proposal.pdf",
    )


def test_report_uploaded_escapes_html():
    message = _notification()
    assert message.recipient == "sup@example.com"
    assert message.subject == "New Report Uploaded by <Ada>"
    assert "&lt;Ada&gt;" in message.html
    assert "Thesis &amp; Scope" in message.html
    assert "Progress 2" in message.text


def test_feedback_received_mentions_status():
    message = notifications.feedback_received(
        student_email="ada@example.com",
        student_name="Ada",
        title="Thesis",
        comment="Tighten the method",
        new_status="rejected",
    )
    assert message.recipient == "ada@example.com"
    assert "Tighten the method" in message.html


def test_deliver_swallows_send_errors(monkeypatch):
    def _fail(**kwargs):
        raise EmailSendError("provider down")

    monkeypatch.setattr(notifications, "send_email", _fail)
    assert deliver(_notification()) is False


def test_deliver_reports_success(monkeypatch):
    sent = []

    def _send(**kwargs):
        sent.append(kwargs)
        return EmailSendResult(provider="smtp")

    monkeypatch.setattr(notifications, "send_email", _send)
    assert deliver(_notification()) is True
    assert sent[0]["to_address"] == "sup@example.com"


def test_send_email_requires_configuration(monkeypatch):
    monkeypatch.setattr(settings, "email_provider", "disabled")
    with pytest.raises(EmailSendError):
        email.send_email(to_address="a@example.com", subject="s", html="<p>x</p>")

    monkeypatch.setattr(settings, "email_provider", "carrier-pigeon")
    monkeypatch.setattr(settings, "email_from", "noreply@example.com")
    with pytest.raises(EmailSendError, match="Unsupported EMAIL_PROVIDER"):
        email.send_email(to_address="a@example.com", subject="s", html="<p>x</p>")
