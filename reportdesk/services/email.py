"""Outbound email transport.

``EMAIL_PROVIDER`` selects the transport: ``resend`` and ``postmark`` are
called over HTTPS, ``smtp`` talks to a relay, ``disabled`` refuses to send.
Every failure is raised as ``EmailSendError``; callers decide whether it
matters.
"""
from __future__ import annotations

import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from typing import Callable, Optional

import httpx

from reportdesk.core.settings import settings

HTTP_TIMEOUT_SECONDS = 15
PLAIN_FALLBACK = "Open this message in an HTML-capable mail client to read it."


@dataclass
class EmailSendResult:
    provider: str
    message_id: Optional[str] = None


class EmailSendError(RuntimeError):
    pass


@dataclass(frozen=True)
class _HttpProvider:
    name: str
    url: str
    build_payload: Callable[[str, str, str, Optional[str]], dict]
    auth_headers: Callable[[str], dict]
    id_field: str


def _resend_payload(to_address: str, subject: str, html: str, text: Optional[str]) -> dict:
    payload = {"from": settings.email_from, "to": [to_address], "subject": subject, "html": html}
    if text:
        payload["text"] = text
    return payload


def _postmark_payload(to_address: str, subject: str, html: str, text: Optional[str]) -> dict:
    payload = {"From": settings.email_from, "To": to_address, "Subject": subject, "HtmlBody": html}
    if text:
        payload["TextBody"] = text
    return payload


_HTTP_PROVIDERS = {
    "resend": _HttpProvider(
        name="Resend",
        url="https://api.resend.com/emails",
        build_payload=_resend_payload,
        auth_headers=lambda key: {"Authorization": f"Bearer {key}"},
        id_field="id",
    ),
    "postmark": _HttpProvider(
        name="Postmark",
        url="https://api.postmarkapp.com/email",
        build_payload=_postmark_payload,
        auth_headers=lambda key: {"X-Postmark-Server-Token": key, "Accept": "application/json"},
        id_field="MessageID",
    ),
}


def send_email(*, to_address: str, subject: str, html: str, text: str | None = None) -> EmailSendResult:
    provider = settings.email_provider
    if provider in {"disabled", "none", ""}:
        raise EmailSendError("EMAIL_PROVIDER disabled")
    if not settings.email_from:
        raise EmailSendError("EMAIL_FROM not configured")

    if provider == "smtp":
        return _send_smtp(to_address=to_address, subject=subject, html=html, text=text)
    http_provider = _HTTP_PROVIDERS.get(provider)
    if http_provider is None:
        raise EmailSendError(f"Unsupported EMAIL_PROVIDER: {provider}")
    return _send_http(http_provider, to_address=to_address, subject=subject, html=html, text=text)


def _send_http(provider: _HttpProvider, *, to_address: str, subject: str, html: str, text: str | None) -> EmailSendResult:
    if not settings.email_api_key:
        raise EmailSendError(f"EMAIL_API_KEY not configured for {provider.name}")
    try:
        with httpx.Client(timeout=HTTP_TIMEOUT_SECONDS) as client:
            response = client.post(
                provider.url,
                json=provider.build_payload(to_address, subject, html, text),
                headers=provider.auth_headers(settings.email_api_key),
            )
            response.raise_for_status()
            body = response.json()
    except httpx.HTTPStatusError as exc:
        raise EmailSendError(f"{provider.name} rejected the message: {exc.response.status_code} {exc.response.text}") from exc
    except (httpx.HTTPError, ValueError) as exc:
        raise EmailSendError(f"{provider.name} request failed: {exc}") from exc
    return EmailSendResult(provider=provider.name.lower(), message_id=body.get(provider.id_field))


def _send_smtp(*, to_address: str, subject: str, html: str, text: str | None) -> EmailSendResult:
    if not settings.smtp_host:
        raise EmailSendError("SMTP_HOST not configured")
    message = EmailMessage()
    message["Subject"] = subject
    message["From"] = settings.email_from
    message["To"] = to_address
    message.set_content(text or PLAIN_FALLBACK)
    message.add_alternative(html, subtype="html")

    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=HTTP_TIMEOUT_SECONDS) as relay:
            if settings.smtp_use_tls:
                relay.starttls()
            if settings.smtp_username and settings.smtp_password:
                relay.login(settings.smtp_username, settings.smtp_password)
            relay.send_message(message)
    except (smtplib.SMTPException, OSError) as exc:
        raise EmailSendError(f"SMTP delivery failed: {exc}") from exc
    return EmailSendResult(provider="smtp")
