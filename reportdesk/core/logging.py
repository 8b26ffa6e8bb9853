"""Structured JSON logging and per-request access logs.

Every record is one JSON object on stdout. Workflow code attaches the ids it
is acting on through ``extra=`` (``report_id``, ``student_id`` ...) and the
formatter copies any of the known keys into the payload.
"""
from __future__ import annotations

import json
import logging
import sys
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import Request, Response
from jose import JWTError
from starlette.middleware.base import BaseHTTPMiddleware

from reportdesk.core.security import decode_token

CONTEXT_FIELDS = (
    "request_id",
    "user_id",
    "role",
    "method",
    "path",
    "status_code",
    "duration_ms",
    "content_length",
    "report_id",
    "student_id",
    "supervisor_id",
    "assignment_id",
)

# Access lines come from RequestLoggingMiddleware.
_QUIET_LOGGERS = ("uvicorn.access", "passlib")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update({name: getattr(record, name) for name in CONTEXT_FIELDS if hasattr(record, name)})
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def configure_logging(level: str = "INFO") -> None:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter())
    logging.basicConfig(level=level.upper(), handlers=[handler], force=True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def _token_claims(request: Request) -> dict:
    scheme, _, token = (request.headers.get("authorization") or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return {}
    try:
        return decode_token(token.strip())
    except JWTError:
        return {}


def _caller(request: Request) -> tuple[Optional[int], Optional[str]]:
    claims = _token_claims(request)
    try:
        user_id = int(claims["sub"]) if claims.get("sub") is not None else None
    except (TypeError, ValueError):
        user_id = None
    return user_id, claims.get("role")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """One access line per request, tagged with a request id echoed back to the client."""

    def __init__(self, app, logger_name: str = "request") -> None:
        super().__init__(app)
        self.logger = logging.getLogger(logger_name)
        self.security_logger = logging.getLogger("security")

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
        request.state.request_id = request_id
        started = time.perf_counter()
        context = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "content_length": request.headers.get("content-length"),
        }

        try:
            response = await call_next(request)
        except Exception:
            user_id, role = _caller(request)
            self.logger.exception(
                "request failed",
                extra={**context, "user_id": user_id, "role": role, "duration_ms": _elapsed_ms(started)},
            )
            raise

        user_id, role = _caller(request)
        context.update(user_id=user_id, role=role, status_code=response.status_code)
        self.logger.info("request", extra={**context, "duration_ms": _elapsed_ms(started)})
        if response.status_code == 403 and user_id is not None:
            self.security_logger.info("role check refused", extra=context)

        response.headers["X-Request-Id"] = request_id
        return response


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
