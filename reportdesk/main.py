from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from reportdesk.core.errors import ReportDeskError
from reportdesk.core.logging import RequestLoggingMiddleware, configure_logging
from reportdesk.core.observability import PrometheusMiddleware, metrics_endpoint
from reportdesk.core.settings import settings
from reportdesk.db.session import get_db
from reportdesk.modules.router_registry import include_all_routers

configure_logging(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title=settings.project_name, version=settings.project_version)

allow_origin_regex = None
if not settings.is_production:
    allow_origin_regex = r"^http://(localhost|127\.0\.0\.1)(:\d+)?$"
else:
    if any(origin.strip() == "*" for origin in settings.allow_origins):
        raise RuntimeError("ALLOW_ORIGINS cannot include '*' in production")
    if settings.jwt_secret.startswith("change_me"):
        raise RuntimeError("JWT_SECRET must be set in production")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allow_origins,
    allow_origin_regex=allow_origin_regex,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Authorization", "Content-Type", "X-Request-Id", "Accept"],
)
app.add_middleware(PrometheusMiddleware)
app.add_middleware(RequestLoggingMiddleware)

app.add_api_route("/metrics", metrics_endpoint, methods=["GET"], tags=["observability"], include_in_schema=False)


@app.exception_handler(ReportDeskError)
async def handle_domain_error(request: Request, exc: ReportDeskError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s %s", exc.code, request.method, request.url.path)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message, "error": exc.code})


include_all_routers(app)


@app.get("/healthz", tags=["health"])
def healthcheck(db: Session = Depends(get_db)) -> dict[str, str]:
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.error("Healthcheck failed: %s", exc, exc_info=True)
        raise HTTPException(status_code=503, detail="Database unavailable") from exc

    uploads_path = settings.ensure_uploads_dir()
    probe = uploads_path / ".healthcheck"
    try:
        probe.touch()
        probe.unlink()
    except OSError as exc:
        logger.error("Uploads directory not writable: %s", uploads_path)
        raise HTTPException(status_code=503, detail="Uploads directory not writable") from exc

    return {"status": "ok", "database": "ok", "uploads_dir": "ok"}


@app.get("/version", tags=["health"])
def version() -> dict[str, str]:
    return {
        "version": settings.project_version,
        "environment": settings.environment,
    }
