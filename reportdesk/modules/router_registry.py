"""Central router registry for module-oriented composition."""
from __future__ import annotations

from fastapi import FastAPI

from reportdesk.routers import activity, assignments, auth, dashboard, feedback, files, reports, users

ALL_ROUTERS = (
    auth.router,
    users.router,
    assignments.router,
    feedback.router,
    reports.router,
    files.router,
    dashboard.router,
    activity.router,
)


def include_all_routers(app: FastAPI) -> None:
    for router in ALL_ROUTERS:
        app.include_router(router)
