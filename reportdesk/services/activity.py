"""Append-only audit trail of workflow actions.

Entries are flushed with the caller's transaction so an action and its log
line commit or roll back together.
"""
from __future__ import annotations

from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from reportdesk.models.audit import ActivityLog

DEFAULT_FEED_SIZE = 100


def log_activity(
    db: Session,
    *,
    actor_user_id: Optional[int],
    action: str,
    resource_type: Optional[str] = None,
    resource_id: Optional[int] = None,
    payload: Optional[dict] = None,
) -> ActivityLog:
    entry = ActivityLog(
        actor_user_id=actor_user_id,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        payload_json={key: value for key, value in payload.items() if value is not None} if payload else None,
    )
    db.add(entry)
    db.flush()
    return entry


def recent_activity(
    db: Session,
    *,
    action: Optional[str] = None,
    actor_user_id: Optional[int] = None,
    resource_type: Optional[str] = None,
    limit: int = DEFAULT_FEED_SIZE,
) -> List[ActivityLog]:
    """Newest entries first, with the acting user loaded."""
    query = db.query(ActivityLog).options(joinedload(ActivityLog.actor))
    if action:
        query = query.filter(ActivityLog.action == action)
    if actor_user_id is not None:
        query = query.filter(ActivityLog.actor_user_id == actor_user_id)
    if resource_type:
        query = query.filter(ActivityLog.resource_type == resource_type)
    return query.order_by(ActivityLog.created_at.desc(), ActivityLog.id.desc()).limit(limit).all()
