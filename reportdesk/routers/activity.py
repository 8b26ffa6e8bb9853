from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from reportdesk.core.deps import require_roles
from reportdesk.db.session import get_db
from reportdesk.models.enums import Role
from reportdesk.models.user import User
from reportdesk.schemas.audit import ActivityRead
from reportdesk.services.activity import DEFAULT_FEED_SIZE, recent_activity

router = APIRouter(prefix="/api/activity", tags=["activity"])


@router.get("", response_model=List[ActivityRead])
def list_activity(
    action: Optional[str] = Query(None),
    actor_user_id: Optional[int] = Query(None),
    resource_type: Optional[str] = Query(None),
    limit: int = Query(DEFAULT_FEED_SIZE, ge=1, le=500),
    db: Session = Depends(get_db),
    _current_user: User = Depends(require_roles(Role.ADMIN)),
) -> List[ActivityRead]:
    rows = recent_activity(
        db,
        action=action,
        actor_user_id=actor_user_id,
        resource_type=resource_type,
        limit=limit,
    )
    results: List[ActivityRead] = []
    for row in rows:
        item = ActivityRead.model_validate(row)
        item.actor_name = row.actor.full_name if row.actor else "System"
        results.append(item)
    return results
