from __future__ import annotations

from datetime import datetime
from typing import Optional

from reportdesk.schemas.base import ORMModel


class ActivityRead(ORMModel):
    id: int
    actor_user_id: Optional[int] = None
    actor_name: Optional[str] = None
    action: str
    resource_type: Optional[str] = None
    resource_id: Optional[int] = None
    payload_json: Optional[dict] = None
    created_at: datetime
