from __future__ import annotations

import json
import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from reportdesk.core import rbac
from reportdesk.core.deps import get_current_user
from reportdesk.core.security import create_access_token, verify_password
from reportdesk.db.session import get_db
from reportdesk.models.user import User
from reportdesk.schemas.user import TokenResponse, UserRead
from reportdesk.services.activity import log_activity

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = logging.getLogger("security")


def _log_auth_event(event: str, *, request: Request, extra: dict | None = None) -> None:
    payload = {
        "event": event,
        "path": request.url.path,
        "client": request.client.host if request.client else None,
    }
    if extra:
        payload.update(extra)
    logger.info(json.dumps(payload, default=str))


@router.post("/login", response_model=TokenResponse)
def login(
    request: Request,
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
) -> TokenResponse:
    email = form_data.username.strip().lower()
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(form_data.password, user.hashed_password):
        _log_auth_event("login_failed", request=request, extra={"email": email})
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Incorrect email or password")
    if not user.is_active:
        _log_auth_event("login_inactive", request=request, extra={"user_id": user.id})
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User is inactive")

    log_activity(db, actor_user_id=user.id, action="login", resource_type="user", resource_id=user.id)
    db.commit()
    _log_auth_event("login_succeeded", request=request, extra={"user_id": user.id})

    token = create_access_token(user.id, role=user.role.value)
    return TokenResponse(access_token=token, user=UserRead.model_validate(user))


@router.get("/me", response_model=UserRead)
def get_me(current_user: User = Depends(get_current_user)) -> UserRead:
    return UserRead.model_validate(current_user)


@router.get("/capabilities", response_model=dict[str, bool])
def get_capabilities(current_user: User = Depends(get_current_user)) -> dict[str, bool]:
    return rbac.get_capabilities_for_user(current_user)
