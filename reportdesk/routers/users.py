from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from reportdesk.core.deps import require_roles
from reportdesk.db.session import get_db
from reportdesk.models.enums import Role
from reportdesk.models.user import User
from reportdesk.schemas.user import UserCreate, UserRead, UserUpdate
from reportdesk.services import users as user_service

router = APIRouter(prefix="/api/users", tags=["users"])

_admin = require_roles(Role.ADMIN)


@router.get("", response_model=List[UserRead])
def list_users(
    role: Role | None = Query(None),
    include_inactive: bool = Query(True),
    db: Session = Depends(get_db),
    _current_user: User = Depends(_admin),
) -> List[UserRead]:
    users = user_service.list_users(db, role=role, include_inactive=include_inactive)
    return [UserRead.model_validate(user) for user in users]


@router.post("", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_user(
    payload: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(_admin),
) -> UserRead:
    user = user_service.create_user(db, payload, actor=current_user)
    db.commit()
    db.refresh(user)
    return UserRead.model_validate(user)


@router.patch("/{user_id}", response_model=UserRead)
def update_user(
    user_id: int,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(_admin),
) -> UserRead:
    user = user_service.update_user(db, user_id, payload, actor=current_user)
    db.commit()
    db.refresh(user)
    return UserRead.model_validate(user)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(_admin),
) -> None:
    user_service.delete_user(db, user_id, actor=current_user)
    db.commit()
