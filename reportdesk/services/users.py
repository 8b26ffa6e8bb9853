from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from reportdesk.core.errors import NotFoundOrUnauthorized, ValidationError
from reportdesk.core.security import get_password_hash
from reportdesk.models.enums import Role
from reportdesk.models.user import User
from reportdesk.schemas.user import UserCreate, UserUpdate
from reportdesk.services.activity import log_activity

logger = logging.getLogger(__name__)


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if not user:
        raise NotFoundOrUnauthorized("User not found")
    return user


def _ensure_email_free(db: Session, email: str, *, exclude_id: Optional[int] = None) -> None:
    query = db.query(User).filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    if query.first():
        raise ValidationError("Email already exists")


def list_users(db: Session, role: Optional[Role] = None, include_inactive: bool = True) -> List[User]:
    query = db.query(User)
    if role is not None:
        query = query.filter(User.role == role)
    if not include_inactive:
        query = query.filter(User.is_active.is_(True))
    return query.order_by(User.created_at.desc(), User.id.desc()).all()


def create_user(db: Session, payload: UserCreate, *, actor: User) -> User:
    _ensure_email_free(db, payload.email)
    user = User(
        email=payload.email,
        hashed_password=get_password_hash(payload.password),
        full_name=payload.full_name.strip(),
        role=payload.role,
        phone=payload.phone,
        registration_number=payload.registration_number,
        department=payload.department,
        level=payload.level,
        is_active=payload.is_active,
    )
    db.add(user)
    db.flush()
    log_activity(
        db,
        actor_user_id=actor.id,
        action="Created User",
        resource_type="user",
        resource_id=user.id,
        payload={"email": user.email, "role": user.role.value},
    )
    return user


def update_user(db: Session, user_id: int, payload: UserUpdate, *, actor: User) -> User:
    user = _get_user_or_404(db, user_id)
    changes = payload.model_dump(exclude_unset=True)
    password = changes.pop("password", None)

    if "email" in changes and changes["email"] != user.email:
        _ensure_email_free(db, changes["email"], exclude_id=user.id)
    if user.id == actor.id and changes.get("is_active") is False:
        raise ValidationError("You cannot deactivate your own account")

    for field, value in changes.items():
        setattr(user, field, value)
    if password:
        user.hashed_password = get_password_hash(password)
    db.flush()

    log_activity(
        db,
        actor_user_id=actor.id,
        action="Updated User",
        resource_type="user",
        resource_id=user.id,
        payload={"fields": sorted(changes) + (["password"] if password else [])},
    )
    return user


def delete_user(db: Session, user_id: int, *, actor: User) -> None:
    """Hard-delete a user. Activity rows keep their history with a null actor.

    Databases that enforce the remaining foreign keys refuse the delete while
    reports, feedback or assignments still point at the user; that surfaces as
    a validation error asking for deactivation instead.
    """
    user = _get_user_or_404(db, user_id)
    if user.id == actor.id:
        raise ValidationError("You cannot delete your own account")
    details = {"email": user.email, "name": user.full_name}
    try:
        db.delete(user)
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        logger.warning("User %s still referenced, refusing delete", user_id)
        raise ValidationError("User has linked records; deactivate the account instead") from exc

    log_activity(
        db,
        actor_user_id=actor.id,
        action="Deleted User",
        resource_type="user",
        resource_id=user_id,
        payload=details,
    )
