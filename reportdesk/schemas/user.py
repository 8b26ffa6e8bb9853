from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from reportdesk.models.enums import Role
from reportdesk.schemas.base import ORMModel

DEFAULT_DEPARTMENT = "Computer Science"


def _normalize_email(value: str) -> str:
    if "@" not in value:
        raise ValueError("Invalid email address")
    local, _, domain = value.partition("@")
    if not local or not domain:
        raise ValueError("Invalid email address")
    return value.strip().lower()


class UserSummary(ORMModel):
    id: int
    full_name: str
    email: str
    role: Role
    registration_number: Optional[str] = None
    department: Optional[str] = None
    level: Optional[str] = None


class UserRead(UserSummary):
    phone: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class UserCreate(ORMModel):
    email: str
    password: str = Field(..., min_length=4)
    full_name: str = Field(..., min_length=1)
    role: Role
    phone: Optional[str] = None
    registration_number: Optional[str] = None
    department: Optional[str] = DEFAULT_DEPARTMENT
    level: Optional[str] = None
    is_active: bool = True

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return _normalize_email(value)


class UserUpdate(ORMModel):
    email: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=4)
    full_name: Optional[str] = None
    role: Optional[Role] = None
    phone: Optional[str] = None
    registration_number: Optional[str] = None
    department: Optional[str] = None
    level: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        return _normalize_email(value)


class TokenResponse(ORMModel):
    access_token: str
    token_type: str = "bearer"
    user: UserRead
