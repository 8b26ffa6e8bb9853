from __future__ import annotations

from typing import Optional

from sqlalchemy import Boolean, Enum, String
from sqlalchemy.orm import Mapped, mapped_column

from reportdesk.db.base import Base, IDMixin, TimestampMixin
from reportdesk.models.enums import Role


class User(IDMixin, TimestampMixin, Base):
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    registration_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, index=True)
    role: Mapped[Role] = mapped_column(Enum(Role, name="role"), default=Role.STUDENT, nullable=False, index=True)
    department: Mapped[Optional[str]] = mapped_column(String(255), nullable=True, index=True)
    level: Mapped[Optional[str]] = mapped_column(String(50), nullable=True, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<User id={self.id} email={self.email!r} role={self.role.value if self.role else None}>"
