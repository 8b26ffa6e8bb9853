from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, ForeignKey, Index, true
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reportdesk.db.base import Base, CreatedAtMixin, IDMixin

if TYPE_CHECKING:
    from reportdesk.models.user import User


class StudentSupervisorAssignment(IDMixin, CreatedAtMixin, Base):
    __tablename__ = "student_supervisor_assignments"

    student_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    supervisor_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    level_coordinator_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    student: Mapped["User"] = relationship(foreign_keys=[student_id])
    supervisor: Mapped["User"] = relationship(foreign_keys=[supervisor_id])
    coordinator: Mapped["User"] = relationship(foreign_keys=[level_coordinator_id])


# One active supervisor per student, enforced by the database.
Index(
    "uq_student_supervisor_assignments_active_student",
    StudentSupervisorAssignment.student_id,
    unique=True,
    sqlite_where=StudentSupervisorAssignment.is_active == true(),
    postgresql_where=StudentSupervisorAssignment.is_active == true(),
)
