from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reportdesk.db.base import Base, CreatedAtMixin, IDMixin

if TYPE_CHECKING:
    from reportdesk.models.report import Report
    from reportdesk.models.user import User


class Feedback(IDMixin, CreatedAtMixin, Base):
    __tablename__ = "feedback"

    report_id: Mapped[int] = mapped_column(ForeignKey("reports.id"), nullable=False, index=True)
    supervisor_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    comment: Mapped[str] = mapped_column(Text, nullable=False)
    # Free text; unknown values are stored as given and map to feedback_given.
    action_taken: Mapped[str] = mapped_column(String(50), nullable=False)

    report: Mapped["Report"] = relationship(back_populates="feedback")
    supervisor: Mapped["User"] = relationship()


class HodFeedback(IDMixin, CreatedAtMixin, Base):
    __tablename__ = "hod_feedback"

    report_id: Mapped[int] = mapped_column(ForeignKey("reports.id"), nullable=False, index=True)
    hod_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    comment: Mapped[str] = mapped_column(Text, nullable=False)

    report: Mapped["Report"] = relationship(back_populates="hod_feedback")
    hod: Mapped["User"] = relationship()
