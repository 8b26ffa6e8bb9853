from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING, List

from sqlalchemy import Enum, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from reportdesk.db.base import Base, IDMixin, timestamp_column
from reportdesk.models.enums import ReportStage, ReportStatus

if TYPE_CHECKING:
    from reportdesk.models.feedback import Feedback, HodFeedback
    from reportdesk.models.user import User


class Report(IDMixin, Base):
    __tablename__ = "reports"

    student_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    supervisor_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    report_stage: Mapped[ReportStage] = mapped_column(
        Enum(ReportStage, name="report_stage"),
        nullable=False,
        index=True,
    )
    file_url: Mapped[str] = mapped_column(String(500), nullable=False)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    status: Mapped[ReportStatus] = mapped_column(
        Enum(ReportStatus, name="report_status"),
        default=ReportStatus.PENDING,
        nullable=False,
        index=True,
    )
    submitted_at: Mapped[datetime] = timestamp_column()
    updated_at: Mapped[datetime] = timestamp_column(touch_on_update=True)

    student: Mapped["User"] = relationship(foreign_keys=[student_id])
    supervisor: Mapped["User"] = relationship(foreign_keys=[supervisor_id])
    feedback: Mapped[List["Feedback"]] = relationship(
        back_populates="report",
        order_by="Feedback.created_at.desc()",
    )
    hod_feedback: Mapped[List["HodFeedback"]] = relationship(
        back_populates="report",
        order_by="HodFeedback.created_at.desc()",
    )
