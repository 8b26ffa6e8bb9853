from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, MetaData, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Names match the ones spelled out in alembic/versions.
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


class Base(DeclarativeBase):
    metadata = MetaData(naming_convention=NAMING_CONVENTION)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def timestamp_column(*, touch_on_update: bool = False) -> Mapped[datetime]:
    """Timezone-aware timestamp filled by Python and, for raw inserts, by the database."""
    return mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow if touch_on_update else None,
        server_default=func.now(),
    )


class IDMixin:
    id: Mapped[int] = mapped_column(primary_key=True, index=True)


class CreatedAtMixin:
    created_at: Mapped[datetime] = timestamp_column()


class TimestampMixin(CreatedAtMixin):
    updated_at: Mapped[datetime] = timestamp_column(touch_on_update=True)
