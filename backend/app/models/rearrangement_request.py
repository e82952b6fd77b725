import uuid
from datetime import date, datetime, timezone
from enum import Enum

from sqlalchemy import Boolean, Date, DateTime, Enum as SAEnum, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class RearrangementStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    rejected = "rejected"


class RearrangementResolution(str, Enum):
    accepted = "accepted"
    declined = "declined"
    cancelled = "cancelled"
    superseded = "superseded"
    expired = "expired"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


TERMINAL_STATUSES = frozenset({RearrangementStatus.accepted, RearrangementStatus.rejected})

# Partial unique indexes back the two live-record invariants at the database level.
_LIVE_STATUS_CLAUSE = text("status IN ('pending', 'accepted')")
_ACCEPTED_STATUS_CLAUSE = text("status = 'accepted'")


class RearrangementRequest(Base):
    __tablename__ = "rearrangement_requests"
    __table_args__ = (
        Index(
            "uq_rearrangement_live_per_original",
            "request_date",
            "period_id",
            "original_faculty_id",
            unique=True,
            sqlite_where=_LIVE_STATUS_CLAUSE,
            postgresql_where=_LIVE_STATUS_CLAUSE,
        ),
        Index(
            "uq_rearrangement_accepted_per_substitute",
            "request_date",
            "period_id",
            "substitute_faculty_id",
            unique=True,
            sqlite_where=_ACCEPTED_STATUS_CLAUSE,
            postgresql_where=_ACCEPTED_STATUS_CLAUSE,
        ),
        Index("ix_rearrangement_requests_date_period", "request_date", "period_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    request_date: Mapped[date] = mapped_column(Date, nullable=False)
    period_id: Mapped[str] = mapped_column(String(20), nullable=False)
    department_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    year: Mapped[int | None] = mapped_column(Integer, nullable=True)
    semester: Mapped[int | None] = mapped_column(Integer, nullable=True)
    section: Mapped[str | None] = mapped_column(String(20), nullable=True)
    class_label: Mapped[str] = mapped_column(String(100), nullable=False)
    subject_name: Mapped[str] = mapped_column(String(200), nullable=False)
    room: Mapped[str | None] = mapped_column(String(100), nullable=True)
    original_faculty_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    original_faculty_name: Mapped[str] = mapped_column(String(200), nullable=False)
    substitute_faculty_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    substitute_faculty_name: Mapped[str] = mapped_column(String(200), nullable=False)
    status: Mapped[RearrangementStatus] = mapped_column(
        SAEnum(RearrangementStatus, name="rearrangement_status"),
        nullable=False,
        default=RearrangementStatus.pending,
        index=True,
    )
    resolution: Mapped[RearrangementResolution | None] = mapped_column(
        SAEnum(RearrangementResolution, name="rearrangement_resolution"),
        nullable=True,
    )
    response_note: Mapped[str | None] = mapped_column(Text, nullable=True)
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    hidden_by_original: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    hidden_by_substitute: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_by_id: Mapped[str] = mapped_column(String(36), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utc_now, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES
