import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class SubjectType(str, Enum):
    Theory = "Theory"
    Lab = "Lab"


class WeeklyScheduleEntry(Base):
    __tablename__ = "weekly_schedule_entries"
    __table_args__ = (
        UniqueConstraint(
            "department_id",
            "year",
            "semester",
            "section",
            "weekday",
            "period_id",
            name="uq_weekly_schedule_entry_slot",
        ),
        Index("ix_weekly_schedule_entries_department_weekday", "department_id", "weekday"),
        Index("ix_weekly_schedule_entries_faculty_weekday", "faculty_id", "weekday"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    department_id: Mapped[str] = mapped_column(String(36), nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    semester: Mapped[int] = mapped_column(Integer, nullable=False)
    section: Mapped[str] = mapped_column(String(20), nullable=False)
    weekday: Mapped[str] = mapped_column(String(10), nullable=False)
    period_id: Mapped[str] = mapped_column(String(20), nullable=False)
    is_break: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    span: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    subject_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    subject_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    subject_type: Mapped[SubjectType | None] = mapped_column(
        SAEnum(SubjectType, name="subject_type"),
        nullable=True,
    )
    faculty_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    faculty_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    secondary_faculty_id: Mapped[str | None] = mapped_column(String(36), nullable=True, index=True)
    secondary_faculty_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    room: Mapped[str | None] = mapped_column(String(100), nullable=True)
    published_by_id: Mapped[str | None] = mapped_column(String(36), nullable=True)
    published_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
