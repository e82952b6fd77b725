from datetime import date
from enum import Enum

from pydantic import BaseModel

from app.models.weekly_schedule import SubjectType


class EffectivePeriodStatus(str, Enum):
    scheduled = "scheduled"
    substituted = "substituted"
    covered = "covered"
    covering = "covering"
    free = "free"


class ClassScope(BaseModel):
    department_id: str
    year: int
    semester: int
    section: str


class EffectivePeriod(BaseModel):
    period_id: str
    is_break: bool = False
    status: EffectivePeriodStatus
    subject_name: str | None = None
    subject_type: SubjectType | None = None
    class_label: str | None = None
    room: str | None = None
    anchor_period_id: str | None = None
    faculty_id: str | None = None
    faculty_name: str | None = None
    secondary_faculty_name: str | None = None
    original_faculty_id: str | None = None
    original_faculty_name: str | None = None
    substitute_faculty_id: str | None = None
    substitute_faculty_name: str | None = None
    rearrangement_id: str | None = None
    note: str | None = None


class EffectiveSchedule(BaseModel):
    date: date
    weekday: str
    scope_type: str
    faculty_id: str | None = None
    class_scope: ClassScope | None = None
    periods: list[EffectivePeriod]
