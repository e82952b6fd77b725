from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from app.models.weekly_schedule import SubjectType

WEEKDAY_VALUES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
WEEKDAY_SHORT_MAP = {
    "Mon": "Monday",
    "Tue": "Tuesday",
    "Wed": "Wednesday",
    "Thu": "Thursday",
    "Fri": "Friday",
    "Sat": "Saturday",
}


def normalize_weekday(value: str) -> str:
    day = value.strip()
    day = WEEKDAY_SHORT_MAP.get(day[:3].title(), day) if len(day) == 3 else day.title()
    if day not in WEEKDAY_VALUES:
        raise ValueError(f"Invalid weekday '{value}', expected Monday-Saturday")
    return day


class WeeklyEntryPayload(BaseModel):
    weekday: str
    period_id: str = Field(min_length=1, max_length=20)
    is_break: bool = False
    subject_id: str | None = Field(default=None, max_length=36)
    subject_name: str | None = Field(default=None, max_length=200)
    subject_type: SubjectType | None = None
    span: int = Field(default=1, ge=1, le=4)
    faculty_id: str | None = Field(default=None, max_length=36)
    secondary_faculty_id: str | None = Field(default=None, max_length=36)
    room: str | None = Field(default=None, max_length=100)

    @field_validator("weekday")
    @classmethod
    def validate_weekday(cls, value: str) -> str:
        return normalize_weekday(value)

    @field_validator("period_id")
    @classmethod
    def normalize_period(cls, value: str) -> str:
        return value.strip().upper()

    @model_validator(mode="after")
    def validate_kind(self) -> "WeeklyEntryPayload":
        if self.is_break:
            if self.faculty_id or self.secondary_faculty_id:
                raise ValueError(f"Break period {self.period_id} cannot carry faculty")
            self.span = 1
            return self
        if not self.subject_name or not self.faculty_id:
            raise ValueError(f"Teaching period {self.period_id} requires subject_name and faculty_id")
        if self.subject_type is None:
            self.subject_type = SubjectType.Theory
        if self.subject_type == SubjectType.Theory:
            if self.secondary_faculty_id:
                raise ValueError("Only lab entries may have a secondary faculty")
            if self.span != 1:
                raise ValueError("Only lab entries may span multiple periods")
        if self.secondary_faculty_id and self.secondary_faculty_id == self.faculty_id:
            raise ValueError("Secondary faculty must differ from the primary faculty")
        return self


class ClassTimetablePublish(BaseModel):
    department_id: str = Field(min_length=1, max_length=36)
    year: int = Field(ge=1, le=6)
    semester: int = Field(ge=1, le=12)
    section: str = Field(min_length=1, max_length=20)
    entries: list[WeeklyEntryPayload] = Field(default_factory=list, max_length=200)

    @field_validator("section")
    @classmethod
    def normalize_section(cls, value: str) -> str:
        return value.strip().upper()

    @model_validator(mode="after")
    def validate_unique_slots(self) -> "ClassTimetablePublish":
        seen: set[tuple[str, str]] = set()
        duplicates: set[str] = set()
        for entry in self.entries:
            key = (entry.weekday, entry.period_id)
            if key in seen:
                duplicates.add(f"{entry.weekday}/{entry.period_id}")
            seen.add(key)
        if duplicates:
            raise ValueError(f"Duplicate weekday/period entries: {', '.join(sorted(duplicates))}")
        return self


class WeeklyEntryOut(BaseModel):
    id: str
    department_id: str
    year: int
    semester: int
    section: str
    weekday: str
    period_id: str
    is_break: bool
    span: int
    subject_id: str | None = None
    subject_name: str | None = None
    subject_type: SubjectType | None = None
    faculty_id: str | None = None
    faculty_name: str | None = None
    secondary_faculty_id: str | None = None
    secondary_faculty_name: str | None = None
    room: str | None = None

    model_config = {"from_attributes": True}


class PublishSummary(BaseModel):
    department_id: str
    year: int
    semester: int
    section: str
    replaced: int
    published: int


class FacultyWeeklyTimetable(BaseModel):
    faculty_id: str
    faculty_name: str
    role: Literal["consolidated"] = "consolidated"
    days: dict[str, list[WeeklyEntryOut]]
