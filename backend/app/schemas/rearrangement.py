from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from app.models.rearrangement_request import RearrangementResolution, RearrangementStatus


class AvailabilityCandidate(BaseModel):
    id: str
    name: str
    designation: str
    department_id: str

    model_config = {"from_attributes": True}


class AvailabilityOut(BaseModel):
    department_id: str
    date: date
    weekday: str
    period_id: str
    count: int
    candidates: list[AvailabilityCandidate]


class RearrangementCreate(BaseModel):
    date: date
    period_id: str = Field(min_length=1, max_length=20)
    department_id: str = Field(min_length=1, max_length=36)
    substitute_faculty_id: str = Field(min_length=1, max_length=36)
    original_faculty_id: str | None = Field(default=None, max_length=36)
    subject_name: str | None = Field(default=None, max_length=200)
    class_label: str | None = Field(default=None, max_length=100)

    @field_validator("period_id")
    @classmethod
    def normalize_period(cls, value: str) -> str:
        return value.strip().upper()


class RearrangementRespond(BaseModel):
    decision: Literal["accept", "reject"]
    response_note: str | None = Field(default=None, max_length=1000)


class RearrangementCancel(BaseModel):
    reason: str | None = Field(default=None, max_length=1000)


class RearrangementOut(BaseModel):
    id: str
    request_date: date
    period_id: str
    department_id: str
    year: int | None = None
    semester: int | None = None
    section: str | None = None
    class_label: str
    subject_name: str
    room: str | None = None
    original_faculty_id: str
    original_faculty_name: str
    substitute_faculty_id: str
    substitute_faculty_name: str
    status: RearrangementStatus
    resolution: RearrangementResolution | None = None
    response_note: str | None = None
    responded_at: datetime | None = None
    created_by_id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    model_config = {"from_attributes": True}


class ExpireStaleRequest(BaseModel):
    before: date | None = None


class ExpireStaleSummary(BaseModel):
    before: date
    expired_count: int
