from datetime import date, datetime

from pydantic import BaseModel, Field, model_validator

from app.models.leave_request import LeaveStatus, LeaveType


class LeaveRequestCreate(BaseModel):
    start_date: date
    end_date: date | None = None
    leave_type: LeaveType
    reason: str = Field(min_length=3, max_length=1000)

    @model_validator(mode="after")
    def validate_range(self) -> "LeaveRequestCreate":
        if self.end_date is None:
            self.end_date = self.start_date
        if self.end_date < self.start_date:
            raise ValueError("end_date cannot be before start_date")
        return self


class LeaveRequestStatusUpdate(BaseModel):
    status: LeaveStatus
    admin_comment: str | None = Field(default=None, max_length=1000)


class LeaveRequestOut(BaseModel):
    id: str
    faculty_id: str
    start_date: date
    end_date: date
    leave_type: LeaveType
    reason: str
    status: LeaveStatus
    admin_comment: str | None = None
    reviewed_by_id: str | None = None
    reviewed_at: datetime | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
