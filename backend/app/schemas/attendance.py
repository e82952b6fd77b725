from datetime import date, datetime

from pydantic import BaseModel

from app.models.attendance import AttendanceStatus


class AttendanceMark(BaseModel):
    status: AttendanceStatus = AttendanceStatus.Present
    attendance_date: date | None = None


class AttendanceOut(BaseModel):
    id: str
    faculty_id: str
    faculty_name: str | None = None
    attendance_date: date
    status: AttendanceStatus
    recorded_at: datetime | None = None
