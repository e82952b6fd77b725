from __future__ import annotations

from collections.abc import Iterable
from datetime import date

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.attendance import AttendanceStatus, FacultyAttendance
from app.models.leave_request import LeaveRequest, LeaveStatus


class AbsenceStore:
    """Approved leave and full-day absences, as seen by the availability check."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def is_on_approved_leave(self, faculty_id: str, on_date: date) -> bool:
        return faculty_id in self.faculty_on_leave(on_date, [faculty_id])

    def faculty_on_leave(self, on_date: date, faculty_ids: Iterable[str] | None = None) -> set[str]:
        ids = None if faculty_ids is None else list(dict.fromkeys(faculty_ids))
        if ids == []:
            return set()

        leave_query = select(LeaveRequest.faculty_id).where(
            LeaveRequest.status == LeaveStatus.approved,
            LeaveRequest.start_date <= on_date,
            LeaveRequest.end_date >= on_date,
        )
        absent_query = select(FacultyAttendance.faculty_id).where(
            FacultyAttendance.attendance_date == on_date,
            FacultyAttendance.status == AttendanceStatus.Absent,
        )
        if ids is not None:
            leave_query = leave_query.where(LeaveRequest.faculty_id.in_(ids))
            absent_query = absent_query.where(FacultyAttendance.faculty_id.in_(ids))

        on_leave = set(self.db.execute(leave_query).scalars())
        on_leave.update(self.db.execute(absent_query).scalars())
        return on_leave
