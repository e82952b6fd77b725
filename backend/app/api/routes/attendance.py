from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_current_faculty, get_db, require_roles
from app.core.security import Actor, UserRole
from app.models.attendance import FacultyAttendance
from app.models.faculty import Faculty
from app.schemas.attendance import AttendanceMark, AttendanceOut
from app.services.audit import log_activity
from app.services.faculty_directory import FacultyDirectory

router = APIRouter()


def _attendance_out(record: FacultyAttendance, faculty_name: str | None) -> AttendanceOut:
    return AttendanceOut(
        id=record.id,
        faculty_id=record.faculty_id,
        faculty_name=faculty_name,
        attendance_date=record.attendance_date,
        status=record.status,
        recorded_at=record.recorded_at,
    )


@router.post("/attendance", response_model=AttendanceOut)
def mark_attendance(
    payload: AttendanceMark,
    current_faculty: Faculty = Depends(get_current_faculty),
    db: Session = Depends(get_db),
) -> AttendanceOut:
    attendance_date = payload.attendance_date or datetime.now(timezone.utc).date()
    record = db.execute(
        select(FacultyAttendance).where(
            FacultyAttendance.faculty_id == current_faculty.id,
            FacultyAttendance.attendance_date == attendance_date,
        )
    ).scalar_one_or_none()
    if record is None:
        record = FacultyAttendance(
            faculty_id=current_faculty.id,
            attendance_date=attendance_date,
            status=payload.status,
        )
        db.add(record)
    else:
        record.status = payload.status
    db.flush()
    log_activity(
        db,
        actor_id=current_faculty.id,
        action="attendance.mark",
        entity_type="faculty_attendance",
        entity_id=record.id,
        department_id=current_faculty.department_id,
        occurred_on=attendance_date,
        details={"date": attendance_date.isoformat(), "status": payload.status.value},
    )
    db.commit()
    db.refresh(record)
    return _attendance_out(record, current_faculty.name)


@router.get("/attendance", response_model=list[AttendanceOut])
def list_attendance(
    attendance_date: date = Query(alias="date"),
    department_id: str | None = Query(default=None),
    current_actor: Actor = Depends(require_roles(UserRole.admin, UserRole.scheduler)),
    db: Session = Depends(get_db),
) -> list[AttendanceOut]:
    query = (
        select(FacultyAttendance, Faculty.name)
        .join(Faculty, Faculty.id == FacultyAttendance.faculty_id)
        .where(FacultyAttendance.attendance_date == attendance_date)
        .order_by(Faculty.name, Faculty.id)
    )
    if department_id:
        FacultyDirectory(db).get_department(department_id)
        query = query.where(Faculty.department_id == department_id)
    return [_attendance_out(record, name) for record, name in db.execute(query).all()]
