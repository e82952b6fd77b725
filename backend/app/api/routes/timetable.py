from collections import defaultdict

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_actor, get_db, require_roles
from app.core.security import Actor, UserRole
from app.models.notification import NotificationType
from app.schemas.timetable import (
    WEEKDAY_VALUES,
    ClassTimetablePublish,
    FacultyWeeklyTimetable,
    PublishSummary,
    WeeklyEntryOut,
)
from app.services.audit import log_activity
from app.services.faculty_directory import FacultyDirectory
from app.services.notifications import notify_faculty
from app.services.periods import PeriodCalendar
from app.services.timetable_store import WeeklyTimetableStore

router = APIRouter()


@router.put("/classes", response_model=PublishSummary)
def publish_class_timetable(
    payload: ClassTimetablePublish,
    current_actor: Actor = Depends(require_roles(UserRole.admin, UserRole.scheduler)),
    db: Session = Depends(get_db),
) -> PublishSummary:
    summary = WeeklyTimetableStore(db).publish_class_timetable(payload, published_by_id=current_actor.id)

    affected = {
        item
        for entry in payload.entries
        for item in (entry.faculty_id, entry.secondary_faculty_id)
        if item
    }
    notify_faculty(
        db,
        faculty_ids=sorted(affected),
        title="Timetable Published",
        message=(
            f"The weekly timetable for year {payload.year} section {payload.section} "
            f"(semester {payload.semester}) has been published."
        ),
        notification_type=NotificationType.timetable,
    )
    log_activity(
        db,
        actor_id=current_actor.id,
        action="timetable.publish",
        entity_type="weekly_timetable",
        entity_id=f"{payload.department_id}:{payload.year}:{payload.semester}:{payload.section}",
        department_id=payload.department_id,
        details=summary.model_dump(),
    )
    db.commit()
    return summary


@router.get("/classes", response_model=list[WeeklyEntryOut])
def get_class_timetable(
    department_id: str = Query(min_length=1),
    year: int = Query(ge=1),
    semester: int = Query(ge=1),
    section: str = Query(min_length=1),
    current_actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> list[WeeklyEntryOut]:
    FacultyDirectory(db).get_department(department_id)
    calendar = PeriodCalendar()
    entries = WeeklyTimetableStore(db, calendar).get_entries_for_class(
        department_id=department_id,
        year=year,
        semester=semester,
        section=section.strip().upper(),
    )
    day_order = {day: index for index, day in enumerate(WEEKDAY_VALUES)}
    entries.sort(key=lambda item: (day_order.get(item.weekday, len(day_order)), calendar.sort_key(item.period_id)))
    return entries


@router.get("/faculty/{faculty_id}", response_model=FacultyWeeklyTimetable)
def get_faculty_timetable(
    faculty_id: str,
    current_actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> FacultyWeeklyTimetable:
    if current_actor.role == UserRole.faculty and current_actor.id != faculty_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
    faculty = FacultyDirectory(db).get_faculty(faculty_id)
    calendar = PeriodCalendar()

    days: dict[str, list[WeeklyEntryOut]] = defaultdict(list)
    for entry in WeeklyTimetableStore(db, calendar).get_entries_for_faculty(faculty.id):
        days[entry.weekday].append(WeeklyEntryOut.model_validate(entry))

    return FacultyWeeklyTimetable(
        faculty_id=faculty.id,
        faculty_name=faculty.name,
        days={
            day: sorted(days[day], key=lambda item: calendar.sort_key(item.period_id))
            for day in WEEKDAY_VALUES
            if day in days
        },
    )
