from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import delete, or_, select
from sqlalchemy.orm import Session

from app.core.exceptions import InvalidRequestError, ResourceNotFoundError
from app.models.department import Department
from app.models.faculty import Faculty
from app.models.weekly_schedule import SubjectType, WeeklyScheduleEntry
from app.schemas.timetable import ClassTimetablePublish, PublishSummary
from app.services.periods import PeriodCalendar

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OccupiedPeriod:
    """One weekly entry projected onto a single period it occupies."""

    entry: WeeklyScheduleEntry
    period_id: str


class WeeklyTimetableStore:
    """Read access to the published weekly timetable, plus the wholesale publish step."""

    def __init__(self, db: Session, calendar: PeriodCalendar | None = None) -> None:
        self.db = db
        self.calendar = calendar or PeriodCalendar()

    def get_entries_for_weekday(self, department_id: str, weekday: str) -> list[WeeklyScheduleEntry]:
        return list(
            self.db.execute(
                select(WeeklyScheduleEntry).where(
                    WeeklyScheduleEntry.department_id == department_id,
                    WeeklyScheduleEntry.weekday == weekday,
                )
            ).scalars()
        )

    def get_entries_for_faculty(self, faculty_id: str, weekday: str | None = None) -> list[WeeklyScheduleEntry]:
        return self.get_entries_for_faculty_set([faculty_id], weekday)

    def get_entries_for_faculty_set(
        self,
        faculty_ids: Iterable[str],
        weekday: str | None = None,
    ) -> list[WeeklyScheduleEntry]:
        ids = list(dict.fromkeys(item for item in faculty_ids if item))
        if not ids:
            return []
        query = select(WeeklyScheduleEntry).where(
            WeeklyScheduleEntry.is_break.is_(False),
            or_(
                WeeklyScheduleEntry.faculty_id.in_(ids),
                WeeklyScheduleEntry.secondary_faculty_id.in_(ids),
            ),
        )
        if weekday is not None:
            query = query.where(WeeklyScheduleEntry.weekday == weekday)
        return list(self.db.execute(query).scalars())

    def get_entries_for_class(
        self,
        *,
        department_id: str,
        year: int,
        semester: int,
        section: str,
        weekday: str | None = None,
    ) -> list[WeeklyScheduleEntry]:
        query = select(WeeklyScheduleEntry).where(
            WeeklyScheduleEntry.department_id == department_id,
            WeeklyScheduleEntry.year == year,
            WeeklyScheduleEntry.semester == semester,
            WeeklyScheduleEntry.section == section,
        )
        if weekday is not None:
            query = query.where(WeeklyScheduleEntry.weekday == weekday)
        return list(self.db.execute(query).scalars())

    def expand(self, entries: Iterable[WeeklyScheduleEntry]) -> list[OccupiedPeriod]:
        occupied: list[OccupiedPeriod] = []
        for entry in entries:
            span = entry.span if entry.subject_type == SubjectType.Lab else 1
            for period_id in self.calendar.covered_periods(entry.period_id, span):
                occupied.append(OccupiedPeriod(entry=entry, period_id=period_id))
        return occupied

    def entries_covering(
        self,
        entries: Iterable[WeeklyScheduleEntry],
        period_id: str,
    ) -> list[WeeklyScheduleEntry]:
        return [
            item.entry
            for item in self.expand(entries)
            if item.period_id == period_id and not item.entry.is_break
        ]

    def publish_class_timetable(self, payload: ClassTimetablePublish, *, published_by_id: str) -> PublishSummary:
        if self.db.get(Department, payload.department_id) is None:
            raise ResourceNotFoundError("Department", payload.department_id)

        faculty_ids = {
            item
            for entry in payload.entries
            for item in (entry.faculty_id, entry.secondary_faculty_id)
            if item
        }
        faculty_by_id = {
            item.id: item
            for item in self.db.execute(select(Faculty).where(Faculty.id.in_(faculty_ids))).scalars()
        }
        missing = sorted(faculty_ids - set(faculty_by_id))
        if missing:
            raise InvalidRequestError(
                f"Unknown faculty id(s): {', '.join(missing)}",
                details={"faculty_ids": missing},
            )
        self._validate_spans(payload)

        replaced = self.db.execute(
            delete(WeeklyScheduleEntry).where(
                WeeklyScheduleEntry.department_id == payload.department_id,
                WeeklyScheduleEntry.year == payload.year,
                WeeklyScheduleEntry.semester == payload.semester,
                WeeklyScheduleEntry.section == payload.section,
            )
        ).rowcount

        for entry in payload.entries:
            primary = faculty_by_id.get(entry.faculty_id) if entry.faculty_id else None
            secondary = faculty_by_id.get(entry.secondary_faculty_id) if entry.secondary_faculty_id else None
            self.db.add(
                WeeklyScheduleEntry(
                    department_id=payload.department_id,
                    year=payload.year,
                    semester=payload.semester,
                    section=payload.section,
                    weekday=entry.weekday,
                    period_id=entry.period_id,
                    is_break=entry.is_break,
                    span=entry.span,
                    subject_id=entry.subject_id,
                    subject_name=entry.subject_name,
                    subject_type=None if entry.is_break else entry.subject_type,
                    faculty_id=primary.id if primary else None,
                    faculty_name=primary.name if primary else None,
                    secondary_faculty_id=secondary.id if secondary else None,
                    secondary_faculty_name=secondary.name if secondary else None,
                    room=entry.room,
                    published_by_id=published_by_id,
                )
            )

        logger.info(
            "Published weekly timetable for %s year %s sem %s section %s (%d entries, %d replaced)",
            payload.department_id,
            payload.year,
            payload.semester,
            payload.section,
            len(payload.entries),
            replaced or 0,
        )
        return PublishSummary(
            department_id=payload.department_id,
            year=payload.year,
            semester=payload.semester,
            section=payload.section,
            replaced=replaced or 0,
            published=len(payload.entries),
        )

    def _validate_spans(self, payload: ClassTimetablePublish) -> None:
        occupied: dict[tuple[str, str], str] = {}
        for entry in payload.entries:
            if not self.calendar.span_fits(entry.period_id, entry.span):
                raise InvalidRequestError(
                    f"{entry.weekday} {entry.period_id} spans {entry.span} periods past the end of the day"
                )
            for period_id in self.calendar.covered_periods(entry.period_id, entry.span):
                key = (entry.weekday, period_id)
                owner = occupied.get(key)
                if owner is not None and owner != entry.period_id:
                    raise InvalidRequestError(
                        f"{entry.weekday} {period_id} is occupied by both {owner} and {entry.period_id}"
                    )
                occupied[key] = entry.period_id
