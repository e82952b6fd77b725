from __future__ import annotations

import logging
from datetime import date

from sqlalchemy.orm import Session

from app.models.faculty import Faculty
from app.schemas.rearrangement import AvailabilityCandidate, AvailabilityOut
from app.services.absence_store import AbsenceStore
from app.services.faculty_directory import FacultyDirectory
from app.services.periods import PeriodCalendar, weekday_name
from app.services.rearrangement_store import RearrangementStore
from app.services.timetable_store import WeeklyTimetableStore

logger = logging.getLogger(__name__)


class AvailabilityResolver:
    """Works out which faculty of a department are genuinely free for one period on one date."""

    def __init__(
        self,
        db: Session,
        *,
        timetable: WeeklyTimetableStore | None = None,
        directory: FacultyDirectory | None = None,
        absences: AbsenceStore | None = None,
        requests: RearrangementStore | None = None,
        calendar: PeriodCalendar | None = None,
    ) -> None:
        self.calendar = calendar or PeriodCalendar()
        self.timetable = timetable or WeeklyTimetableStore(db, self.calendar)
        self.directory = directory or FacultyDirectory(db)
        self.absences = absences or AbsenceStore(db)
        self.requests = requests or RearrangementStore(db)

    def teaching_faculty_ids(self, department_id: str, on_date: date, period_id: str, faculty_ids: list[str]) -> set[str]:
        weekday = weekday_name(on_date)
        entries = {
            entry.id: entry for entry in self.timetable.get_entries_for_weekday(department_id, weekday)
        }
        # Department faculty may also teach classes owned by other departments.
        for entry in self.timetable.get_entries_for_faculty_set(faculty_ids, weekday):
            entries.setdefault(entry.id, entry)

        busy: set[str] = set()
        for entry in self.timetable.entries_covering(entries.values(), period_id):
            if entry.faculty_id:
                busy.add(entry.faculty_id)
            if entry.secondary_faculty_id:
                busy.add(entry.secondary_faculty_id)
        return busy

    def find_free_faculty(
        self,
        department_id: str,
        on_date: date,
        period_id: str,
        *,
        exclude_faculty_id: str | None = None,
    ) -> list[Faculty]:
        period_id = period_id.strip().upper()
        self.calendar.ensure_teaching_slot(on_date, period_id)
        roster = self.directory.list_faculty(department_id)
        roster_ids = [item.id for item in roster]

        teaching = self.teaching_faculty_ids(department_id, on_date, period_id, roster_ids)
        committed = self.requests.committed_substitute_ids(request_date=on_date, period_id=period_id)
        on_leave = self.absences.faculty_on_leave(on_date, roster_ids)

        excluded = teaching | committed | on_leave
        if exclude_faculty_id:
            excluded.add(exclude_faculty_id)

        free = [item for item in roster if item.id not in excluded]
        free.sort(key=lambda item: (item.name.casefold(), item.id))
        logger.debug(
            "FindFree %s %s %s: %d free (%d teaching, %d committed, %d on leave)",
            department_id,
            on_date.isoformat(),
            period_id,
            len(free),
            len(teaching),
            len(committed),
            len(on_leave),
        )
        return free

    def find_free(
        self,
        department_id: str,
        on_date: date,
        period_id: str,
        *,
        exclude_faculty_id: str | None = None,
    ) -> AvailabilityOut:
        free = self.find_free_faculty(
            department_id,
            on_date,
            period_id,
            exclude_faculty_id=exclude_faculty_id,
        )
        return AvailabilityOut(
            department_id=department_id,
            date=on_date,
            weekday=weekday_name(on_date),
            period_id=period_id.strip().upper(),
            count=len(free),
            candidates=[AvailabilityCandidate.model_validate(item) for item in free],
        )
