from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from datetime import date, datetime, timezone

from sqlalchemy.orm import Session

from app.models.rearrangement_request import RearrangementRequest
from app.models.weekly_schedule import WeeklyScheduleEntry
from app.schemas.schedule import ClassScope, EffectivePeriod, EffectivePeriodStatus, EffectiveSchedule
from app.services.faculty_directory import FacultyDirectory
from app.services.periods import PeriodCalendar, weekday_name
from app.services.rearrangement_store import RearrangementStore
from app.services.timetable_store import OccupiedPeriod, WeeklyTimetableStore

logger = logging.getLogger(__name__)


def _as_utc(value: datetime | None) -> datetime:
    if value is None:
        return datetime.min.replace(tzinfo=timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class EffectiveScheduleResolver:
    """Overlays accepted substitutions for one date on top of the weekly timetable.

    The result is computed on every call; nothing here writes to the store.
    """

    def __init__(
        self,
        db: Session,
        *,
        timetable: WeeklyTimetableStore | None = None,
        requests: RearrangementStore | None = None,
        directory: FacultyDirectory | None = None,
        calendar: PeriodCalendar | None = None,
    ) -> None:
        self.calendar = calendar or PeriodCalendar()
        self.timetable = timetable or WeeklyTimetableStore(db, self.calendar)
        self.requests = requests or RearrangementStore(db)
        self.directory = directory or FacultyDirectory(db)

    def resolve(self, scope: str | ClassScope, on_date: date) -> EffectiveSchedule:
        if isinstance(scope, ClassScope):
            return self.resolve_for_class(scope, on_date)
        return self.resolve_for_faculty(scope, on_date)

    def resolve_for_faculty(self, faculty_id: str, on_date: date) -> EffectiveSchedule:
        faculty = self.directory.get_faculty(faculty_id)
        weekday = weekday_name(on_date)

        periods: dict[str, EffectivePeriod] = {}
        for occupied in self.timetable.expand(self.timetable.get_entries_for_faculty(faculty.id, weekday)):
            if occupied.entry.is_break:
                continue
            periods.setdefault(occupied.period_id, self._baseline_period(occupied))

        accepted = self.requests.accepted_for_date(on_date, faculty_id=faculty.id)
        as_original = [item for item in accepted if item.original_faculty_id == faculty.id]
        as_substitute = [item for item in accepted if item.substitute_faculty_id == faculty.id]

        for period_id, request in self._winners(as_original, scope_label=f"faculty {faculty.id} (original)"):
            period = periods.get(period_id) or self._request_period(request)
            periods[period_id] = period.model_copy(
                update={
                    "status": EffectivePeriodStatus.covered,
                    "faculty_id": request.substitute_faculty_id,
                    "faculty_name": request.substitute_faculty_name,
                    "original_faculty_id": request.original_faculty_id,
                    "original_faculty_name": request.original_faculty_name,
                    "substitute_faculty_id": request.substitute_faculty_id,
                    "substitute_faculty_name": request.substitute_faculty_name,
                    "rearrangement_id": request.id,
                    "note": f"Covered by substitute {request.substitute_faculty_name}",
                }
            )

        for period_id, request in self._winners(as_substitute, scope_label=f"faculty {faculty.id} (substitute)"):
            covering = self._request_period(request).model_copy(
                update={
                    "status": EffectivePeriodStatus.covering,
                    "faculty_id": request.substitute_faculty_id,
                    "faculty_name": request.substitute_faculty_name,
                    "original_faculty_id": request.original_faculty_id,
                    "original_faculty_name": request.original_faculty_name,
                    "substitute_faculty_id": request.substitute_faculty_id,
                    "substitute_faculty_name": request.substitute_faculty_name,
                    "rearrangement_id": request.id,
                    "note": (
                        f"Covering {request.original_faculty_name} for {request.subject_name}, "
                        f"{request.class_label}"
                    ),
                }
            )
            existing = periods.get(period_id)
            if existing is not None and existing.status == EffectivePeriodStatus.scheduled:
                logger.warning(
                    "Faculty %s covers %s on %s while also scheduled to teach it",
                    faculty.id,
                    period_id,
                    on_date.isoformat(),
                )
            periods[period_id] = covering

        self._fill_free(periods)
        return EffectiveSchedule(
            date=on_date,
            weekday=weekday,
            scope_type="faculty",
            faculty_id=faculty.id,
            periods=self._ordered(periods),
        )

    def resolve_for_class(self, scope: ClassScope, on_date: date) -> EffectiveSchedule:
        self.directory.get_department(scope.department_id)
        weekday = weekday_name(on_date)
        entries = self.timetable.get_entries_for_class(
            department_id=scope.department_id,
            year=scope.year,
            semester=scope.semester,
            section=scope.section,
            weekday=weekday,
        )

        periods: dict[str, EffectivePeriod] = {}
        for occupied in self.timetable.expand(entries):
            periods.setdefault(occupied.period_id, self._baseline_period(occupied))

        accepted = self.requests.accepted_for_date(
            on_date,
            department_id=scope.department_id,
            year=scope.year,
            semester=scope.semester,
            section=scope.section,
        )
        label = f"class {scope.department_id}/{scope.year}/{scope.semester}/{scope.section}"
        for period_id, request in self._winners(accepted, scope_label=label):
            period = periods.get(period_id) or self._request_period(request)
            periods[period_id] = period.model_copy(
                update={
                    "status": EffectivePeriodStatus.substituted,
                    "faculty_id": request.substitute_faculty_id,
                    "faculty_name": request.substitute_faculty_name,
                    "original_faculty_id": request.original_faculty_id,
                    "original_faculty_name": request.original_faculty_name,
                    "substitute_faculty_id": request.substitute_faculty_id,
                    "substitute_faculty_name": request.substitute_faculty_name,
                    "rearrangement_id": request.id,
                    "note": f"{request.substitute_faculty_name} substituting for {request.original_faculty_name}",
                }
            )

        self._fill_free(periods)
        return EffectiveSchedule(
            date=on_date,
            weekday=weekday,
            scope_type="class",
            class_scope=scope,
            periods=self._ordered(periods),
        )

    def _winners(
        self,
        requests: Iterable[RearrangementRequest],
        *,
        scope_label: str,
    ) -> list[tuple[str, RearrangementRequest]]:
        by_period: dict[str, list[RearrangementRequest]] = defaultdict(list)
        for request in requests:
            by_period[request.period_id].append(request)

        winners: list[tuple[str, RearrangementRequest]] = []
        for period_id, candidates in by_period.items():
            winner = max(candidates, key=lambda item: (_as_utc(item.created_at), item.id))
            if len(candidates) > 1:
                logger.warning(
                    "%d accepted rearrangements for %s %s in %s; using the most recent (%s)",
                    len(candidates),
                    winner.request_date.isoformat(),
                    period_id,
                    scope_label,
                    winner.id,
                )
            winners.append((period_id, winner))
        return winners

    def _baseline_period(self, occupied: OccupiedPeriod) -> EffectivePeriod:
        entry: WeeklyScheduleEntry = occupied.entry
        if entry.is_break:
            return EffectivePeriod(
                period_id=occupied.period_id,
                is_break=True,
                status=EffectivePeriodStatus.free,
                subject_name=entry.subject_name,
            )
        return EffectivePeriod(
            period_id=occupied.period_id,
            status=EffectivePeriodStatus.scheduled,
            subject_name=entry.subject_name,
            subject_type=entry.subject_type,
            class_label=self.calendar.class_label(year=entry.year, section=entry.section, semester=entry.semester),
            room=entry.room,
            anchor_period_id=entry.period_id,
            faculty_id=entry.faculty_id,
            faculty_name=entry.faculty_name,
            secondary_faculty_name=entry.secondary_faculty_name,
        )

    @staticmethod
    def _request_period(request: RearrangementRequest) -> EffectivePeriod:
        return EffectivePeriod(
            period_id=request.period_id,
            status=EffectivePeriodStatus.scheduled,
            subject_name=request.subject_name,
            class_label=request.class_label,
            room=request.room,
            anchor_period_id=request.period_id,
        )

    def _fill_free(self, periods: dict[str, EffectivePeriod]) -> None:
        for period_id in self.calendar.teaching:
            periods.setdefault(period_id, EffectivePeriod(period_id=period_id, status=EffectivePeriodStatus.free))

    def _ordered(self, periods: dict[str, EffectivePeriod]) -> list[EffectivePeriod]:
        return [periods[key] for key in sorted(periods, key=self.calendar.sort_key)]
