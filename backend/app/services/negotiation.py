from __future__ import annotations

import logging
from datetime import date, datetime, timezone

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from app.core.config import Settings, get_settings
from app.core.exceptions import (
    AlreadyResolvedError,
    ForbiddenActionError,
    InfrastructureUnavailableError,
    InvalidRequestError,
    RearrangementConflictError,
    SubstituteUnavailableError,
)
from app.core.security import Actor, UserRole
from app.models.faculty import Faculty
from app.models.notification import NotificationType
from app.models.rearrangement_request import (
    RearrangementRequest,
    RearrangementResolution,
    RearrangementStatus,
)
from app.schemas.rearrangement import RearrangementCreate
from app.services.audit import log_activity, log_rearrangement_activity
from app.services.availability import AvailabilityResolver
from app.services.event_bus import EventBus, RearrangementEvent, RearrangementEventType, event_bus
from app.services.faculty_directory import FacultyDirectory
from app.services.notifications import notify_faculty
from app.services.periods import PeriodCalendar, weekday_name
from app.services.rearrangement_store import RearrangementStore
from app.services.timetable_store import WeeklyTimetableStore

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _normalize_text(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


class NegotiationCoordinator:
    """Creates rearrangement requests and drives them from ``pending`` to a terminal state.

    Every public mutation commits its own transaction and publishes the resulting
    events only after the commit succeeded.
    """

    def __init__(
        self,
        db: Session,
        *,
        settings: Settings | None = None,
        calendar: PeriodCalendar | None = None,
        bus: EventBus | None = None,
    ) -> None:
        self.db = db
        self.settings = settings or get_settings()
        self.calendar = calendar or PeriodCalendar(self.settings)
        self.bus = bus or event_bus
        self.store = RearrangementStore(db)
        self.directory = FacultyDirectory(db)
        self.timetable = WeeklyTimetableStore(db, self.calendar)
        self.availability = AvailabilityResolver(
            db,
            timetable=self.timetable,
            directory=self.directory,
            requests=self.store,
            calendar=self.calendar,
        )
        self._events: list[RearrangementEvent] = []

    # -- commands ---------------------------------------------------------------

    def create_request(self, payload: RearrangementCreate, *, actor: Actor) -> RearrangementRequest:
        original_id = payload.original_faculty_id or actor.id
        if not actor.is_staff and original_id != actor.id:
            raise ForbiddenActionError("Faculty may only request substitutes for their own periods")
        if not self.settings.allow_past_rearrangements and payload.date < _utc_now().date():
            raise InvalidRequestError("Rearrangement date cannot be in the past")
        self.calendar.ensure_teaching_slot(payload.date, payload.period_id)

        self.directory.get_department(payload.department_id)
        original = self.directory.get_faculty(original_id)
        substitute = self.directory.get_faculty(payload.substitute_faculty_id)
        if substitute.id == original.id:
            raise SubstituteUnavailableError("A faculty member cannot substitute for themselves")

        existing = self.store.find_live_for_original(
            request_date=payload.date,
            period_id=payload.period_id,
            original_faculty_id=original.id,
        )
        if existing is not None:
            raise RearrangementConflictError(
                f"{original.name} already has a {existing.status.value} rearrangement for "
                f"{payload.period_id} on {payload.date.isoformat()}",
                details={"existing_request_id": existing.id},
            )

        slot = self._describe_slot(original, payload)

        # Optimistic check only; the final double-booking guard runs inside respond().
        free_ids = {
            item.id
            for item in self.availability.find_free_faculty(
                payload.department_id,
                payload.date,
                payload.period_id,
                exclude_faculty_id=original.id,
            )
        }
        if substitute.id not in free_ids:
            raise SubstituteUnavailableError(
                f"{substitute.name} is not free for {payload.period_id} on {payload.date.isoformat()}",
                details={"substitute_faculty_id": substitute.id},
            )

        request = RearrangementRequest(
            request_date=payload.date,
            period_id=payload.period_id,
            department_id=slot["department_id"],
            year=slot["year"],
            semester=slot["semester"],
            section=slot["section"],
            class_label=slot["class_label"],
            subject_name=slot["subject_name"],
            room=slot["room"],
            original_faculty_id=original.id,
            original_faculty_name=original.name,
            substitute_faculty_id=substitute.id,
            substitute_faculty_name=substitute.name,
            status=RearrangementStatus.pending,
            created_by_id=actor.id,
        )
        try:
            self.store.add(request)
        except IntegrityError as exc:
            self.db.rollback()
            raise RearrangementConflictError(
                f"{original.name} already has a live rearrangement for {payload.period_id} on "
                f"{payload.date.isoformat()}"
            ) from exc

        self._record(
            request,
            RearrangementEventType.created,
            actor_id=actor.id,
            recipients=[substitute.id],
            title="Substitution Request Pending",
            message=(
                f"{original.name} asked you to cover {request.subject_name} for {request.class_label} "
                f"({request.period_id} on {request.request_date.isoformat()})."
            ),
        )
        self._commit()
        logger.info(
            "Rearrangement %s created: %s -> %s for %s %s",
            request.id,
            original.id,
            substitute.id,
            request.request_date.isoformat(),
            request.period_id,
        )
        return request

    def respond(
        self,
        request_id: str,
        *,
        acting_faculty_id: str,
        decision: str,
        response_note: str | None = None,
    ) -> RearrangementRequest:
        request = self.store.get(request_id)
        if request.substitute_faculty_id != acting_faculty_id:
            raise ForbiddenActionError("Only the designated substitute can respond to this request")
        if request.status != RearrangementStatus.pending:
            raise AlreadyResolvedError(request.id, request.status.value)

        now = _utc_now()
        note = _normalize_text(response_note)
        if decision == "reject":
            self._transition_or_raise(
                request,
                to_status=RearrangementStatus.rejected,
                resolution=RearrangementResolution.declined,
                note=note,
                at=now,
            )
            self._record(
                request,
                RearrangementEventType.rejected,
                actor_id=acting_faculty_id,
                recipients=[request.original_faculty_id],
                title="Substitution Declined",
                message=(
                    f"{request.substitute_faculty_name} declined to cover {request.subject_name} for "
                    f"{request.class_label} ({request.period_id} on {request.request_date.isoformat()})."
                ),
            )
            self._commit()
            return request

        if decision != "accept":
            raise InvalidRequestError(f"Unknown decision '{decision}'")

        clash = self.store.find_accepted_for_substitute(
            request_date=request.request_date,
            period_id=request.period_id,
            substitute_faculty_id=request.substitute_faculty_id,
            exclude_request_id=request.id,
        )
        if clash is not None:
            raise RearrangementConflictError(
                f"{request.substitute_faculty_name} already covers {clash.period_id} on "
                f"{clash.request_date.isoformat()}",
                details={"conflicting_request_id": clash.id},
            )

        self._transition_or_raise(
            request,
            to_status=RearrangementStatus.accepted,
            resolution=RearrangementResolution.accepted,
            note=note,
            at=now,
        )
        self._record(
            request,
            RearrangementEventType.accepted,
            actor_id=acting_faculty_id,
            recipients=[request.original_faculty_id],
            title="Substitute Confirmed",
            message=(
                f"{request.substitute_faculty_name} will cover {request.subject_name} for "
                f"{request.class_label} ({request.period_id} on {request.request_date.isoformat()})."
            ),
        )

        for competing in self.store.competing_pending(request):
            if not self.store.transition(
                competing,
                to_status=RearrangementStatus.rejected,
                resolution=RearrangementResolution.superseded,
                note="Substitute accepted another request for this period.",
                at=now,
            ):
                continue
            self._record(
                competing,
                RearrangementEventType.rejected,
                actor_id=acting_faculty_id,
                recipients=[competing.original_faculty_id],
                title="Substitute No Longer Available",
                message=(
                    f"{competing.substitute_faculty_name} is already covering another class during "
                    f"{competing.period_id} on {competing.request_date.isoformat()}. Please choose another substitute."
                ),
            )

        self._commit()
        logger.info("Rearrangement %s accepted by %s", request.id, acting_faculty_id)
        return request

    def cancel(
        self,
        request_id: str,
        *,
        acting_faculty_id: str,
        reason: str | None = None,
    ) -> RearrangementRequest:
        request = self.store.get(request_id)
        if request.original_faculty_id != acting_faculty_id:
            raise ForbiddenActionError("Only the requesting faculty can cancel this request")
        if request.is_terminal:
            return request

        cancelled = self.store.transition(
            request,
            to_status=RearrangementStatus.rejected,
            resolution=RearrangementResolution.cancelled,
            note=_normalize_text(reason) or "Cancelled by requester.",
            at=_utc_now(),
        )
        if not cancelled:
            # Resolved concurrently; a repeated cancel is a no-op for the requester.
            self.db.rollback()
            return self.store.get(request_id)

        self._record(
            request,
            RearrangementEventType.rejected,
            actor_id=acting_faculty_id,
            recipients=[request.substitute_faculty_id],
            title="Substitution Request Withdrawn",
            message=(
                f"{request.original_faculty_name} withdrew the request to cover {request.period_id} on "
                f"{request.request_date.isoformat()}."
            ),
        )
        self._commit()
        return request

    def hide(self, request_id: str, *, acting_faculty_id: str) -> RearrangementRequest:
        request = self.store.get(request_id)
        if acting_faculty_id not in {request.original_faculty_id, request.substitute_faculty_id}:
            raise ForbiddenActionError("Only a party to this request can remove it from their list")
        if not request.is_terminal:
            raise InvalidRequestError("Only resolved requests can be removed from a list")

        if acting_faculty_id == request.original_faculty_id:
            request.hidden_by_original = True
        if acting_faculty_id == request.substitute_faculty_id:
            request.hidden_by_substitute = True
        log_rearrangement_activity(self.db, request, actor_id=acting_faculty_id, action="rearrangement.hide")
        self._commit()
        return request

    def expire_stale(self, *, actor: Actor, before: date | None = None) -> tuple[date, int]:
        cutoff = before or _utc_now().date()
        now = _utc_now()
        expired = 0
        for request in self.store.stale_pending(cutoff):
            if not self.store.transition(
                request,
                to_status=RearrangementStatus.rejected,
                resolution=RearrangementResolution.expired,
                note=f"Expired without a response before {cutoff.isoformat()}.",
                at=now,
            ):
                continue
            expired += 1
            self._record(
                request,
                RearrangementEventType.rejected,
                actor_id=actor.id,
                recipients=[request.original_faculty_id, request.substitute_faculty_id],
                title="Substitution Request Expired",
                message=(
                    f"The request to cover {request.period_id} on {request.request_date.isoformat()} "
                    "expired without a response."
                ),
            )
        log_activity(
            self.db,
            actor_id=actor.id,
            action="rearrangement.expire_stale",
            entity_type="rearrangement_request",
            occurred_on=cutoff,
            details={"before": cutoff.isoformat(), "expired_count": expired},
        )
        self._commit()
        return cutoff, expired

    # -- queries ----------------------------------------------------------------

    def list_pending_for_substitute(self, faculty_id: str) -> list[RearrangementRequest]:
        return self.store.list_pending_for_substitute(faculty_id)

    def list_incoming(self, faculty_id: str) -> list[RearrangementRequest]:
        return self.store.list_incoming(faculty_id)

    def list_my_requests(self, original_faculty_id: str) -> list[RearrangementRequest]:
        return self.store.list_for_original(original_faculty_id)

    def list_for_date(self, on_date: date, department_id: str | None = None) -> list[RearrangementRequest]:
        return self.store.list_for_date(on_date, department_id)

    # -- internals --------------------------------------------------------------

    def _describe_slot(self, original: Faculty, payload: RearrangementCreate) -> dict:
        weekday = weekday_name(payload.date)
        covering = self.timetable.entries_covering(
            self.timetable.get_entries_for_faculty(original.id, weekday),
            payload.period_id,
        )
        primary = [entry for entry in covering if entry.faculty_id == original.id]
        if primary:
            entry = primary[0]
            return {
                "department_id": entry.department_id,
                "year": entry.year,
                "semester": entry.semester,
                "section": entry.section,
                "class_label": self.calendar.class_label(
                    year=entry.year,
                    section=entry.section,
                    semester=entry.semester,
                ),
                "subject_name": entry.subject_name or _normalize_text(payload.subject_name) or "Unspecified",
                "room": entry.room,
            }
        if covering:
            raise InvalidRequestError(
                f"{original.name} is the secondary faculty for {payload.period_id} on {weekday}; "
                "only the primary lab faculty can be substituted"
            )

        class_label = _normalize_text(payload.class_label)
        subject_name = _normalize_text(payload.subject_name)
        if not class_label or not subject_name:
            raise InvalidRequestError(
                f"{original.name} has no weekly entry for {payload.period_id} on {weekday}; "
                "subject_name and class_label are required"
            )
        return {
            "department_id": payload.department_id,
            "year": None,
            "semester": None,
            "section": None,
            "class_label": class_label,
            "subject_name": subject_name,
            "room": None,
        }

    def _transition_or_raise(
        self,
        request: RearrangementRequest,
        *,
        to_status: RearrangementStatus,
        resolution: RearrangementResolution,
        note: str | None,
        at: datetime,
    ) -> None:
        try:
            applied = self.store.transition(
                request,
                to_status=to_status,
                resolution=resolution,
                note=note,
                at=at,
            )
        except IntegrityError as exc:
            self.db.rollback()
            raise RearrangementConflictError(
                "Substitute is already committed for this period",
                details={"request_id": request.id},
            ) from exc
        if not applied:
            current = request.status.value
            self.db.rollback()
            raise AlreadyResolvedError(request.id, current)

    def _record(
        self,
        request: RearrangementRequest,
        event_type: RearrangementEventType,
        *,
        actor_id: str,
        recipients: list[str],
        title: str,
        message: str,
    ) -> None:
        notify_faculty(
            self.db,
            faculty_ids=recipients,
            title=title,
            message=message,
            notification_type=NotificationType.rearrangement,
            request=request,
        )
        log_rearrangement_activity(
            self.db,
            request,
            actor_id=actor_id,
            action=f"rearrangement.{event_type.name}",
        )
        self._events.append(
            RearrangementEvent(
                event_type=event_type,
                request_id=request.id,
                request_date=request.request_date,
                period_id=request.period_id,
                original_faculty_id=request.original_faculty_id,
                substitute_faculty_id=request.substitute_faculty_id,
                resolution=request.resolution.value if request.resolution else None,
                occurred_at=_utc_now(),
            )
        )

    def _commit(self) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            self._events.clear()
            raise RearrangementConflictError("Rearrangement conflicts with a concurrent change") from exc
        except OperationalError as exc:
            self.db.rollback()
            self._events.clear()
            logger.exception("Rearrangement store unavailable during commit")
            raise InfrastructureUnavailableError() from exc

        events, self._events = self._events, []
        for event in events:
            self.bus.publish(event)
