from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session

from app.core.exceptions import ResourceNotFoundError
from app.models.rearrangement_request import (
    RearrangementRequest,
    RearrangementResolution,
    RearrangementStatus,
)

LIVE_STATUSES = (RearrangementStatus.pending, RearrangementStatus.accepted)


class RearrangementStore:
    """Persistence for rearrangement requests.

    The only mutation of ``status`` goes through :meth:`transition`, a conditional
    update that succeeds only while the stored status still matches ``expected``.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def get(self, request_id: str) -> RearrangementRequest:
        request = self.db.get(RearrangementRequest, request_id)
        if request is None:
            raise ResourceNotFoundError("Rearrangement request", request_id)
        return request

    def add(self, request: RearrangementRequest) -> RearrangementRequest:
        self.db.add(request)
        self.db.flush()
        return request

    def find_live_for_original(
        self,
        *,
        request_date: date,
        period_id: str,
        original_faculty_id: str,
    ) -> RearrangementRequest | None:
        return self.db.execute(
            select(RearrangementRequest).where(
                RearrangementRequest.request_date == request_date,
                RearrangementRequest.period_id == period_id,
                RearrangementRequest.original_faculty_id == original_faculty_id,
                RearrangementRequest.status.in_(LIVE_STATUSES),
            )
        ).scalars().first()

    def find_accepted_for_substitute(
        self,
        *,
        request_date: date,
        period_id: str,
        substitute_faculty_id: str,
        exclude_request_id: str | None = None,
    ) -> RearrangementRequest | None:
        query = select(RearrangementRequest).where(
            RearrangementRequest.request_date == request_date,
            RearrangementRequest.period_id == period_id,
            RearrangementRequest.substitute_faculty_id == substitute_faculty_id,
            RearrangementRequest.status == RearrangementStatus.accepted,
        )
        if exclude_request_id:
            query = query.where(RearrangementRequest.id != exclude_request_id)
        return self.db.execute(query).scalars().first()

    def committed_substitute_ids(self, *, request_date: date, period_id: str) -> set[str]:
        return set(
            self.db.execute(
                select(RearrangementRequest.substitute_faculty_id).where(
                    RearrangementRequest.request_date == request_date,
                    RearrangementRequest.period_id == period_id,
                    RearrangementRequest.status == RearrangementStatus.accepted,
                )
            ).scalars()
        )

    def competing_pending(self, request: RearrangementRequest) -> list[RearrangementRequest]:
        return list(
            self.db.execute(
                select(RearrangementRequest).where(
                    RearrangementRequest.request_date == request.request_date,
                    RearrangementRequest.period_id == request.period_id,
                    RearrangementRequest.substitute_faculty_id == request.substitute_faculty_id,
                    RearrangementRequest.status == RearrangementStatus.pending,
                    RearrangementRequest.id != request.id,
                )
            ).scalars()
        )

    def transition(
        self,
        request: RearrangementRequest,
        *,
        to_status: RearrangementStatus,
        resolution: RearrangementResolution,
        note: str | None,
        at: datetime,
        expected: RearrangementStatus = RearrangementStatus.pending,
    ) -> bool:
        result = self.db.execute(
            update(RearrangementRequest)
            .where(
                RearrangementRequest.id == request.id,
                RearrangementRequest.status == expected,
            )
            .values(
                status=to_status,
                resolution=resolution,
                response_note=note,
                responded_at=at,
            )
            .execution_options(synchronize_session=False)
        )
        # Reload on next access so callers see what the store actually holds.
        self.db.expire(request)
        return result.rowcount == 1

    def accepted_for_date(
        self,
        request_date: date,
        *,
        faculty_id: str | None = None,
        department_id: str | None = None,
        year: int | None = None,
        semester: int | None = None,
        section: str | None = None,
    ) -> list[RearrangementRequest]:
        query = select(RearrangementRequest).where(
            RearrangementRequest.request_date == request_date,
            RearrangementRequest.status == RearrangementStatus.accepted,
        )
        if faculty_id is not None:
            query = query.where(
                or_(
                    RearrangementRequest.original_faculty_id == faculty_id,
                    RearrangementRequest.substitute_faculty_id == faculty_id,
                )
            )
        if department_id is not None:
            query = query.where(
                RearrangementRequest.department_id == department_id,
                RearrangementRequest.year == year,
                RearrangementRequest.semester == semester,
                RearrangementRequest.section == section,
            )
        return list(self.db.execute(query.order_by(RearrangementRequest.period_id)).scalars())

    def list_pending_for_substitute(self, faculty_id: str) -> list[RearrangementRequest]:
        return list(
            self.db.execute(
                select(RearrangementRequest)
                .where(
                    RearrangementRequest.substitute_faculty_id == faculty_id,
                    RearrangementRequest.status == RearrangementStatus.pending,
                    RearrangementRequest.hidden_by_substitute.is_(False),
                )
                .order_by(RearrangementRequest.request_date, RearrangementRequest.period_id)
            ).scalars()
        )

    def list_incoming(self, faculty_id: str) -> list[RearrangementRequest]:
        return list(
            self.db.execute(
                select(RearrangementRequest)
                .where(
                    RearrangementRequest.substitute_faculty_id == faculty_id,
                    RearrangementRequest.hidden_by_substitute.is_(False),
                )
                .order_by(RearrangementRequest.request_date.desc(), RearrangementRequest.created_at.desc())
            ).scalars()
        )

    def list_for_original(self, faculty_id: str) -> list[RearrangementRequest]:
        return list(
            self.db.execute(
                select(RearrangementRequest)
                .where(
                    RearrangementRequest.original_faculty_id == faculty_id,
                    RearrangementRequest.hidden_by_original.is_(False),
                )
                .order_by(RearrangementRequest.request_date.desc(), RearrangementRequest.created_at.desc())
            ).scalars()
        )

    def list_for_date(self, request_date: date, department_id: str | None = None) -> list[RearrangementRequest]:
        query = select(RearrangementRequest).where(RearrangementRequest.request_date == request_date)
        if department_id:
            query = query.where(RearrangementRequest.department_id == department_id)
        return list(
            self.db.execute(
                query.order_by(RearrangementRequest.period_id, RearrangementRequest.created_at)
            ).scalars()
        )

    def stale_pending(self, before: date) -> list[RearrangementRequest]:
        return list(
            self.db.execute(
                select(RearrangementRequest).where(
                    RearrangementRequest.status == RearrangementStatus.pending,
                    RearrangementRequest.request_date < before,
                )
            ).scalars()
        )
