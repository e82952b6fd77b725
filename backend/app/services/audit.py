from __future__ import annotations

from datetime import date

from sqlalchemy.orm import Session

from app.models.activity_log import ActivityLog
from app.models.rearrangement_request import RearrangementRequest


def log_activity(
    db: Session,
    *,
    actor_id: str | None,
    action: str,
    entity_type: str | None = None,
    entity_id: str | None = None,
    department_id: str | None = None,
    occurred_on: date | None = None,
    details: dict | None = None,
) -> None:
    db.add(
        ActivityLog(
            actor_id=actor_id,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            department_id=department_id,
            occurred_on=occurred_on,
            details=details or {},
        )
    )


def log_rearrangement_activity(
    db: Session,
    request: RearrangementRequest,
    *,
    actor_id: str | None,
    action: str,
    details: dict | None = None,
) -> None:
    """Audit a request transition, filed under the request's department and teaching day."""
    log_activity(
        db,
        actor_id=actor_id,
        action=action,
        entity_type="rearrangement_request",
        entity_id=request.id,
        department_id=request.department_id,
        occurred_on=request.request_date,
        details={
            "period_id": request.period_id,
            "original_faculty_id": request.original_faculty_id,
            "substitute_faculty_id": request.substitute_faculty_id,
            "status": request.status.value if request.status else None,
            "resolution": request.resolution.value if request.resolution else None,
            **(details or {}),
        },
    )
