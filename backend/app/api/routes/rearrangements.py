from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.api.deps import get_current_actor, get_current_faculty, get_db, require_roles
from app.core.security import Actor, UserRole
from app.models.faculty import Faculty
from app.schemas.rearrangement import (
    AvailabilityOut,
    ExpireStaleRequest,
    ExpireStaleSummary,
    RearrangementCancel,
    RearrangementCreate,
    RearrangementOut,
    RearrangementRespond,
)
from app.services.availability import AvailabilityResolver
from app.services.negotiation import NegotiationCoordinator
from app.services.rearrangement_store import RearrangementStore

router = APIRouter()


@router.get("/available", response_model=AvailabilityOut)
def find_available_faculty(
    on_date: date = Query(alias="date"),
    period_id: str = Query(min_length=1, max_length=20),
    department_id: str = Query(min_length=1),
    exclude_faculty_id: str | None = Query(default=None),
    current_actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> AvailabilityOut:
    if exclude_faculty_id is None and current_actor.role == UserRole.faculty:
        exclude_faculty_id = current_actor.id
    return AvailabilityResolver(db).find_free(
        department_id,
        on_date,
        period_id,
        exclude_faculty_id=exclude_faculty_id,
    )


@router.post("", response_model=RearrangementOut, status_code=status.HTTP_201_CREATED)
def create_rearrangement(
    payload: RearrangementCreate,
    current_actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> RearrangementOut:
    return NegotiationCoordinator(db).create_request(payload, actor=current_actor)


@router.get("", response_model=list[RearrangementOut])
def list_rearrangements_for_date(
    on_date: date = Query(alias="date"),
    department_id: str | None = Query(default=None),
    current_actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> list[RearrangementOut]:
    return NegotiationCoordinator(db).list_for_date(on_date, department_id)


@router.get("/pending", response_model=list[RearrangementOut])
def list_pending_rearrangements(
    current_faculty: Faculty = Depends(get_current_faculty),
    db: Session = Depends(get_db),
) -> list[RearrangementOut]:
    return NegotiationCoordinator(db).list_pending_for_substitute(current_faculty.id)


@router.get("/incoming", response_model=list[RearrangementOut])
def list_incoming_rearrangements(
    current_faculty: Faculty = Depends(get_current_faculty),
    db: Session = Depends(get_db),
) -> list[RearrangementOut]:
    return NegotiationCoordinator(db).list_incoming(current_faculty.id)


@router.get("/mine", response_model=list[RearrangementOut])
def list_my_rearrangements(
    current_faculty: Faculty = Depends(get_current_faculty),
    db: Session = Depends(get_db),
) -> list[RearrangementOut]:
    return NegotiationCoordinator(db).list_my_requests(current_faculty.id)


@router.post("/expire-stale", response_model=ExpireStaleSummary)
def expire_stale_rearrangements(
    payload: ExpireStaleRequest,
    current_actor: Actor = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> ExpireStaleSummary:
    before, expired = NegotiationCoordinator(db).expire_stale(actor=current_actor, before=payload.before)
    return ExpireStaleSummary(before=before, expired_count=expired)


@router.get("/{request_id}", response_model=RearrangementOut)
def get_rearrangement(
    request_id: str,
    current_actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> RearrangementOut:
    request = RearrangementStore(db).get(request_id)
    parties = {request.original_faculty_id, request.substitute_faculty_id}
    if not current_actor.is_staff and current_actor.id not in parties:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Insufficient permissions")
    return request


@router.post("/{request_id}/respond", response_model=RearrangementOut)
def respond_to_rearrangement(
    request_id: str,
    payload: RearrangementRespond,
    current_faculty: Faculty = Depends(get_current_faculty),
    db: Session = Depends(get_db),
) -> RearrangementOut:
    return NegotiationCoordinator(db).respond(
        request_id,
        acting_faculty_id=current_faculty.id,
        decision=payload.decision,
        response_note=payload.response_note,
    )


@router.post("/{request_id}/cancel", response_model=RearrangementOut)
def cancel_rearrangement(
    request_id: str,
    payload: RearrangementCancel | None = None,
    current_faculty: Faculty = Depends(get_current_faculty),
    db: Session = Depends(get_db),
) -> RearrangementOut:
    reason = payload.reason if payload is not None else None
    return NegotiationCoordinator(db).cancel(request_id, acting_faculty_id=current_faculty.id, reason=reason)


@router.delete("/{request_id}", response_model=RearrangementOut)
def hide_rearrangement(
    request_id: str,
    current_faculty: Faculty = Depends(get_current_faculty),
    db: Session = Depends(get_db),
) -> RearrangementOut:
    return NegotiationCoordinator(db).hide(request_id, acting_faculty_id=current_faculty.id)
