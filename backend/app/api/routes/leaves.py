from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_current_actor, get_current_faculty, get_db, require_roles
from app.core.security import Actor, UserRole
from app.models.faculty import Faculty
from app.models.leave_request import LeaveRequest, LeaveStatus
from app.models.notification import NotificationType
from app.schemas.leave import LeaveRequestCreate, LeaveRequestOut, LeaveRequestStatusUpdate
from app.services.audit import log_activity
from app.services.notifications import notify_faculty

router = APIRouter()


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _normalize_text(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


@router.post("/leaves", response_model=LeaveRequestOut, status_code=status.HTTP_201_CREATED)
def create_leave_request(
    payload: LeaveRequestCreate,
    current_faculty: Faculty = Depends(get_current_faculty),
    db: Session = Depends(get_db),
) -> LeaveRequestOut:
    overlapping = db.execute(
        select(LeaveRequest).where(
            LeaveRequest.faculty_id == current_faculty.id,
            LeaveRequest.status.in_((LeaveStatus.pending, LeaveStatus.approved)),
            LeaveRequest.start_date <= payload.end_date,
            LeaveRequest.end_date >= payload.start_date,
        )
    ).scalars().first()
    if overlapping is not None:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An active leave request already covers part of this range",
        )

    leave = LeaveRequest(
        faculty_id=current_faculty.id,
        start_date=payload.start_date,
        end_date=payload.end_date,
        leave_type=payload.leave_type,
        reason=payload.reason.strip(),
        status=LeaveStatus.pending,
    )
    db.add(leave)
    db.flush()
    log_activity(
        db,
        actor_id=current_faculty.id,
        action="leave.create",
        entity_type="leave_request",
        entity_id=leave.id,
        department_id=current_faculty.department_id,
        occurred_on=leave.start_date,
        details={
            "start_date": leave.start_date.isoformat(),
            "end_date": leave.end_date.isoformat(),
            "leave_type": leave.leave_type.value,
        },
    )
    db.commit()
    db.refresh(leave)
    return leave


@router.get("/leaves", response_model=list[LeaveRequestOut])
def list_leave_requests(
    status_filter: LeaveStatus | None = Query(default=None, alias="status"),
    faculty_id: str | None = Query(default=None),
    current_actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> list[LeaveRequestOut]:
    query = select(LeaveRequest).order_by(LeaveRequest.start_date.desc(), LeaveRequest.created_at.desc())
    if current_actor.role == UserRole.faculty:
        query = query.where(LeaveRequest.faculty_id == current_actor.id)
    elif faculty_id:
        query = query.where(LeaveRequest.faculty_id == faculty_id)
    if status_filter is not None:
        query = query.where(LeaveRequest.status == status_filter)
    return list(db.execute(query).scalars())


@router.put("/leaves/{leave_id}/status", response_model=LeaveRequestOut)
def update_leave_status(
    leave_id: str,
    payload: LeaveRequestStatusUpdate,
    current_actor: Actor = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> LeaveRequestOut:
    leave = db.get(LeaveRequest, leave_id)
    if leave is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Leave request not found")
    if payload.status == LeaveStatus.pending:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Leave can only be approved or rejected")
    if leave.status != LeaveStatus.pending:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Leave request is already {leave.status.value}",
        )

    leave.status = payload.status
    leave.admin_comment = _normalize_text(payload.admin_comment)
    leave.reviewed_by_id = current_actor.id
    leave.reviewed_at = _utc_now()

    notify_faculty(
        db,
        faculty_ids=[leave.faculty_id],
        title=f"Leave {payload.status.value.title()}",
        message=(
            f"Your {leave.leave_type.value} leave from {leave.start_date.isoformat()} to "
            f"{leave.end_date.isoformat()} was {payload.status.value}."
        ),
        notification_type=NotificationType.leave,
    )
    log_activity(
        db,
        actor_id=current_actor.id,
        action=f"leave.{payload.status.value}",
        entity_type="leave_request",
        entity_id=leave.id,
        occurred_on=leave.start_date,
        details={"faculty_id": leave.faculty_id},
    )
    db.commit()
    db.refresh(leave)
    return leave
