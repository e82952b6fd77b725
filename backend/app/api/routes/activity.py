from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_db, require_roles
from app.core.security import Actor, UserRole
from app.models.activity_log import ActivityLog
from app.schemas.activity import ActivityLogOut

router = APIRouter()


@router.get("/activity/logs", response_model=list[ActivityLogOut])
def list_activity_logs(
    entity_type: str | None = Query(default=None),
    entity_id: str | None = Query(default=None),
    department_id: str | None = Query(default=None),
    occurred_on: date | None = Query(default=None, alias="date"),
    actor_id: str | None = Query(default=None),
    limit: int = Query(default=200, ge=1, le=500),
    current_actor: Actor = Depends(require_roles(UserRole.admin, UserRole.scheduler)),
    db: Session = Depends(get_db),
) -> list[ActivityLogOut]:
    query = select(ActivityLog).order_by(ActivityLog.created_at.desc(), ActivityLog.id)
    if entity_type:
        query = query.where(ActivityLog.entity_type == entity_type)
    if entity_id:
        query = query.where(ActivityLog.entity_id == entity_id)
    if department_id:
        query = query.where(ActivityLog.department_id == department_id)
    if occurred_on is not None:
        query = query.where(ActivityLog.occurred_on == occurred_on)
    if actor_id:
        query = query.where(ActivityLog.actor_id == actor_id)
    return list(db.execute(query.limit(limit)).scalars())
