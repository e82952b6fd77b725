from datetime import date, datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_current_actor, get_db
from app.core.security import Actor
from app.models.notification import Notification, NotificationType
from app.schemas.notification import MarkAllReadOut, NotificationOut
from app.services.audit import log_activity

router = APIRouter()


@router.get("/notifications", response_model=list[NotificationOut])
def list_notifications(
    notification_type: NotificationType | None = Query(default=None),
    is_read: bool | None = Query(default=None),
    request_date: date | None = Query(default=None, alias="date"),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    current_actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> list[NotificationOut]:
    query = (
        select(Notification)
        .where(Notification.recipient_id == current_actor.id)
        .order_by(Notification.created_at.desc())
    )
    if notification_type:
        query = query.where(Notification.notification_type == notification_type)
    if is_read is not None:
        query = query.where(Notification.is_read == is_read)
    if request_date is not None:
        query = query.where(Notification.request_date == request_date)
    query = query.offset(offset).limit(limit)
    return list(db.execute(query).scalars())


@router.post("/notifications/{notification_id}/read", response_model=NotificationOut)
def mark_notification_read(
    notification_id: str,
    current_actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> NotificationOut:
    notification = db.get(Notification, notification_id)
    if notification is None or notification.recipient_id != current_actor.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    if not notification.is_read:
        notification.is_read = True
        notification.read_at = datetime.now(timezone.utc)
    log_activity(
        db,
        actor_id=current_actor.id,
        action="notification.read",
        entity_type="notification",
        entity_id=notification_id,
    )
    db.commit()
    db.refresh(notification)
    return notification


@router.post("/notifications/read-all", response_model=MarkAllReadOut)
def mark_all_notifications_read(
    current_actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> MarkAllReadOut:
    notifications = list(
        db.execute(
            select(Notification).where(
                Notification.recipient_id == current_actor.id,
                Notification.is_read.is_(False),
            )
        ).scalars()
    )
    read_at = datetime.now(timezone.utc)
    for notification in notifications:
        notification.is_read = True
        notification.read_at = read_at

    if notifications:
        log_activity(
            db,
            actor_id=current_actor.id,
            action="notification.read_all",
            entity_type="notification",
            details={"count": len(notifications)},
        )
    db.commit()
    return MarkAllReadOut(updated=len(notifications))
