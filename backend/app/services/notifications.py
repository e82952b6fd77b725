from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.faculty import Faculty
from app.models.notification import Notification, NotificationType
from app.models.rearrangement_request import RearrangementRequest


def create_notification(
    db: Session,
    *,
    recipient_id: str,
    title: str,
    message: str,
    notification_type: NotificationType = NotificationType.system,
    request: RearrangementRequest | None = None,
) -> Notification:
    record = Notification(
        recipient_id=recipient_id,
        title=title,
        message=message,
        notification_type=notification_type,
    )
    if request is not None:
        record.rearrangement_id = request.id
        record.request_date = request.request_date
        record.period_id = request.period_id
    db.add(record)
    db.flush()
    return record


def notify_faculty(
    db: Session,
    *,
    faculty_ids: list[str] | set[str] | tuple[str, ...],
    title: str,
    message: str,
    notification_type: NotificationType = NotificationType.system,
    request: RearrangementRequest | None = None,
    exclude_faculty_id: str | None = None,
) -> list[Notification]:
    requested_ids = [item for item in dict.fromkeys(faculty_ids) if item and item != exclude_faculty_id]
    if not requested_ids:
        return []

    recipients = list(
        db.execute(
            select(Faculty.id).where(
                Faculty.id.in_(requested_ids),
                Faculty.is_active.is_(True),
            )
        ).scalars()
    )
    return [
        create_notification(
            db,
            recipient_id=recipient_id,
            title=title,
            message=message,
            notification_type=notification_type,
            request=request,
        )
        for recipient_id in recipients
    ]
