from datetime import date, datetime

from pydantic import BaseModel

from app.models.notification import NotificationType


class NotificationOut(BaseModel):
    id: str
    recipient_id: str
    title: str
    message: str
    notification_type: NotificationType
    rearrangement_id: str | None = None
    request_date: date | None = None
    period_id: str | None = None
    is_read: bool
    read_at: datetime | None = None
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class MarkAllReadOut(BaseModel):
    updated: int
