from datetime import date, datetime

from pydantic import BaseModel


class ActivityLogOut(BaseModel):
    id: str
    actor_id: str | None
    action: str
    entity_type: str | None
    entity_id: str | None
    department_id: str | None = None
    occurred_on: date | None = None
    details: dict
    created_at: datetime | None = None

    model_config = {"from_attributes": True}
