from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_current_actor, get_db
from app.core.security import Actor
from app.schemas.schedule import ClassScope, EffectiveSchedule
from app.services.effective_schedule import EffectiveScheduleResolver

router = APIRouter()


@router.get("/faculty/{faculty_id}", response_model=EffectiveSchedule)
def get_faculty_effective_schedule(
    faculty_id: str,
    on_date: date = Query(alias="date"),
    current_actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> EffectiveSchedule:
    return EffectiveScheduleResolver(db).resolve(faculty_id, on_date)


@router.get("/class", response_model=EffectiveSchedule)
def get_class_effective_schedule(
    on_date: date = Query(alias="date"),
    department_id: str = Query(min_length=1),
    year: int = Query(ge=1),
    semester: int = Query(ge=1),
    section: str = Query(min_length=1),
    current_actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> EffectiveSchedule:
    scope = ClassScope(
        department_id=department_id,
        year=year,
        semester=semester,
        section=section.strip().upper(),
    )
    return EffectiveScheduleResolver(db).resolve(scope, on_date)
