from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_current_actor, get_current_faculty, get_db, require_roles
from app.core.security import Actor, UserRole
from app.models.department import Department
from app.models.faculty import Faculty
from app.schemas.faculty import DepartmentCreate, DepartmentOut, FacultyCreate, FacultyOut
from app.services.audit import log_activity
from app.services.faculty_directory import FacultyDirectory

router = APIRouter()


@router.get("/departments", response_model=list[DepartmentOut])
def list_departments(
    current_actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> list[DepartmentOut]:
    return list(db.execute(select(Department).order_by(Department.code)).scalars())


@router.post("/departments", response_model=DepartmentOut, status_code=status.HTTP_201_CREATED)
def create_department(
    payload: DepartmentCreate,
    current_actor: Actor = Depends(require_roles(UserRole.admin)),
    db: Session = Depends(get_db),
) -> DepartmentOut:
    existing = db.execute(select(Department).where(Department.code == payload.code)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Department code already exists")
    department = Department(**payload.model_dump())
    db.add(department)
    db.flush()
    log_activity(
        db,
        actor_id=current_actor.id,
        action="department.create",
        entity_type="department",
        entity_id=department.id,
        department_id=department.id,
        details={"code": department.code},
    )
    db.commit()
    db.refresh(department)
    return department


@router.get("/departments/{department_id}/faculty", response_model=list[FacultyOut])
def list_department_faculty(
    department_id: str,
    current_actor: Actor = Depends(get_current_actor),
    db: Session = Depends(get_db),
) -> list[FacultyOut]:
    return FacultyDirectory(db).list_faculty(department_id)


@router.get("/faculty/me", response_model=FacultyOut)
def get_my_faculty_profile(current_faculty: Faculty = Depends(get_current_faculty)) -> FacultyOut:
    return current_faculty


@router.post("/faculty", response_model=FacultyOut, status_code=status.HTTP_201_CREATED)
def create_faculty(
    payload: FacultyCreate,
    current_actor: Actor = Depends(require_roles(UserRole.admin, UserRole.scheduler)),
    db: Session = Depends(get_db),
) -> FacultyOut:
    FacultyDirectory(db).get_department(payload.department_id)
    email = str(payload.email).strip().lower()
    existing = db.execute(select(Faculty).where(Faculty.email == email)).scalar_one_or_none()
    if existing:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Faculty email already exists")
    values = payload.model_dump()
    values["email"] = email
    faculty = Faculty(**values)
    db.add(faculty)
    db.flush()
    log_activity(
        db,
        actor_id=current_actor.id,
        action="faculty.create",
        entity_type="faculty",
        entity_id=faculty.id,
        department_id=faculty.department_id,
    )
    db.commit()
    db.refresh(faculty)
    return faculty
