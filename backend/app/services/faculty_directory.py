from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import ResourceNotFoundError
from app.models.department import Department
from app.models.faculty import Faculty


class FacultyDirectory:
    def __init__(self, db: Session) -> None:
        self.db = db

    def get_department(self, department_id: str) -> Department:
        department = self.db.get(Department, department_id)
        if department is None:
            raise ResourceNotFoundError("Department", department_id)
        return department

    def get_faculty(self, faculty_id: str) -> Faculty:
        faculty = self.db.get(Faculty, faculty_id)
        if faculty is None:
            raise ResourceNotFoundError("Faculty", faculty_id)
        return faculty

    def list_faculty(self, department_id: str) -> list[Faculty]:
        self.get_department(department_id)
        return list(
            self.db.execute(
                select(Faculty)
                .where(Faculty.department_id == department_id, Faculty.is_active.is_(True))
                .order_by(Faculty.name, Faculty.id)
            ).scalars()
        )
