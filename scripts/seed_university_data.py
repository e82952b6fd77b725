"""Seed a demo department, faculty roster and weekly timetable.

Run:
  PYTHONPATH=backend python scripts/seed_university_data.py
"""

from __future__ import annotations

import os

from sqlalchemy import func, select

from app.core.security import UserRole, create_access_token
from app.db.bootstrap import ensure_runtime_schema_compatibility
from app.db.session import SessionLocal
from app.models.department import Department
from app.models.faculty import Faculty
from app.models.weekly_schedule import WeeklyScheduleEntry
from app.schemas.timetable import ClassTimetablePublish, WeeklyEntryPayload
from app.services.timetable_store import WeeklyTimetableStore

DEPARTMENT_CODE = os.getenv("SEED_DEPARTMENT_CODE", "CSE").strip().upper() or "CSE"
DEPARTMENT_NAME = os.getenv("SEED_DEPARTMENT_NAME", "Computer Science and Engineering")
MOCK_EMAIL_DOMAIN = os.getenv("SEED_MOCK_EMAIL_DOMAIN", "university.edu").strip().lower() or "university.edu"
SEED_ADMIN_ID = os.getenv("SEED_ADMIN_ID", "seed-admin")

FACULTY_PROFILES = [
    ("Dr. Anitha Raman", "Professor"),
    ("Dr. Vikram Iyer", "Associate Professor"),
    ("Meera Krishnan", "Assistant Professor"),
    ("Suresh Babu", "Assistant Professor"),
    ("Lakshmi Narayanan", "Assistant Professor"),
    ("Arjun Menon", "Assistant Professor"),
]

# (weekday, period, subject, faculty index, secondary index, span, room)
SECTION_PLAN = {
    "A": [
        ("Monday", "P1", "Data Structures", 0, None, 1, "CS-101"),
        ("Monday", "P2", "Algorithms", 1, None, 1, "CS-101"),
        ("Monday", "P3", "Database Systems", 2, None, 1, "CS-101"),
        ("Monday", "P5", "Networks Lab", 3, 4, 2, "Lab-2"),
        ("Tuesday", "P1", "Algorithms", 1, None, 1, "CS-101"),
        ("Tuesday", "P2", "Data Structures", 0, None, 1, "CS-101"),
        ("Tuesday", "P4", "Operating Systems", 5, None, 1, "CS-101"),
        ("Wednesday", "P1", "Database Systems", 2, None, 1, "CS-101"),
        ("Wednesday", "P3", "Operating Systems", 5, None, 1, "CS-101"),
    ],
    "B": [
        ("Monday", "P1", "Algorithms", 1, None, 1, "CS-102"),
        ("Monday", "P3", "Operating Systems", 5, None, 1, "CS-102"),
        ("Tuesday", "P2", "Database Systems", 2, None, 1, "CS-102"),
        ("Tuesday", "P5", "Data Structures Lab", 0, 3, 2, "Lab-1"),
        ("Wednesday", "P2", "Data Structures", 0, None, 1, "CS-102"),
    ],
}
BREAK_DAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")


def email_for(name: str) -> str:
    local = ".".join(part for part in name.lower().replace("dr.", "").split() if part)
    return f"{local}@{MOCK_EMAIL_DOMAIN}"


def upsert_department(session) -> Department:
    department = session.execute(
        select(Department).where(Department.code == DEPARTMENT_CODE)
    ).scalar_one_or_none()
    if department is None:
        department = Department(code=DEPARTMENT_CODE, name=DEPARTMENT_NAME)
        session.add(department)
    else:
        department.name = DEPARTMENT_NAME
    session.flush()
    return department


def upsert_faculty(session, department: Department, *, name: str, designation: str) -> Faculty:
    email = email_for(name)
    existing = session.execute(
        select(Faculty).where(func.lower(Faculty.email) == email)
    ).scalar_one_or_none()
    if existing is None:
        existing = Faculty(name=name, designation=designation, email=email, department_id=department.id)
        session.add(existing)
    else:
        existing.name = name
        existing.designation = designation
        existing.department_id = department.id
        existing.is_active = True
    session.flush()
    return existing


def build_section_payload(department: Department, section: str, roster: list[Faculty]) -> ClassTimetablePublish:
    entries = [WeeklyEntryPayload(weekday=day, period_id="BREAK", is_break=True) for day in BREAK_DAYS]
    for weekday, period_id, subject, primary, secondary, span, room in SECTION_PLAN[section]:
        entries.append(
            WeeklyEntryPayload(
                weekday=weekday,
                period_id=period_id,
                subject_name=subject,
                subject_type="Lab" if span > 1 else "Theory",
                span=span,
                faculty_id=roster[primary].id,
                secondary_faculty_id=roster[secondary].id if secondary is not None else None,
                room=room,
            )
        )
    return ClassTimetablePublish(department_id=department.id, year=2, semester=3, section=section, entries=entries)


def main() -> None:
    ensure_runtime_schema_compatibility()
    with SessionLocal() as session:
        department = upsert_department(session)
        roster = [
            upsert_faculty(session, department, name=name, designation=designation)
            for name, designation in FACULTY_PROFILES
        ]
        store = WeeklyTimetableStore(session)
        summaries = [
            store.publish_class_timetable(
                build_section_payload(department, section, roster),
                published_by_id=SEED_ADMIN_ID,
            )
            for section in SECTION_PLAN
        ]
        session.commit()

        faculty_count = session.execute(
            select(func.count(Faculty.id)).where(Faculty.department_id == department.id)
        ).scalar_one()
        entry_count = session.execute(
            select(func.count(WeeklyScheduleEntry.id)).where(WeeklyScheduleEntry.department_id == department.id)
        ).scalar_one()
        tokens = {
            item.name: create_access_token(item.id, role=UserRole.faculty)
            for item in roster[:2]
        }

    print("Rearrangement demo data seeded successfully.")
    print("")
    print(f"Department: {DEPARTMENT_NAME} ({DEPARTMENT_CODE}) id={department.id}")
    print(f"Faculty records: {faculty_count}")
    print(f"Weekly timetable entries: {entry_count}")
    for summary in summaries:
        print(f"  Section {summary.section}: published {summary.published}, replaced {summary.replaced}")
    print("")
    print("Bearer tokens for trying the API:")
    print(f"  Admin: {create_access_token(SEED_ADMIN_ID, role=UserRole.admin)}")
    for name, token in tokens.items():
        print(f"  {name}: {token}")


if __name__ == "__main__":
    main()
