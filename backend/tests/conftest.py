import os

# The app engine is created at import time; keep startup bootstrap off the real database.
os.environ["DATABASE_URL"] = "sqlite+pysqlite://"

from datetime import date, datetime, timedelta, timezone  # noqa: E402
from types import SimpleNamespace  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

import app.models  # noqa: E402,F401
from app.api.deps import get_db  # noqa: E402
from app.core.security import UserRole, create_access_token  # noqa: E402
from app.db.base import Base  # noqa: E402
from app.main import app  # noqa: E402
from app.models.department import Department  # noqa: E402
from app.models.faculty import Faculty  # noqa: E402
from app.schemas.timetable import ClassTimetablePublish  # noqa: E402
from app.services.event_bus import event_bus  # noqa: E402
from app.services.timetable_store import WeeklyTimetableStore  # noqa: E402

ADMIN_ID = "admin-0001"


def next_weekday(start: date, weekday: int) -> date:
    candidate = start
    while candidate.weekday() != weekday:
        candidate += timedelta(days=1)
    return candidate


@pytest.fixture(autouse=True)
def clean_event_bus():
    event_bus.clear()
    yield
    event_bus.clear()


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def headers():
    def build(subject: str, role: UserRole = UserRole.faculty) -> dict[str, str]:
        token = create_access_token(subject, role)
        return {"Authorization": f"Bearer {token}"}

    return build


@pytest.fixture()
def admin_headers(headers):
    return headers(ADMIN_ID, UserRole.admin)


@pytest.fixture()
def monday() -> date:
    tomorrow = datetime.now(timezone.utc).date() + timedelta(days=1)
    return next_weekday(tomorrow, 0)


def _add_faculty(db, *, name: str, email: str, department_id: str, designation: str = "Assistant Professor") -> Faculty:
    faculty = Faculty(name=name, email=email, department_id=department_id, designation=designation)
    db.add(faculty)
    db.flush()
    return faculty


@pytest.fixture()
def campus(db_session):
    """CSE with two year-2 sections and an ECE member who teaches one CSE period.

    Monday, year 2 semester 3:
      section A  P1 Data Structures (Farah)  P2 Algorithms (Gopal)  BREAK
                 P3 Data Structures (Farah)  P5-P6 Networks Lab (Hari + Indu)
      section B  P1 Operating Systems (Gopal)  P3 Signals (Kiran, ECE)
    ECE year 1 semester 1 section A: P3 Discrete Maths (Gopal).
    Jaya teaches nothing on Monday.
    """
    cse = Department(code="CSE", name="Computer Science")
    ece = Department(code="ECE", name="Electronics")
    db_session.add_all([cse, ece])
    db_session.flush()

    farah = _add_faculty(db_session, name="Farah", email="farah@example.edu", department_id=cse.id)
    gopal = _add_faculty(db_session, name="Gopal", email="gopal@example.edu", department_id=cse.id)
    hari = _add_faculty(db_session, name="Hari", email="hari@example.edu", department_id=cse.id)
    indu = _add_faculty(db_session, name="Indu", email="indu@example.edu", department_id=cse.id)
    jaya = _add_faculty(db_session, name="Jaya", email="jaya@example.edu", department_id=cse.id)
    kiran = _add_faculty(db_session, name="Kiran", email="kiran@example.edu", department_id=ece.id)

    store = WeeklyTimetableStore(db_session)
    store.publish_class_timetable(
        ClassTimetablePublish(
            department_id=cse.id,
            year=2,
            semester=3,
            section="A",
            entries=[
                {"weekday": "Monday", "period_id": "P1", "subject_name": "Data Structures", "faculty_id": farah.id, "room": "CS-101"},
                {"weekday": "Monday", "period_id": "P2", "subject_name": "Algorithms", "faculty_id": gopal.id, "room": "CS-101"},
                {"weekday": "Monday", "period_id": "BREAK", "is_break": True, "subject_name": "Break"},
                {"weekday": "Monday", "period_id": "P3", "subject_name": "Data Structures", "faculty_id": farah.id, "room": "CS-101"},
                {
                    "weekday": "Monday",
                    "period_id": "P5",
                    "subject_name": "Networks Lab",
                    "subject_type": "Lab",
                    "span": 2,
                    "faculty_id": hari.id,
                    "secondary_faculty_id": indu.id,
                    "room": "Lab-2",
                },
            ],
        ),
        published_by_id=ADMIN_ID,
    )
    store.publish_class_timetable(
        ClassTimetablePublish(
            department_id=cse.id,
            year=2,
            semester=3,
            section="B",
            entries=[
                {"weekday": "Monday", "period_id": "P1", "subject_name": "Operating Systems", "faculty_id": gopal.id},
                {"weekday": "Monday", "period_id": "P3", "subject_name": "Signals", "faculty_id": kiran.id},
            ],
        ),
        published_by_id=ADMIN_ID,
    )
    store.publish_class_timetable(
        ClassTimetablePublish(
            department_id=ece.id,
            year=1,
            semester=1,
            section="A",
            entries=[
                {"weekday": "Monday", "period_id": "P3", "subject_name": "Discrete Maths", "faculty_id": gopal.id},
            ],
        ),
        published_by_id=ADMIN_ID,
    )
    db_session.commit()

    return SimpleNamespace(
        cse=cse.id,
        ece=ece.id,
        farah=farah.id,
        gopal=gopal.id,
        hari=hari.id,
        indu=indu.id,
        jaya=jaya.id,
        kiran=kiran.id,
    )
