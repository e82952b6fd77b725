from datetime import timedelta

import pytest

from app.core.exceptions import InvalidRequestError, ResourceNotFoundError
from app.models.attendance import AttendanceStatus, FacultyAttendance
from app.models.faculty import Faculty
from app.models.leave_request import LeaveRequest, LeaveStatus, LeaveType
from app.models.rearrangement_request import RearrangementRequest, RearrangementResolution, RearrangementStatus
from app.services.availability import AvailabilityResolver


def free_names(db, department_id, on_date, period_id, **kwargs) -> list[str]:
    return [item.name for item in AvailabilityResolver(db).find_free_faculty(department_id, on_date, period_id, **kwargs)]


def add_accepted(db, *, on_date, period_id, department_id, original_id, substitute_id) -> RearrangementRequest:
    request = RearrangementRequest(
        request_date=on_date,
        period_id=period_id,
        department_id=department_id,
        class_label="Year2-A",
        subject_name="Data Structures",
        original_faculty_id=original_id,
        original_faculty_name="Original",
        substitute_faculty_id=substitute_id,
        substitute_faculty_name="Substitute",
        status=RearrangementStatus.accepted,
        resolution=RearrangementResolution.accepted,
        created_by_id=original_id,
    )
    db.add(request)
    db.commit()
    return request


def test_teaching_faculty_are_excluded(db_session, campus, monday):
    assert free_names(db_session, campus.cse, monday, "P1") == ["Hari", "Indu", "Jaya"]
    assert free_names(db_session, campus.cse, monday, "P2") == ["Farah", "Hari", "Indu", "Jaya"]
    assert free_names(db_session, campus.cse, monday, "P7") == ["Farah", "Gopal", "Hari", "Indu", "Jaya"]


def test_teaching_in_another_department_counts_as_busy(db_session, campus, monday):
    # Gopal teaches an ECE class in P3.
    assert free_names(db_session, campus.cse, monday, "P3") == ["Hari", "Indu", "Jaya"]


def test_lab_entries_occupy_every_spanned_period(db_session, campus, monday):
    # The Networks Lab anchored at P5 spans P6 as well; both lab faculty are busy.
    assert free_names(db_session, campus.cse, monday, "P5") == ["Farah", "Gopal", "Jaya"]
    assert free_names(db_session, campus.cse, monday, "P6") == ["Farah", "Gopal", "Jaya"]


def test_other_weekdays_use_their_own_entries(db_session, campus, monday):
    tuesday = monday + timedelta(days=1)
    assert free_names(db_session, campus.cse, tuesday, "P1") == ["Farah", "Gopal", "Hari", "Indu", "Jaya"]


def test_committed_substitutes_are_excluded(db_session, campus, monday):
    add_accepted(
        db_session,
        on_date=monday,
        period_id="P1",
        department_id=campus.cse,
        original_id=campus.farah,
        substitute_id=campus.jaya,
    )
    assert free_names(db_session, campus.cse, monday, "P1") == ["Hari", "Indu"]
    # The commitment is for one date only.
    assert free_names(db_session, campus.cse, monday + timedelta(days=7), "P1") == ["Hari", "Indu", "Jaya"]


def test_approved_leave_excludes_faculty(db_session, campus, monday):
    db_session.add_all(
        [
            LeaveRequest(
                faculty_id=campus.hari,
                start_date=monday - timedelta(days=1),
                end_date=monday + timedelta(days=1),
                leave_type=LeaveType.sick,
                reason="Flu",
                status=LeaveStatus.approved,
            ),
            LeaveRequest(
                faculty_id=campus.indu,
                start_date=monday,
                end_date=monday,
                leave_type=LeaveType.casual,
                reason="Pending approval",
                status=LeaveStatus.pending,
            ),
        ]
    )
    db_session.commit()
    assert free_names(db_session, campus.cse, monday, "P1") == ["Indu", "Jaya"]


def test_absent_attendance_excludes_faculty(db_session, campus, monday):
    db_session.add_all(
        [
            FacultyAttendance(faculty_id=campus.jaya, attendance_date=monday, status=AttendanceStatus.Absent),
            FacultyAttendance(faculty_id=campus.indu, attendance_date=monday, status=AttendanceStatus.Present),
        ]
    )
    db_session.commit()
    assert free_names(db_session, campus.cse, monday, "P1") == ["Hari", "Indu"]


def test_exclude_faculty_id_and_period_normalization(db_session, campus, monday):
    assert free_names(db_session, campus.cse, monday, " p1 ", exclude_faculty_id=campus.hari) == ["Indu", "Jaya"]


def test_inactive_faculty_are_not_candidates(db_session, campus, monday):
    db_session.get(Faculty, campus.jaya).is_active = False
    db_session.commit()
    assert free_names(db_session, campus.cse, monday, "P1") == ["Hari", "Indu"]


def test_empty_result_is_not_an_error(db_session, campus, monday):
    for faculty_id in (campus.hari, campus.indu, campus.jaya):
        db_session.add(FacultyAttendance(faculty_id=faculty_id, attendance_date=monday, status=AttendanceStatus.Absent))
    db_session.commit()

    result = AvailabilityResolver(db_session).find_free(campus.cse, monday, "P1")
    assert result.count == 0
    assert result.candidates == []
    assert result.weekday == "Monday"


def test_unknown_department_is_not_found(db_session, campus, monday):
    with pytest.raises(ResourceNotFoundError):
        AvailabilityResolver(db_session).find_free_faculty("missing", monday, "P1")


def test_available_endpoint(client, headers, campus, monday):
    response = client.get(
        "/api/rearrangements/available",
        params={"date": monday.isoformat(), "period_id": "P2", "department_id": campus.cse},
        headers=headers(campus.gopal),
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["count"] == 4
    assert payload["period_id"] == "P2"
    assert [item["name"] for item in payload["candidates"]] == ["Farah", "Hari", "Indu", "Jaya"]
    assert set(payload["candidates"][0]) == {"id", "name", "designation", "department_id"}

    missing = client.get(
        "/api/rearrangements/available",
        params={"date": monday.isoformat(), "period_id": "P2", "department_id": "missing"},
        headers=headers(campus.gopal),
    )
    assert missing.status_code == 404
    assert missing.json()["code"] == "not_found"


def test_available_endpoint_excludes_calling_faculty(client, headers, campus, monday):
    response = client.get(
        "/api/rearrangements/available",
        params={"date": monday.isoformat(), "period_id": "P7", "department_id": campus.cse},
        headers=headers(campus.farah),
    )
    assert [item["name"] for item in response.json()["candidates"]] == ["Gopal", "Hari", "Indu", "Jaya"]


@pytest.mark.parametrize("period_id", ["BREAK", "LUNCH", "P99"])
def test_non_teaching_periods_are_rejected(db_session, campus, monday, period_id):
    with pytest.raises(InvalidRequestError) as excinfo:
        AvailabilityResolver(db_session).find_free_faculty(campus.cse, monday, period_id)
    assert excinfo.value.details["period_id"] == period_id


def test_available_endpoint_rejects_sunday_and_breaks(client, headers, campus, monday):
    sunday = monday + timedelta(days=6)
    response = client.get(
        "/api/rearrangements/available",
        params={"date": sunday.isoformat(), "period_id": "P1", "department_id": campus.cse},
        headers=headers(campus.farah),
    )
    assert response.status_code == 400
    assert response.json()["code"] == "invalid_request"
    assert response.json()["details"]["weekday"] == "Sunday"

    lunch = client.get(
        "/api/rearrangements/available",
        params={"date": monday.isoformat(), "period_id": "lunch", "department_id": campus.cse},
        headers=headers(campus.farah),
    )
    assert lunch.status_code == 400
