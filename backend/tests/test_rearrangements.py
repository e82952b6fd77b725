from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from app.core.security import UserRole
from app.models.rearrangement_request import RearrangementRequest, RearrangementStatus
from app.models.weekly_schedule import WeeklyScheduleEntry


def create_request(client, headers, *, actor, on_date, period_id, department_id, substitute_id, **extra):
    payload = {
        "date": on_date.isoformat(),
        "period_id": period_id,
        "department_id": department_id,
        "substitute_faculty_id": substitute_id,
        **extra,
    }
    return client.post("/api/rearrangements", json=payload, headers=headers(actor))


def respond(client, headers, request_id, actor, decision, note=None):
    body = {"decision": decision}
    if note is not None:
        body["response_note"] = note
    return client.post(f"/api/rearrangements/{request_id}/respond", json=body, headers=headers(actor))


def test_create_request_derives_class_from_weekly_entry(client, headers, campus, monday):
    response = create_request(
        client,
        headers,
        actor=campus.farah,
        on_date=monday,
        period_id="p3",
        department_id=campus.cse,
        substitute_id=campus.jaya,
    )
    assert response.status_code == 201
    payload = response.json()
    assert payload["status"] == "pending"
    assert payload["resolution"] is None
    assert payload["period_id"] == "P3"
    assert payload["request_date"] == monday.isoformat()
    assert payload["subject_name"] == "Data Structures"
    assert payload["class_label"] == "Year2-A"
    assert (payload["year"], payload["semester"], payload["section"]) == (2, 3, "A")
    assert payload["room"] == "CS-101"
    assert payload["original_faculty_name"] == "Farah"
    assert payload["substitute_faculty_name"] == "Jaya"
    assert payload["created_by_id"] == campus.farah

    pending = client.get("/api/rearrangements/pending", headers=headers(campus.jaya))
    assert [item["id"] for item in pending.json()] == [payload["id"]]

    mine = client.get("/api/rearrangements/mine", headers=headers(campus.farah))
    assert [item["id"] for item in mine.json()] == [payload["id"]]


def test_create_request_without_weekly_entry_needs_descriptor(client, headers, campus, monday):
    missing = create_request(
        client,
        headers,
        actor=campus.jaya,
        on_date=monday,
        period_id="P4",
        department_id=campus.cse,
        substitute_id=campus.hari,
    )
    assert missing.status_code == 400
    assert missing.json()["code"] == "invalid_request"

    supplied = create_request(
        client,
        headers,
        actor=campus.jaya,
        on_date=monday,
        period_id="P4",
        department_id=campus.cse,
        substitute_id=campus.hari,
        subject_name="Seminar",
        class_label="Year4-B",
    )
    assert supplied.status_code == 201
    assert supplied.json()["subject_name"] == "Seminar"
    assert supplied.json()["class_label"] == "Year4-B"
    assert supplied.json()["section"] is None


def test_create_request_validation_errors(client, headers, campus, monday):
    unknown_substitute = create_request(
        client, headers, actor=campus.farah, on_date=monday, period_id="P3",
        department_id=campus.cse, substitute_id="missing",
    )
    assert unknown_substitute.status_code == 404

    unknown_department = create_request(
        client, headers, actor=campus.farah, on_date=monday, period_id="P3",
        department_id="missing", substitute_id=campus.jaya,
    )
    assert unknown_department.status_code == 404

    self_substitute = create_request(
        client, headers, actor=campus.farah, on_date=monday, period_id="P3",
        department_id=campus.cse, substitute_id=campus.farah,
    )
    assert self_substitute.status_code == 409
    assert self_substitute.json()["code"] == "unavailable"

    busy_substitute = create_request(
        client, headers, actor=campus.farah, on_date=monday, period_id="P3",
        department_id=campus.cse, substitute_id=campus.gopal,
    )
    assert busy_substitute.status_code == 409
    assert busy_substitute.json()["code"] == "unavailable"

    yesterday = datetime.now(timezone.utc).date() - timedelta(days=1)
    past = create_request(
        client, headers, actor=campus.farah, on_date=yesterday, period_id="P3",
        department_id=campus.cse, substitute_id=campus.jaya,
    )
    assert past.status_code == 400

    secondary_lab = create_request(
        client, headers, actor=campus.indu, on_date=monday, period_id="P6",
        department_id=campus.cse, substitute_id=campus.jaya,
    )
    assert secondary_lab.status_code == 400
    assert "secondary" in secondary_lab.json()["message"]


def test_faculty_cannot_create_for_someone_else_but_staff_can(client, headers, campus, monday):
    forbidden = create_request(
        client, headers, actor=campus.gopal, on_date=monday, period_id="P3",
        department_id=campus.cse, substitute_id=campus.jaya, original_faculty_id=campus.farah,
    )
    assert forbidden.status_code == 403
    assert forbidden.json()["code"] == "forbidden"

    on_behalf = client.post(
        "/api/rearrangements",
        json={
            "date": monday.isoformat(),
            "period_id": "P3",
            "department_id": campus.cse,
            "substitute_faculty_id": campus.jaya,
            "original_faculty_id": campus.farah,
        },
        headers=headers("scheduler-1", UserRole.scheduler),
    )
    assert on_behalf.status_code == 201
    assert on_behalf.json()["original_faculty_id"] == campus.farah
    assert on_behalf.json()["created_by_id"] == "scheduler-1"


def test_duplicate_live_request_is_a_conflict(client, headers, campus, monday):
    first = create_request(
        client, headers, actor=campus.farah, on_date=monday, period_id="P3",
        department_id=campus.cse, substitute_id=campus.jaya,
    )
    assert first.status_code == 201

    second = create_request(
        client, headers, actor=campus.farah, on_date=monday, period_id="P3",
        department_id=campus.cse, substitute_id=campus.hari,
    )
    assert second.status_code == 409
    assert second.json()["code"] == "conflict"
    assert second.json()["details"]["existing_request_id"] == first.json()["id"]

    # After a rejection the slot is open again.
    assert respond(client, headers, first.json()["id"], campus.jaya, "reject").status_code == 200
    third = create_request(
        client, headers, actor=campus.farah, on_date=monday, period_id="P3",
        department_id=campus.cse, substitute_id=campus.hari,
    )
    assert third.status_code == 201


def test_accept_flow_and_already_resolved(client, headers, campus, monday):
    created = create_request(
        client, headers, actor=campus.farah, on_date=monday, period_id="P1",
        department_id=campus.cse, substitute_id=campus.hari,
    ).json()

    wrong_actor = respond(client, headers, created["id"], campus.jaya, "accept")
    assert wrong_actor.status_code == 403

    accepted = respond(client, headers, created["id"], campus.hari, "accept", note="Happy to help")
    assert accepted.status_code == 200
    assert accepted.json()["status"] == "accepted"
    assert accepted.json()["resolution"] == "accepted"
    assert accepted.json()["response_note"] == "Happy to help"
    assert accepted.json()["responded_at"] is not None

    again = respond(client, headers, created["id"], campus.hari, "reject")
    assert again.status_code == 409
    assert again.json()["code"] == "already_resolved"
    assert again.json()["details"]["status"] == "accepted"

    missing = respond(client, headers, "missing", campus.hari, "accept")
    assert missing.status_code == 404

    invalid = client.post(
        f"/api/rearrangements/{created['id']}/respond",
        json={"decision": "maybe"},
        headers=headers(campus.hari),
    )
    assert invalid.status_code == 422

    # Hari is now committed for P1 and drops out of availability.
    available = client.get(
        "/api/rearrangements/available",
        params={"date": monday.isoformat(), "period_id": "P1", "department_id": campus.cse},
        headers=headers(campus.gopal),
    )
    assert [item["name"] for item in available.json()["candidates"]] == ["Indu", "Jaya"]


def test_reject_records_declined_resolution(client, headers, campus, monday):
    created = create_request(
        client, headers, actor=campus.farah, on_date=monday, period_id="P1",
        department_id=campus.cse, substitute_id=campus.hari,
    ).json()

    rejected = respond(client, headers, created["id"], campus.hari, "reject", note="  ")
    assert rejected.status_code == 200
    assert rejected.json()["status"] == "rejected"
    assert rejected.json()["resolution"] == "declined"
    assert rejected.json()["response_note"] is None

    pending = client.get("/api/rearrangements/pending", headers=headers(campus.hari))
    assert pending.json() == []
    incoming = client.get("/api/rearrangements/incoming", headers=headers(campus.hari))
    assert [item["id"] for item in incoming.json()] == [created["id"]]


def test_accept_supersedes_other_pending_requests_for_the_same_period(client, headers, campus, monday):
    from_farah = create_request(
        client, headers, actor=campus.farah, on_date=monday, period_id="P3",
        department_id=campus.cse, substitute_id=campus.jaya,
    ).json()
    from_gopal = create_request(
        client, headers, actor=campus.gopal, on_date=monday, period_id="P3",
        department_id=campus.cse, substitute_id=campus.jaya,
    ).json()
    assert from_gopal["class_label"] == "Year1-A"

    assert respond(client, headers, from_farah["id"], campus.jaya, "accept").status_code == 200

    loser = client.get(f"/api/rearrangements/{from_gopal['id']}", headers=headers(campus.gopal)).json()
    assert loser["status"] == "rejected"
    assert loser["resolution"] == "superseded"

    late = respond(client, headers, from_gopal["id"], campus.jaya, "accept")
    assert late.status_code == 409
    assert late.json()["code"] in {"already_resolved", "conflict"}


def test_cancel_by_original_only(client, headers, campus, monday):
    created = create_request(
        client, headers, actor=campus.farah, on_date=monday, period_id="P1",
        department_id=campus.cse, substitute_id=campus.hari,
    ).json()

    forbidden = client.post(f"/api/rearrangements/{created['id']}/cancel", json={}, headers=headers(campus.hari))
    assert forbidden.status_code == 403

    cancelled = client.post(
        f"/api/rearrangements/{created['id']}/cancel",
        json={"reason": "Meeting moved"},
        headers=headers(campus.farah),
    )
    assert cancelled.status_code == 200
    assert cancelled.json()["status"] == "rejected"
    assert cancelled.json()["resolution"] == "cancelled"
    assert cancelled.json()["response_note"] == "Meeting moved"

    repeat = client.post(f"/api/rearrangements/{created['id']}/cancel", json={}, headers=headers(campus.farah))
    assert repeat.status_code == 200
    assert repeat.json()["resolution"] == "cancelled"

    late_response = respond(client, headers, created["id"], campus.hari, "accept")
    assert late_response.status_code == 409
    assert late_response.json()["code"] == "already_resolved"


def test_cancel_after_acceptance_is_a_no_op(client, headers, campus, monday):
    created = create_request(
        client, headers, actor=campus.farah, on_date=monday, period_id="P1",
        department_id=campus.cse, substitute_id=campus.hari,
    ).json()
    respond(client, headers, created["id"], campus.hari, "accept")

    response = client.post(f"/api/rearrangements/{created['id']}/cancel", json={}, headers=headers(campus.farah))
    assert response.status_code == 200
    assert response.json()["status"] == "accepted"


def test_hide_is_per_party_and_terminal_only(client, headers, campus, monday):
    created = create_request(
        client, headers, actor=campus.farah, on_date=monday, period_id="P1",
        department_id=campus.cse, substitute_id=campus.hari,
    ).json()

    too_early = client.delete(f"/api/rearrangements/{created['id']}", headers=headers(campus.farah))
    assert too_early.status_code == 400

    respond(client, headers, created["id"], campus.hari, "accept")

    outsider = client.delete(f"/api/rearrangements/{created['id']}", headers=headers(campus.jaya))
    assert outsider.status_code == 403

    hidden = client.delete(f"/api/rearrangements/{created['id']}", headers=headers(campus.farah))
    assert hidden.status_code == 200

    assert client.get("/api/rearrangements/mine", headers=headers(campus.farah)).json() == []
    incoming = client.get("/api/rearrangements/incoming", headers=headers(campus.hari)).json()
    assert [item["id"] for item in incoming] == [created["id"]]

    # Hidden requests still count for availability and the day board.
    available = client.get(
        "/api/rearrangements/available",
        params={"date": monday.isoformat(), "period_id": "P1", "department_id": campus.cse},
        headers=headers(campus.gopal),
    ).json()
    assert campus.hari not in {item["id"] for item in available["candidates"]}
    board = client.get(
        "/api/rearrangements",
        params={"date": monday.isoformat(), "department_id": campus.cse},
        headers=headers(campus.gopal),
    ).json()
    assert [item["id"] for item in board] == [created["id"]]


def test_get_request_visibility(client, headers, campus, monday, admin_headers):
    created = create_request(
        client, headers, actor=campus.farah, on_date=monday, period_id="P1",
        department_id=campus.cse, substitute_id=campus.hari,
    ).json()
    assert client.get(f"/api/rearrangements/{created['id']}", headers=headers(campus.hari)).status_code == 200
    assert client.get(f"/api/rearrangements/{created['id']}", headers=admin_headers).status_code == 200
    assert client.get(f"/api/rearrangements/{created['id']}", headers=headers(campus.jaya)).status_code == 403
    assert client.get("/api/rearrangements/missing", headers=admin_headers).status_code == 404


def test_expire_stale_is_admin_triggered(client, headers, admin_headers, campus, monday):
    created = create_request(
        client, headers, actor=campus.farah, on_date=monday, period_id="P1",
        department_id=campus.cse, substitute_id=campus.hari,
    ).json()

    forbidden = client.post("/api/rearrangements/expire-stale", json={}, headers=headers(campus.farah))
    assert forbidden.status_code == 403

    nothing = client.post("/api/rearrangements/expire-stale", json={}, headers=admin_headers)
    assert nothing.status_code == 200
    assert nothing.json()["expired_count"] == 0

    swept = client.post(
        "/api/rearrangements/expire-stale",
        json={"before": (monday + timedelta(days=1)).isoformat()},
        headers=admin_headers,
    )
    assert swept.status_code == 200
    assert swept.json() == {"before": (monday + timedelta(days=1)).isoformat(), "expired_count": 1}

    expired = client.get(f"/api/rearrangements/{created['id']}", headers=admin_headers).json()
    assert expired["status"] == "rejected"
    assert expired["resolution"] == "expired"


def test_scenario_c_stale_candidate_list(client, headers, campus, monday, db_session):
    # Everyone in CSE except Jaya teaches P1 on Monday in a new class; Jaya is absent.
    db_session.add(
        WeeklyScheduleEntry(
            department_id=campus.cse,
            year=4,
            semester=7,
            section="A",
            weekday="Monday",
            period_id="P1",
            subject_name="Project",
            faculty_id=campus.hari,
            faculty_name="Hari",
        )
    )
    db_session.add(
        WeeklyScheduleEntry(
            department_id=campus.cse,
            year=4,
            semester=7,
            section="B",
            weekday="Monday",
            period_id="P1",
            subject_name="Project",
            faculty_id=campus.indu,
            faculty_name="Indu",
        )
    )
    db_session.commit()

    before = client.get(
        "/api/rearrangements/available",
        params={"date": monday.isoformat(), "period_id": "P1", "department_id": campus.cse},
        headers=headers(campus.farah),
    ).json()
    assert [item["name"] for item in before["candidates"]] == ["Jaya"]

    client.post("/api/attendance", json={"status": "Absent", "attendance_date": monday.isoformat()}, headers=headers(campus.jaya))

    after = client.get(
        "/api/rearrangements/available",
        params={"date": monday.isoformat(), "period_id": "P1", "department_id": campus.cse},
        headers=headers(campus.farah),
    ).json()
    assert after["count"] == 0
    assert after["candidates"] == []

    stale = create_request(
        client, headers, actor=campus.farah, on_date=monday, period_id="P1",
        department_id=campus.cse, substitute_id=campus.jaya,
    )
    assert stale.status_code == 409
    assert stale.json()["code"] == "unavailable"

    remaining = db_session.execute(
        select(RearrangementRequest).where(RearrangementRequest.status == RearrangementStatus.pending)
    ).scalars().all()
    assert remaining == []


def test_requests_outside_teaching_periods_are_rejected(client, headers, campus, monday, db_session):
    for period_id in ("BREAK", "LUNCH", "P99"):
        response = create_request(
            client, headers, actor=campus.farah, on_date=monday, period_id=period_id,
            department_id=campus.cse, substitute_id=campus.jaya,
            subject_name="Extra", class_label="Year2-A",
        )
        assert response.status_code == 400
        assert response.json()["code"] == "invalid_request"
        assert response.json()["details"]["period_id"] == period_id

    sunday = create_request(
        client, headers, actor=campus.farah, on_date=monday + timedelta(days=6), period_id="P1",
        department_id=campus.cse, substitute_id=campus.jaya,
    )
    assert sunday.status_code == 400
    assert sunday.json()["details"]["weekday"] == "Sunday"

    assert db_session.execute(select(RearrangementRequest)).scalars().all() == []
