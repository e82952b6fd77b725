from datetime import timedelta


def test_faculty_leave_request_flow(client, headers, admin_headers, campus, monday):
    create_response = client.post(
        "/api/leaves",
        json={
            "start_date": monday.isoformat(),
            "end_date": (monday + timedelta(days=1)).isoformat(),
            "leave_type": "sick",
            "reason": "Medical appointment",
        },
        headers=headers(campus.jaya),
    )
    assert create_response.status_code == 201
    leave_id = create_response.json()["id"]
    assert create_response.json()["status"] == "pending"

    overlapping = client.post(
        "/api/leaves",
        json={"start_date": monday.isoformat(), "leave_type": "casual", "reason": "Another day"},
        headers=headers(campus.jaya),
    )
    assert overlapping.status_code == 409

    faculty_list = client.get("/api/leaves", headers=headers(campus.jaya))
    assert [item["id"] for item in faculty_list.json()] == [leave_id]
    assert client.get("/api/leaves", headers=headers(campus.hari)).json() == []

    admin_list = client.get("/api/leaves", params={"status": "pending"}, headers=admin_headers)
    assert [item["id"] for item in admin_list.json()] == [leave_id]

    # Pending leave does not affect availability.
    before = client.get(
        "/api/rearrangements/available",
        params={"date": monday.isoformat(), "period_id": "P1", "department_id": campus.cse},
        headers=headers(campus.farah),
    ).json()
    assert "Jaya" in [item["name"] for item in before["candidates"]]

    forbidden = client.put(
        f"/api/leaves/{leave_id}/status",
        json={"status": "approved"},
        headers=headers(campus.jaya),
    )
    assert forbidden.status_code == 403

    update_response = client.put(
        f"/api/leaves/{leave_id}/status",
        json={"status": "approved", "admin_comment": "Approved"},
        headers=admin_headers,
    )
    assert update_response.status_code == 200
    assert update_response.json()["status"] == "approved"
    assert update_response.json()["reviewed_by_id"] is not None

    again = client.put(f"/api/leaves/{leave_id}/status", json={"status": "rejected"}, headers=admin_headers)
    assert again.status_code == 409

    after = client.get(
        "/api/rearrangements/available",
        params={"date": monday.isoformat(), "period_id": "P1", "department_id": campus.cse},
        headers=headers(campus.farah),
    ).json()
    assert "Jaya" not in [item["name"] for item in after["candidates"]]

    notifications = client.get("/api/notifications", headers=headers(campus.jaya)).json()
    assert [item["notification_type"] for item in notifications] == ["leave"]


def test_leave_range_validation(client, headers, campus, monday):
    response = client.post(
        "/api/leaves",
        json={
            "start_date": monday.isoformat(),
            "end_date": (monday - timedelta(days=1)).isoformat(),
            "leave_type": "sick",
            "reason": "Backwards",
        },
        headers=headers(campus.jaya),
    )
    assert response.status_code == 422


def test_attendance_marking_and_listing(client, headers, admin_headers, campus, monday):
    absent = client.post(
        "/api/attendance",
        json={"status": "Absent", "attendance_date": monday.isoformat()},
        headers=headers(campus.hari),
    )
    assert absent.status_code == 200
    assert absent.json()["faculty_name"] == "Hari"

    corrected = client.post(
        "/api/attendance",
        json={"status": "Present", "attendance_date": monday.isoformat()},
        headers=headers(campus.hari),
    )
    assert corrected.status_code == 200
    assert corrected.json()["id"] == absent.json()["id"]
    assert corrected.json()["status"] == "Present"

    client.post(
        "/api/attendance",
        json={"status": "Absent", "attendance_date": monday.isoformat()},
        headers=headers(campus.kiran),
    )

    listing = client.get(
        "/api/attendance",
        params={"date": monday.isoformat(), "department_id": campus.cse},
        headers=admin_headers,
    )
    assert listing.status_code == 200
    assert [(item["faculty_name"], item["status"]) for item in listing.json()] == [("Hari", "Present")]

    everyone = client.get("/api/attendance", params={"date": monday.isoformat()}, headers=admin_headers).json()
    assert [item["faculty_name"] for item in everyone] == ["Hari", "Kiran"]

    assert client.get("/api/attendance", params={"date": monday.isoformat()}, headers=headers(campus.hari)).status_code == 403
