from __future__ import annotations

import pytest

from campus_attendance.main import create_app

MARK_DATE = "2026-03-02"


@pytest.fixture
def app(container, campus):
    app = create_app(container=container, settings_module="config.testing")
    app.config["TESTING"] = True
    return app


@pytest.fixture
def client(app):
    return app.test_client()


def login(client, email, password, device="laptop"):
    return client.post(
        "/api/auth/login",
        json={"email": email, "password": password},
        headers={"X-Device-Id": device},
    )


def mark(client, campus, batch_year=2023, statuses=None):
    statuses = statuses or {campus.s1: "P", campus.s2: "A"}
    return client.post(
        "/api/instructor/attendance",
        json={
            "subjectId": campus.subject_id,
            "batchYear": batch_year,
            "date": MARK_DATE,
            "attendanceData": [{"student": sid, "status": st} for sid, st in statuses.items()],
        },
        headers={"X-Device-Id": "laptop"},
    )


def test_requires_login(client, campus):
    resp = client.get("/api/dashboard")

    assert resp.status_code == 401
    assert resp.get_json()["success"] is False


def test_bad_password(client):
    resp = login(client, "ada@campus.local", "nope")

    assert resp.status_code == 401


def test_instructor_marks_then_duplicate_is_rejected(client, campus):
    assert login(client, "ada@campus.local", "teach123").status_code == 200

    first = mark(client, campus)
    body = first.get_json()
    assert first.status_code == 200
    assert body["data"]["batchYear"] == 2023
    assert {line["studentId"] for line in body["data"]["studentsMarked"]} == {campus.s1, campus.s2}

    second = mark(client, campus)
    assert second.status_code == 409


def test_marking_an_ungranted_batch_is_forbidden(client, campus):
    login(client, "ada@campus.local", "teach123")

    resp = mark(client, campus, batch_year=2022, statuses={campus.older: "P"})

    assert resp.status_code == 403


def test_students_cannot_mark(client, campus):
    login(client, "s1@campus.local", "learn123")

    assert mark(client, campus).status_code == 403


def test_partial_failure_reports_students(client, campus, store):
    store.students.fail_append_for.add(campus.s2)
    login(client, "ada@campus.local", "teach123")

    resp = mark(client, campus)
    body = resp.get_json()

    assert resp.status_code == 207
    assert body["failedStudentIds"] == [campus.s2]
    assert body["data"]["sessionId"]


def test_stats_and_correction(client, campus):
    login(client, "ada@campus.local", "teach123")
    session_id = mark(client, campus).get_json()["data"]["sessionId"]

    stats = client.get(
        f"/api/instructor/stats?subjectId={campus.subject_id}&batchYear=2023",
        headers={"X-Device-Id": "laptop"},
    ).get_json()["data"]
    assert (stats["totalClasses"], stats["averageAttendance"]) == (1, 50.0)

    edited = client.patch(
        "/api/instructor/attendance",
        json={"attendanceId": session_id, "studentId": campus.s2, "newStatus": "P"},
        headers={"X-Device-Id": "laptop"},
    )
    assert edited.status_code == 200
    assert edited.get_json()["data"]["status"] == "P"

    stats = client.get(
        f"/api/instructor/stats?subjectId={campus.subject_id}&batchYear=2023",
        headers={"X-Device-Id": "laptop"},
    ).get_json()["data"]
    assert stats["averageAttendance"] == 100.0


def test_student_device_limit(app, campus):
    first = app.test_client()
    second = app.test_client()

    assert login(first, "s1@campus.local", "learn123", device="phone").status_code == 200
    resp = login(second, "s1@campus.local", "learn123", device="tablet")

    assert resp.status_code == 403
    assert "subscribe" in resp.get_json()["message"]

    first.post("/api/auth/logout", headers={"X-Device-Id": "phone"})
    assert login(second, "s1@campus.local", "learn123", device="tablet").status_code == 200


def test_student_analytics(client, campus):
    login(client, "ada@campus.local", "teach123")
    mark(client, campus)
    client.post("/api/auth/logout", headers={"X-Device-Id": "laptop"})

    login(client, "s1@campus.local", "learn123", device="phone")
    resp = client.get("/api/student/analytics", headers={"X-Device-Id": "phone"})
    data = resp.get_json()["data"]

    assert resp.status_code == 200
    assert data["overall"] == 100.0
    assert data["subjects"][0]["present"] == 1


def test_malformed_attendance_lines_are_a_client_error(client, campus):
    login(client, "ada@campus.local", "teach123")

    resp = client.post(
        "/api/instructor/attendance",
        json={"subjectId": campus.subject_id, "batchYear": 2023, "date": MARK_DATE, "attendanceData": [campus.s1]},
        headers={"X-Device-Id": "laptop"},
    )
    assert resp.status_code == 400

    resp = client.post(
        "/api/instructor/attendance",
        json={"subjectId": campus.subject_id, "batchYear": 2023, "date": MARK_DATE, "attendanceData": "P"},
        headers={"X-Device-Id": "laptop"},
    )
    assert resp.status_code == 400


def test_browser_timestamp_is_accepted_for_marking(client, campus):
    login(client, "ada@campus.local", "teach123")

    resp = client.post(
        "/api/instructor/attendance",
        json={
            "subjectId": campus.subject_id,
            "batchYear": 2023,
            "date": "2026-03-02T10:00:00.000Z",
            "attendanceData": [{"student": campus.s1, "status": "P"}],
        },
        headers={"X-Device-Id": "laptop"},
    )

    assert resp.status_code == 200
    assert resp.get_json()["data"]["date"] == MARK_DATE


def test_student_attendance_view(client, campus, container):
    login(client, "ada@campus.local", "teach123")
    mark(client, campus)
    client.post("/api/auth/logout", headers={"X-Device-Id": "laptop"})
    login(client, "s1@campus.local", "learn123", device="phone")
    headers = {"X-Device-Id": "phone"}

    own = client.get("/api/student/attendance", headers=headers)
    assert own.status_code == 200
    assert [row["studentId"] for row in own.get_json()["data"]] == [campus.s1]
    assert own.get_json()["data"][0]["records"][0]["status"] == "P"

    denied = client.get("/api/student/attendance?viewClassmates=true", headers=headers)
    assert denied.status_code == 403

    assert client.get("/api/student/attendance?viewClassmates=maybe", headers=headers).status_code == 400

    container.account_service.update_subscription(campus.s1, plan="premium")
    allowed = client.get("/api/student/attendance?viewClassmates=true", headers=headers)
    assert allowed.status_code == 200
    assert sorted(row["studentId"] for row in allowed.get_json()["data"]) == sorted([campus.s1, campus.s2])
