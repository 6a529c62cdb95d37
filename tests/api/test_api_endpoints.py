from __future__ import annotations

import pytest

from src.class_attendance.class_attendance.main import create_app


@pytest.fixture()
def app(world):
    app = create_app(world.container, settings_module="config.testing")
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


def login(client, user_id: str, role: str | None = None) -> None:
    with client.session_transaction() as sess:
        sess["user_id"] = user_id
        if role:
            sess["role"] = role


def _create(client, number: int = 1):
    return client.post(
        "/api/attendance/sessions",
        json={"teaching_class_id": "C1", "session_number": number, "date": "2026-03-02", "room": "B-204"},
    )


def test_requests_without_identity_are_rejected(client):
    resp = client.get("/api/attendance/classes/C1/sessions")

    assert resp.status_code == 401
    assert resp.get_json()["success"] is False


def test_teacher_creates_session(client):
    login(client, "T1", "teacher")

    resp = _create(client)

    assert resp.status_code == 201
    body = resp.get_json()
    assert body["success"] is True
    assert body["data"]["status"] == "active"
    assert body["data"]["date"] == "2026-03-02"
    assert body["data"]["room"] == "B-204"
    assert body["data"]["students_present"] == []
    assert sorted(body["data"]["students_absent"]) == ["S1", "S2", "S3", "S4", "S5"]


def test_role_is_looked_up_when_missing_from_session(client):
    login(client, "T1")

    assert _create(client).status_code == 201


def test_duplicate_session_is_a_conflict(client):
    login(client, "T1", "teacher")
    assert _create(client).status_code == 201

    resp = _create(client)

    assert resp.status_code == 409
    assert resp.get_json()["kind"] == "conflict"


def test_other_teacher_is_forbidden(client):
    login(client, "T2", "teacher")

    resp = _create(client)

    assert resp.status_code == 403
    assert resp.get_json()["kind"] == "forbidden"


def test_invalid_session_number(client):
    login(client, "T1", "teacher")

    resp = _create(client, number=99)

    assert resp.status_code == 400
    assert resp.get_json()["kind"] == "invalid_argument"


def test_unknown_session_is_not_found(client):
    login(client, "A1", "admin")

    resp = client.get("/api/attendance/sessions/999")

    assert resp.status_code == 404


def test_manual_checkin_then_complete_updates_scores(client):
    login(client, "T1", "teacher")
    session_id = _create(client).get_json()["data"]["id"]

    resp = client.post(
        "/api/checkin/manual",
        json={"session_id": session_id, "student_id": "S1", "status": "absent", "note": "sick"},
    )
    assert resp.status_code == 200
    assert resp.get_json()["data"]["note"] == "sick"

    resp = client.post("/api/checkin/manual", json={"session_id": session_id, "student_id": "S2", "status": "present"})
    assert resp.status_code == 200

    resp = client.patch(f"/api/attendance/sessions/{session_id}/status", json={"status": "completed"})
    assert resp.status_code == 200
    assert resp.get_json()["data"]["status"] == "completed"

    scores = client.get("/api/scores/students/S1").get_json()
    assert scores["count"] == 1
    assert scores["data"][0]["attendance_score"] == 8

    stats = client.get("/api/scores/classes/C1/stats").get_json()["data"]
    assert stats["sessions_completed"] == 1
    assert stats["session_stats"][0]["present_count"] == 1


def test_checkin_on_completed_session_is_a_rule_violation(client):
    login(client, "T1", "teacher")
    session_id = _create(client).get_json()["data"]["id"]
    client.patch(f"/api/attendance/sessions/{session_id}/status", json={"status": "completed"})

    resp = client.post("/api/checkin/manual", json={"session_id": session_id, "student_id": "S1", "status": "present"})

    assert resp.status_code == 422
    assert resp.get_json()["kind"] == "invalid_rule_violation"


def test_face_checkin_by_student(client):
    login(client, "T1", "teacher")
    session_id = _create(client).get_json()["data"]["id"]

    login(client, "S1", "student")
    resp = client.post(
        "/api/checkin/face",
        json={"session_id": session_id, "student_id": "S1", "descriptor": [0.1, 0.2, 0.3], "confidence": 0.91},
    )

    assert resp.status_code == 200
    data = resp.get_json()["data"]
    assert data["recognized"] is True
    assert data["recognized_confidence"] == pytest.approx(0.91)


def test_face_checkin_missing_fields(client):
    login(client, "S1", "student")

    resp = client.post("/api/checkin/face", json={"session_id": 1, "student_id": "S1"})

    assert resp.status_code == 400
    assert "descriptor" in resp.get_json()["message"]


def test_non_json_body_is_rejected(client):
    login(client, "T1", "teacher")

    resp = client.post("/api/attendance/sessions", data="not json", content_type="text/plain")

    assert resp.status_code == 400


def test_recompute_requires_class_id(client):
    login(client, "T1", "teacher")

    resp = client.post("/api/scores/recompute", json={})

    assert resp.status_code == 400


def test_session_logs_for_student_are_filtered(client):
    login(client, "T1", "teacher")
    session_id = _create(client).get_json()["data"]["id"]
    for student_id in ("S1", "S2"):
        client.post("/api/checkin/manual", json={"session_id": session_id, "student_id": student_id, "status": "present"})

    login(client, "S2", "student")
    body = client.get(f"/api/attendance/sessions/{session_id}/logs").get_json()

    assert body["count"] == 1
    assert body["data"][0]["student_id"] == "S2"


def test_list_sessions_is_paginated(client):
    login(client, "T1", "teacher")
    for number in (1, 2, 3):
        _create(client, number)

    body = client.get("/api/attendance/sessions?page=2&limit=2").get_json()

    assert body["success"] is True
    assert (body["currentPage"], body["totalPages"], body["totalCount"]) == (2, 2, 3)
    assert len(body["data"]) == 1


def test_list_sessions_rejects_students(client):
    login(client, "S1", "student")

    assert client.get("/api/attendance/sessions").status_code == 403
