from datetime import datetime, timedelta, timezone
from urllib.parse import parse_qs, urlparse

from fastapi.testclient import TestClient

START = datetime.now(timezone.utc) + timedelta(days=1)


def _payload(subject: str = "math", lessons=("L1", "L2"), start: datetime = START) -> dict:
    return {
        "subject": subject,
        "startDate": start.isoformat(),
        "endDate": (start + timedelta(hours=1)).isoformat(),
        "lessons": [{"name": name, "completed": False} for name in lessons],
    }


def _add(client: TestClient, user_id: str = "u1", **kwargs) -> dict:
    response = client.post(f"/api/study-sessions/{user_id}", json=_payload(**kwargs))
    assert response.status_code == 201
    return response.json()


def test_add_and_list_sessions(client: TestClient):
    session = _add(client)

    assert session["status"] == "active"
    assert session["id"]
    groups = client.get("/api/study-sessions/u1").json()
    assert [s["id"] for s in groups["active"]] == [session["id"]]
    assert groups["completed"] == []
    assert groups["postponed"] == []


def test_schedules_are_per_user(client: TestClient):
    _add(client, "u1")
    assert client.get("/api/study-sessions/u2").json()["active"] == []


def test_add_rejects_end_before_start(client: TestClient):
    payload = _payload()
    payload["endDate"], payload["startDate"] = payload["startDate"], payload["endDate"]
    response = client.post("/api/study-sessions/u1", json=payload)
    assert response.status_code == 422


def test_add_rejects_unknown_subject(client: TestClient):
    response = client.post("/api/study-sessions/u1", json=_payload(subject="alchemy"))
    assert response.status_code == 422


def test_toggle_all_lessons_completes_session(client: TestClient):
    session = _add(client, lessons=("L1",))

    response = client.post(f"/api/study-sessions/u1/{session['id']}/lessons/0/toggle")

    assert response.status_code == 200
    groups = response.json()
    assert groups["active"] == []
    assert [s["id"] for s in groups["completed"]] == [session["id"]]


def test_toggle_out_of_range_is_bad_request(client: TestClient):
    session = _add(client)
    response = client.post(f"/api/study-sessions/u1/{session['id']}/lessons/9/toggle")
    assert response.status_code == 400


def test_postpone_splits_session(client: TestClient):
    session = _add(client)
    client.post(f"/api/study-sessions/u1/{session['id']}/lessons/0/toggle")

    groups = client.post(f"/api/study-sessions/u1/{session['id']}/postpone").json()

    assert groups["active"] == []
    assert [lesson["name"] for lesson in groups["postponed"][0]["lessons"]] == ["L2"]
    assert [lesson["name"] for lesson in groups["completed"][0]["lessons"]] == ["L1"]


def test_postpone_without_incomplete_lessons_is_bad_request(client: TestClient):
    session = _add(client, lessons=("L1",))
    client.post(f"/api/study-sessions/u1/{session['id']}/lessons/0/toggle")
    response = client.post(f"/api/study-sessions/u1/{session['id']}/postpone")
    assert response.status_code == 400


def test_update_and_delete_session(client: TestClient):
    session = _add(client)
    session["lessons"] = [{"name": "Renamed", "completed": False}]

    groups = client.put(f"/api/study-sessions/u1/{session['id']}", json=session).json()
    assert groups["active"][0]["lessons"][0]["name"] == "Renamed"

    mismatch = client.put("/api/study-sessions/u1/other", json=session)
    assert mismatch.status_code == 400

    assert client.delete(f"/api/study-sessions/u1/{session['id']}").status_code == 204
    assert client.get("/api/study-sessions/u1").json()["active"] == []
    assert client.delete("/api/study-sessions/u1/missing").status_code == 204


def test_tick_transfers_expired_sessions(client: TestClient):
    past = datetime.now(timezone.utc) - timedelta(hours=2)
    _add(client, start=past)

    groups = client.post("/api/study-sessions/u1/tick").json()

    assert groups["active"] == []
    assert [lesson["name"] for lesson in groups["postponed"][0]["lessons"]] == ["L1", "L2"]


def test_share_and_import_round_trip(client: TestClient):
    _add(client, "u1", lessons=("Algebra",))

    share = client.get("/api/study-sessions/u1/share")
    assert share.status_code == 200
    body = share.json()
    assert "/study-schedule?import=" in body["url"]
    assert parse_qs(urlparse(body["url"]).query)["import"] == [body["token"]]

    imported = client.post("/api/study-sessions/u2/import", json={"token": body["token"]})
    assert imported.status_code == 200
    active = imported.json()["active"]
    assert [(s["subject"], s["lessons"][0]["name"]) for s in active] == [("math", "Algebra")]


def test_share_without_active_sessions_is_bad_request(client: TestClient):
    assert client.get("/api/study-sessions/u1/share").status_code == 400


def test_import_rejects_garbage_token(client: TestClient):
    response = client.post("/api/study-sessions/u1/import", json={"token": "%%%not-base64"})
    assert response.status_code == 400


def test_friend_schedule_is_readable(client: TestClient):
    session = _add(client, "friend")
    groups = client.get("/api/friends/friend/schedule").json()
    assert [s["id"] for s in groups["active"]] == [session["id"]]
