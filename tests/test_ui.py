"""Tests for ui/app.py — HTTP endpoints over a temporary data root."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from planboard.session import SessionRegistry
from ui.app import create_app

AUTH = ("ada@example.com", "secret1")


@pytest.fixture
def client(workspace, clock):
    app = create_app(workspace)
    app.state.sessions = SessionRegistry(app.state.accounts.documents, app.state.settings, clock)
    with TestClient(app) as c:
        resp = c.post("/api/signup", json={"email": AUTH[0], "password": AUTH[1], "name": "Ada"})
        assert resp.status_code == 200
        c.auth = AUTH
        yield c


def test_healthz(workspace):
    with TestClient(create_app(workspace)) as c:
        assert c.get("/healthz").json() == {"ok": "true"}


def test_requires_credentials(client):
    assert client.get("/api/state", auth=None).status_code == 401
    assert client.get("/api/state", auth=(AUTH[0], "wrong-pass")).status_code == 401


def test_signup_errors(client):
    resp = client.post("/api/signup", json={"email": AUTH[0], "password": "another1"})
    assert resp.status_code == 400
    assert "already in use" in resp.json()["detail"]
    resp = client.post("/api/signup", json={"email": "bob@example.com", "password": "123"})
    assert resp.status_code == 400


def test_state_starts_empty(client):
    state = client.get("/api/state").json()
    assert state["tasks"] == [] and state["events"] == []
    assert state["updatedAt"] == "2026-02-15T10:30:00"


def test_task_crud(client):
    created = client.post("/api/tasks", json={"title": "Write", "priority": "high"}).json()
    assert created["ok"] is True
    task_id = created["task"]["id"]

    assert client.post(f"/api/tasks/{task_id}/toggle").json()["task"]["completed"] is True
    patched = client.patch(f"/api/tasks/{task_id}", json={"title": "Write more"}).json()
    assert patched["task"]["title"] == "Write more"

    listed = client.get("/api/tasks", params={"day": "2026-02-15"}).json()["tasks"]
    assert [t["id"] for t in listed] == [task_id]
    assert client.get("/api/tasks", params={"day": "2026-02-16"}).json()["tasks"] == []

    assert client.delete(f"/api/tasks/{task_id}").json() == {"ok": True, "removed": True}
    assert client.get("/api/tasks").json()["tasks"] == []


def test_invalid_task_reports_errors(client):
    resp = client.post("/api/tasks", json={"title": ""})
    assert resp.status_code == 200
    body = resp.json()
    assert body["ok"] is False
    assert body["errors"]
    assert client.get("/api/tasks").json()["tasks"] == []


def test_unknown_task_update_is_silent(client):
    assert client.patch("/api/tasks/missing", json={"title": "X"}).json() == {"ok": True, "task": None}
    assert client.delete("/api/tasks/missing").json() == {"ok": True, "removed": False}


def test_habit_day_toggle_and_week(client):
    habit = client.post("/api/habits", json={"name": "Read", "target": 30}).json()["habit"]
    toggled = client.post(f"/api/habits/{habit['id']}/days/2026-02-15").json()["habit"]
    assert toggled["streak"] == 1
    client.post(f"/api/habits/{habit['id']}/days/2026-02-14")

    listed = client.get("/api/habits").json()
    assert listed["days"][-1] == "2026-02-15"
    row = listed["habits"][0]
    assert row["streak"] == 2
    assert row["week"]["2026-02-14"] is True
    assert row["week"]["2026-02-09"] is False


def test_workout_export(client):
    workout = client.post("/api/workouts", json={
        "name": "Leg Day",
        "date": "2026-02-15T07:00:00",
        "exercises": [
            {"name": "Squats", "sets": 5, "reps": 5, "weight": 100},
            {"name": "Lunges", "sets": 3, "reps": 12, "weight": 20},
        ],
    }).json()["workout"]
    resp = client.get(f"/api/workouts/{workout['id']}/export")
    assert resp.status_code == 200
    assert resp.text.split("\n") == ["Exercise,Sets,Reps,Weight", "Squats,5,5,100", "Lunges,3,12,20"]
    assert "Leg-Day_2026-02-15.csv" in resp.headers["content-disposition"]
    assert client.get("/api/workouts/missing/export").status_code == 404


def test_event_time_edits(client):
    event = client.post("/api/events", json={
        "title": "Meeting",
        "date": "2026-02-15T14:00:00",
        "endTime": "2026-02-15T15:00:00",
    }).json()["event"]

    moved = client.post(f"/api/events/{event['id']}/start", json={"start": "2026-02-15T15:00:00"}).json()
    assert moved["event"]["endTime"] == "2026-02-15T15:15:00"

    refused = client.post(f"/api/events/{event['id']}/end", json={"end": "2026-02-15T14:00:00"}).json()
    assert refused["ok"] is False
    assert refused["event"]["endTime"] == "2026-02-15T15:15:00"

    url = client.get(f"/api/events/{event['id']}/quick-add").json()["url"]
    assert url.startswith("https://calendar.google.com/calendar/render?action=TEMPLATE")


def test_calendar_views(client):
    client.post("/api/events", json={"title": "Standup", "date": "2026-02-16T09:00:00"})

    month = client.get("/api/calendar", params={"view": "month", "day": "2026-02-10"}).json()
    assert len(month["days"]) % 7 == 0
    cell = next(d for d in month["days"] if d["day"] == "2026-02-16")
    assert [e["title"] for e in cell["events"]] == ["Standup"]
    assert next(d for d in month["days"] if d["isToday"])["day"] == "2026-02-15"

    week = client.get("/api/calendar", params={"view": "week", "day": "2026-02-16"}).json()
    assert week["days"][0]["day"] == "2026-02-15"
    assert week["days"][0]["nowMarker"] is not None
    assert week["days"][1]["events"][0]["offset"] == 0.375

    day = client.get("/api/calendar", params={"view": "day", "day": "2026-02-16"}).json()
    assert [e["title"] for e in day["hours"]["9"]] == ["Standup"]
    assert day["nowMarker"] is None

    assert client.get("/api/calendar", params={"view": "year"}).status_code == 400


def test_calendar_navigate_and_drag(client):
    nav = client.get("/api/calendar/navigate", params={"view": "month", "day": "2026-01-31", "direction": 1}).json()
    assert nav["day"] == "2026-02-28"

    drag = client.post("/api/calendar/drag", json={
        "day": "2026-02-15", "yStart": 600, "yEnd": 660, "columnHeight": 1440,
    }).json()
    assert drag == {"ok": True, "date": "2026-02-15T10:00:00", "endTime": "2026-02-15T11:00:00"}
    assert client.post("/api/calendar/drag", json={"day": "2026-02-15"}).json()["ok"] is False


def test_analytics_and_exercises(client):
    client.post("/api/tasks", json={"title": "A"})
    summary = client.get("/api/analytics").json()
    assert summary["totalTasks"] == 1
    assert summary["taskCompletionRate"] == 0

    found = client.get("/api/exercises", params={"q": "squat", "limit": 3}).json()["exercises"]
    assert 0 < len(found) <= 3
    assert all("squat" in e["name"].lower() for e in found)

    listing = client.get("/api/exercises").json()
    assert listing["categories"][0] == "Full Body"


def test_logout_closes_session(client):
    client.post("/api/tasks", json={"title": "Persist me"})
    assert client.post("/api/logout").json() == {"ok": True, "closed": True}
    # A fresh session reloads from disk.
    assert [t["title"] for t in client.get("/api/tasks").json()["tasks"]] == ["Persist me"]


def test_event_time_edit_with_other_timezone_style_is_refused(client):
    event = client.post("/api/events", json={
        "title": "Meeting",
        "date": "2026-02-15T14:00:00",
        "endTime": "2026-02-15T15:00:00",
    }).json()["event"]

    resp = client.post(f"/api/events/{event['id']}/start", json={"start": "2026-02-15T15:00:00Z"})
    assert resp.status_code == 200
    assert resp.json()["ok"] is False
    resp = client.post(f"/api/events/{event['id']}/end", json={"end": "2026-02-15T16:00:00Z"})
    assert resp.status_code == 200
    assert resp.json()["ok"] is False

    stored = client.get("/api/events").json()["events"][0]
    assert (stored["date"], stored["endTime"]) == ("2026-02-15T14:00:00", "2026-02-15T15:00:00")


def test_week_view_orders_naive_and_utc_events(client):
    client.post("/api/events", json={"title": "Late", "date": "2026-02-16T10:00:00Z"})
    client.post("/api/events", json={"title": "Early", "date": "2026-02-16T09:00:00"})

    resp = client.get("/api/calendar", params={"view": "week", "day": "2026-02-16"})
    assert resp.status_code == 200
    monday = resp.json()["days"][1]
    assert [e["title"] for e in monday["events"]] == ["Early", "Late"]
