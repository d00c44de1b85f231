"""Tests for planboard/session.py — session lifecycle and registry."""

from datetime import datetime

from planboard.models import Settings
from planboard.session import SessionRegistry, local_clock, open_session

SETTINGS = Settings(sync_debounce_seconds=0)


def test_open_session_initializes_document(documents, clock):
    session = open_session("u1", documents, SETTINGS, clock)
    assert session.store.tasks == []
    assert documents.get("u1")["habits"] == []
    session.close()


def test_mutations_reach_document_store(documents, clock):
    session = open_session("u1", documents, SETTINGS, clock)
    session.store.add_task({"title": "Write"})
    assert documents.get("u1")["tasks"][0]["title"] == "Write"
    session.close()


def test_open_session_refreshes_stale_streaks(documents, clock):
    documents.set("u1", {
        "habits": [{"id": "h1", "name": "Read", "streak": 12, "completedDays": ["2026-02-14", "2026-02-15"]}],
    })
    session = open_session("u1", documents, SETTINGS, clock)
    assert session.store.habits[0].streak == 2
    session.close()


def test_remote_snapshot_updates_store(documents, clock):
    session = open_session("u1", documents, SETTINGS, clock)
    documents.set("u1", {"tasks": [{"id": "r1", "title": "From phone"}]}, origin="phone")
    assert [t.title for t in session.store.tasks] == ["From phone"]
    session.close()


def test_close_flushes_and_stops(documents, clock):
    settings = Settings(sync_debounce_seconds=60)
    session = open_session("u1", documents, settings, clock)
    session.store.add_task({"title": "Pending"})
    assert session.sync.pending
    session.close()

    assert session.closed
    assert documents.get("u1")["tasks"][0]["title"] == "Pending"
    documents.set("u1", {"tasks": []}, origin="phone")
    assert [t.title for t in session.store.tasks] == ["Pending"]
    session.close()


def test_registry_reuses_open_session(documents, clock):
    registry = SessionRegistry(documents, SETTINGS, clock)
    first = registry.get("u1")
    assert registry.get("u1") is first
    assert registry.close("u1") is True
    assert registry.close("u1") is False
    assert registry.get("u1") is not first
    registry.close_all()


def test_local_clock_uses_configured_timezone():
    now = local_clock(Settings(timezone="Asia/Tokyo"))()
    assert now.tzinfo is None
    assert isinstance(now, datetime)


def test_local_clock_unknown_timezone_falls_back(caplog):
    local_clock(Settings(timezone="Mars/Olympus"))()
    assert "Unknown timezone" in caplog.text
