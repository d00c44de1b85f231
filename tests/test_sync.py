"""Tests for planboard/sync.py — document store, debounced writes, remote delivery."""

import time
from datetime import datetime

import pytest

from planboard.sync import FileDocumentStore, RemoteSync

NOW = datetime(2026, 2, 15, 10, 30)


class FailingDocuments:
    def __init__(self):
        self.calls = 0

    def get(self, user_id):
        raise ConnectionError("offline")

    def set(self, user_id, data, merge=True, origin=None):
        self.calls += 1
        raise ConnectionError("offline")

    def subscribe(self, user_id, callback, origin=None):
        return lambda: None


# ── FileDocumentStore ──


def test_set_merge_keeps_other_keys(documents):
    documents.set("u1", {"name": "Ada", "tasks": []}, merge=False)
    documents.set("u1", {"tasks": [{"id": "t1", "title": "X"}]})
    doc = documents.get("u1")
    assert doc["name"] == "Ada"
    assert doc["tasks"][0]["id"] == "t1"
    assert documents.path_for("u1").exists()


def test_set_without_merge_replaces(documents):
    documents.set("u1", {"name": "Ada"})
    documents.set("u1", {"tasks": []}, merge=False)
    assert documents.get("u1") == {"tasks": []}


def test_get_missing_returns_none(documents):
    assert documents.get("ghost") is None


def test_rejects_path_like_user_ids(documents):
    with pytest.raises(ValueError):
        documents.get("../etc/passwd")


def test_subscribers_skip_own_origin(documents):
    mine, theirs = [], []
    documents.subscribe("u1", mine.append, origin="me")
    unsubscribe = documents.subscribe("u1", theirs.append, origin="other")
    documents.set("u1", {"tasks": []}, origin="me")
    assert mine == []
    assert theirs == [{"tasks": []}]
    unsubscribe()
    documents.set("u1", {"habits": []}, origin="me")
    assert len(theirs) == 1


def test_failing_subscriber_does_not_block_others(documents, caplog):
    seen = []

    def broken(_):
        raise RuntimeError("boom")

    documents.subscribe("u1", broken)
    documents.subscribe("u1", seen.append)
    documents.set("u1", {"tasks": []})
    assert len(seen) == 1
    assert "Subscriber failed" in caplog.text


def test_subscribers_only_hear_writes_from_same_instance(documents, workspace):
    other_process = FileDocumentStore(workspace)
    heard = []
    other_process.subscribe("u1", heard.append)
    documents.set("u1", {"tasks": [{"id": "t1", "title": "From the TUI"}]})
    assert heard == []
    assert other_process.get("u1")["tasks"][0]["id"] == "t1"


# ── RemoteSync ──


def test_load_initializes_missing_document(documents):
    sync = RemoteSync(documents, "u1", clock=lambda: NOW)
    doc = sync.load()
    assert doc.tasks == []
    stored = documents.get("u1")
    assert stored["updatedAt"] == "2026-02-15T10:30:00"
    assert stored["events"] == []


def test_load_failure_yields_empty_document(caplog):
    doc = RemoteSync(FailingDocuments(), "u1").load()
    assert doc.tasks == [] and doc.habits == []
    assert "Failed to load" in caplog.text


def test_debounce_coalesces_to_latest(documents):
    sync = RemoteSync(documents, "u1", debounce_seconds=60)
    sync.schedule({"tasks": [{"id": "a"}]})
    sync.schedule({"tasks": [{"id": "b"}]})
    assert sync.pending
    assert documents.get("u1") is None

    assert sync.flush() is True
    assert sync.writes == 1
    assert documents.get("u1")["tasks"] == [{"id": "b"}]
    assert not sync.pending
    assert sync.flush() is False


def test_debounce_timer_writes_after_quiet_period(documents):
    sync = RemoteSync(documents, "u1", debounce_seconds=0.05)
    sync.schedule({"tasks": []})
    deadline = time.monotonic() + 2
    while sync.writes == 0 and time.monotonic() < deadline:
        time.sleep(0.01)
    assert sync.writes == 1


def test_zero_debounce_writes_immediately(documents):
    sync = RemoteSync(documents, "u1", debounce_seconds=0)
    sync.schedule({"habits": []})
    assert sync.writes == 1
    assert documents.get("u1") == {"habits": []}


def test_cancel_drops_pending(documents):
    sync = RemoteSync(documents, "u1", debounce_seconds=60)
    sync.schedule({"tasks": []})
    sync.cancel()
    assert sync.flush() is False
    assert documents.get("u1") is None


def test_write_failure_is_logged_not_retried(caplog):
    failing = FailingDocuments()
    sync = RemoteSync(failing, "u1", debounce_seconds=0)
    sync.schedule({"tasks": []})
    assert failing.calls == 1
    assert sync.writes == 0
    assert not sync.pending
    assert "Failed to save" in caplog.text


def test_remote_changes_delivered_until_stop(documents):
    received = []
    sync = RemoteSync(documents, "u1", debounce_seconds=0)
    sync.start(received.append)
    assert sync.active

    documents.set("u1", {"tasks": [{"id": "remote"}]}, origin="another-device")
    assert received[-1]["tasks"] == [{"id": "remote"}]

    # Own writes are not echoed back.
    sync.schedule({"tasks": [{"id": "local"}]})
    assert len(received) == 1

    sync.stop()
    documents.set("u1", {"tasks": []}, origin="another-device")
    assert len(received) == 1
    assert not sync.active
