"""Shared test fixtures for Planboard tests."""

from __future__ import annotations

import itertools
import os
from datetime import datetime
from pathlib import Path

import pytest

from planboard import accounts
from planboard.models import Settings
from planboard.store import AppStore
from planboard.sync import FileDocumentStore
from planboard.workspace import save_settings

# Sunday, 2026-02-15 at 10:30
NOW = datetime(2026, 2, 15, 10, 30)


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def ids():
    """Deterministic id factory: id-1, id-2, ..."""
    counter = itertools.count(1)
    return lambda: f"id-{next(counter)}"


@pytest.fixture
def store(clock, ids) -> AppStore:
    return AppStore(clock=clock, id_factory=ids)


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch) -> Path:
    """Create a temporary data root with config.yaml and fast password hashing."""
    root = tmp_path / "planboard"
    root.mkdir()
    save_settings(
        Settings(timezone="UTC", week_start="sun", sync_debounce_seconds=0, log_level="DEBUG"),
        root,
    )
    monkeypatch.setattr(accounts, "PBKDF2_ITERATIONS", 1000)

    os.environ["PLANBOARD_ROOT"] = str(root)
    yield root
    if "PLANBOARD_ROOT" in os.environ:
        del os.environ["PLANBOARD_ROOT"]


@pytest.fixture
def documents(workspace: Path) -> FileDocumentStore:
    return FileDocumentStore(workspace)
