"""Tests for planboard/workspace.py and planboard/fileio.py — data root, settings, file updates."""

import json

import pytest

from planboard.fileio import read_json, read_yaml, update_json, write_json_atomic
from planboard.models import Settings
from planboard.workspace import (
    accounts_path,
    config_path,
    data_root,
    documents_dir,
    get_user_timezone,
    load_settings,
    save_settings,
    today_str,
)


def test_data_root_from_env(workspace):
    assert data_root() == workspace.resolve()
    assert config_path() == workspace.resolve() / "config.yaml"
    assert accounts_path(workspace).name == "accounts.json"
    assert documents_dir(workspace).name == "users"


def test_settings_roundtrip(workspace):
    save_settings(Settings(timezone="Europe/Berlin", week_start="mon"), workspace)
    loaded = load_settings(workspace)
    assert loaded.timezone == "Europe/Berlin"
    assert loaded.week_start == "mon"
    assert read_yaml(config_path(workspace))["week_start"] == "mon"


def test_missing_config_uses_defaults(tmp_path):
    assert load_settings(tmp_path) == Settings()


def test_bad_timezone_falls_back_to_utc(workspace):
    save_settings(Settings(timezone="Nowhere/Special"), workspace)
    assert str(get_user_timezone(workspace)) == "UTC"
    assert len(today_str(workspace)) == 10


def test_read_json_missing_or_blank(tmp_path):
    assert read_json(tmp_path / "nope.json") == {}
    (tmp_path / "blank.json").write_text("  \n", encoding="utf-8")
    assert read_json(tmp_path / "blank.json") == {}


def test_update_json_in_place_and_replace(tmp_path):
    path = tmp_path / "doc.json"
    write_json_atomic(path, {"a": 1})
    assert update_json(path, lambda d: d.update(b=2)) == {"a": 1, "b": 2}
    assert update_json(path, lambda d: {"c": 3}) == {"c": 3}
    assert json.loads(path.read_text(encoding="utf-8")) == {"c": 3}


def test_update_json_error_leaves_file(tmp_path):
    path = tmp_path / "doc.json"
    write_json_atomic(path, {"a": 1})

    def boom(data):
        data["a"] = 2
        raise RuntimeError("no")

    with pytest.raises(RuntimeError):
        update_json(path, boom)
    assert read_json(path) == {"a": 1}
    assert not list(tmp_path.glob(".doc.json.*.tmp"))
