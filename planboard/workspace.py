"""Data root, settings, timezone and path helpers for Planboard."""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from planboard.fileio import read_yaml, write_yaml_atomic
from planboard.models import Settings


def data_root() -> Path:
    """Get the data root directory (contains config.yaml, accounts.json and users/)."""
    return Path(
        os.environ.get("PLANBOARD_ROOT", str(Path.home() / "planboard"))
    ).expanduser().resolve()


# ── Path helpers ──────────────────────────────────────────────

def config_path(root: Path | None = None) -> Path:
    if root is None:
        root = data_root()
    return root / "config.yaml"


def accounts_path(root: Path | None = None) -> Path:
    if root is None:
        root = data_root()
    return root / "accounts.json"


def documents_dir(root: Path | None = None) -> Path:
    if root is None:
        root = data_root()
    return root / "users"


# ── Settings ──────────────────────────────────────────────────

def load_settings(root: Path | None = None) -> Settings:
    """Load config.yaml into Settings, defaulting every missing key."""
    return Settings.from_dict(read_yaml(config_path(root)))


def save_settings(settings: Settings, root: Path | None = None) -> None:
    write_yaml_atomic(config_path(root), settings.to_dict())


def get_user_timezone(root: Path | None = None) -> ZoneInfo:
    """Get the configured timezone, defaulting to UTC."""
    try:
        return ZoneInfo(load_settings(root).timezone)
    except (ZoneInfoNotFoundError, ValueError):
        return ZoneInfo("UTC")


def now_local(root: Path | None = None) -> datetime:
    """Get current wall-clock time in the configured timezone (naive)."""
    return datetime.now(get_user_timezone(root)).replace(tzinfo=None)


def today_str(root: Path | None = None) -> str:
    """Get today's date string (YYYY-MM-DD) in the configured timezone."""
    return now_local(root).date().isoformat()
