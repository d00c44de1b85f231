"""File helpers for the Planboard data root.

User documents and the account list are JSON; settings are YAML. Writes
go to a temp file beside the target and are moved into place with
os.replace, so readers never see a half-written document.
`update_json` also holds an exclusive flock on ``<name>.lock`` for the
whole read-modify-write cycle, which keeps the web app and the TUI from
interleaving updates to the same file.
"""

from __future__ import annotations

import fcntl
import json
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Callable, Iterator

import yaml


def _read(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return ""


def read_json(path: Path) -> dict[str, Any]:
    """JSON object at *path*; {} when missing, blank or not an object."""
    text = _read(path)
    if not text.strip():
        return {}
    data = json.loads(text)
    return data if isinstance(data, dict) else {}


def read_yaml(path: Path) -> dict[str, Any]:
    text = _read(path)
    data = yaml.safe_load(text) if text.strip() else None
    return data if isinstance(data, dict) else {}


def _replace_file(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, path)
    except Exception:
        if os.path.exists(temp_path):
            os.unlink(temp_path)
        raise


@contextmanager
def file_lock(path: Path) -> Iterator[None]:
    """Exclusive advisory lock shared by every process touching *path*."""
    lock_path = path.with_name(path.name + ".lock")
    lock_path.parent.mkdir(parents=True, exist_ok=True)
    with open(lock_path, "a", encoding="utf-8") as handle:
        fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


def write_json_atomic(path: Path, data: dict[str, Any]) -> None:
    _replace_file(path, json.dumps(data, indent=2, ensure_ascii=False) + "\n")


def write_yaml_atomic(path: Path, data: dict[str, Any]) -> None:
    _replace_file(path, yaml.safe_dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False))


def update_json(
    path: Path,
    mutate: Callable[[dict[str, Any]], dict[str, Any] | None],
) -> dict[str, Any]:
    """Read *path*, apply *mutate* and write the result back under file_lock.

    *mutate* may edit the dict in place (returning None) or return a
    replacement. Exceptions from *mutate* leave the file untouched.
    """
    with file_lock(path):
        data = read_json(path)
        replacement = mutate(data)
        if replacement is not None:
            data = replacement
        write_json_atomic(path, data)
    return data
