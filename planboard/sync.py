"""Remote persistence of the per-user document.

FileDocumentStore keeps one JSON document per user and pushes merged
documents to live subscribers. RemoteSync sits between an AppStore and a
document store: it loads (or initializes) the document, coalesces rapid
local changes into one debounced write, and forwards remote snapshots
until stopped.
"""

from __future__ import annotations

import logging
import re
import threading
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Protocol

from planboard.fileio import read_json, update_json
from planboard.models import UserDocument
from planboard.workspace import documents_dir

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[dict[str, Any]], Any]

_USER_ID = re.compile(r"^[A-Za-z0-9_-]+$")


class DocumentStore(Protocol):
    def get(self, user_id: str) -> dict[str, Any] | None: ...

    def set(
        self,
        user_id: str,
        data: dict[str, Any],
        merge: bool = True,
        origin: str | None = None,
    ) -> dict[str, Any]: ...

    def subscribe(
        self,
        user_id: str,
        callback: SnapshotCallback,
        origin: str | None = None,
    ) -> Callable[[], None]: ...


class FileDocumentStore:
    """Documents under <root>/users/<user_id>.json with in-process change notification.

    Subscribers hear only writes made through this instance. Writes from
    another process show up on the next get() and are never pushed.
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        self._lock = threading.RLock()
        self._subscribers: dict[str, list[tuple[str | None, SnapshotCallback]]] = {}

    def path_for(self, user_id: str) -> Path:
        if not _USER_ID.match(user_id or ""):
            raise ValueError(f"Invalid user id: {user_id!r}")
        return documents_dir(self.root) / f"{user_id}.json"

    def get(self, user_id: str) -> dict[str, Any] | None:
        path = self.path_for(user_id)
        if not path.exists():
            return None
        return read_json(path)

    def set(
        self,
        user_id: str,
        data: dict[str, Any],
        merge: bool = True,
        origin: str | None = None,
    ) -> dict[str, Any]:
        """Write a document; merge=True updates top-level keys of the existing one."""
        path = self.path_for(user_id)
        with self._lock:
            if merge:
                document = update_json(path, lambda current: current.update(data))
            else:
                document = update_json(path, lambda _current: dict(data))
            subscribers = list(self._subscribers.get(user_id, []))
        for sub_origin, callback in subscribers:
            if origin is not None and sub_origin == origin:
                continue
            try:
                callback(dict(document))
            except Exception:
                logger.exception("Subscriber failed for %s", user_id)
        return document

    def subscribe(
        self,
        user_id: str,
        callback: SnapshotCallback,
        origin: str | None = None,
    ) -> Callable[[], None]:
        entry = (origin, callback)
        with self._lock:
            self._subscribers.setdefault(user_id, []).append(entry)

        def _unsubscribe() -> None:
            with self._lock:
                entries = self._subscribers.get(user_id, [])
                if entry in entries:
                    entries.remove(entry)

        return _unsubscribe


class RemoteSync:
    """Debounced, fire-and-forget mirror of one user's AppStore."""

    def __init__(
        self,
        documents: DocumentStore,
        user_id: str,
        debounce_seconds: float = 1.0,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.documents = documents
        self.user_id = user_id
        self.debounce_seconds = max(0.0, debounce_seconds)
        self._clock = clock or datetime.now
        self._origin = uuid.uuid4().hex
        self._lock = threading.Lock()
        self._pending: dict[str, Any] | None = None
        self._timer: threading.Timer | None = None
        self._unsubscribe: Callable[[], None] | None = None
        self._on_snapshot: SnapshotCallback | None = None
        self._active = False
        self.writes = 0

    @property
    def pending(self) -> bool:
        return self._pending is not None

    @property
    def active(self) -> bool:
        return self._active

    def load(self) -> UserDocument:
        """Fetch the user's document, creating an empty one if none exists.

        Load failures are logged and yield an empty (unsaved) document.
        """
        try:
            data = self.documents.get(self.user_id)
            if data is None:
                logger.info("Initializing document for %s", self.user_id)
                empty = UserDocument.empty(self._clock().isoformat(timespec="seconds"))
                data = self.documents.set(self.user_id, empty.to_dict(), merge=True, origin=self._origin)
        except Exception:
            logger.exception("Failed to load document for %s", self.user_id)
            return UserDocument.empty()
        return UserDocument.from_dict(data)

    def schedule(self, snapshot: dict[str, Any]) -> None:
        """Queue *snapshot* for writing; only the latest one survives the quiet period."""
        with self._lock:
            self._pending = snapshot
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            if self.debounce_seconds > 0:
                self._timer = threading.Timer(self.debounce_seconds, self.flush)
                self._timer.daemon = True
                self._timer.start()
        if self.debounce_seconds <= 0:
            self.flush()

    def flush(self) -> bool:
        """Write the pending snapshot now. Returns True if a write succeeded."""
        with self._lock:
            data = self._pending
            self._pending = None
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        if data is None:
            return False
        try:
            self.documents.set(self.user_id, data, merge=True, origin=self._origin)
        except Exception:
            logger.exception("Failed to save document for %s", self.user_id)
            return False
        self.writes += 1
        return True

    def cancel(self) -> None:
        with self._lock:
            self._pending = None
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def start(self, on_snapshot: SnapshotCallback) -> None:
        """Deliver remote changes to *on_snapshot* until stop()."""
        self.stop()
        self._on_snapshot = on_snapshot
        self._active = True
        self._unsubscribe = self.documents.subscribe(self.user_id, self._deliver, origin=self._origin)

    def stop(self) -> None:
        self._active = False
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._on_snapshot = None

    def _deliver(self, document: dict[str, Any]) -> None:
        callback = self._on_snapshot
        if not self._active or callback is None:
            return
        callback(document)
