"""Per-user session lifecycle: open at login, close at logout."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from planboard.models import Settings
from planboard.store import AppStore
from planboard.streaks import refresh_streaks
from planboard.sync import DocumentStore, RemoteSync

logger = logging.getLogger(__name__)


def local_clock(settings: Settings) -> Callable[[], datetime]:
    """Naive wall-clock time in the configured timezone."""
    try:
        tz = ZoneInfo(settings.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning("Unknown timezone %r, falling back to UTC", settings.timezone)
        tz = ZoneInfo("UTC")
    return lambda: datetime.now(tz).replace(tzinfo=None)


@dataclass
class Session:
    user_id: str
    store: AppStore
    sync: RemoteSync
    settings: Settings

    @property
    def closed(self) -> bool:
        return self.store.closed

    def close(self) -> None:
        """Write the settled state, stop live updates and close the store."""
        if self.store.closed:
            return
        self.sync.flush()
        self.sync.stop()
        self.store.close()
        logger.info("Closed session for %s", self.user_id)


def open_session(
    user_id: str,
    documents: DocumentStore,
    settings: Settings | None = None,
    clock: Callable[[], datetime] | None = None,
) -> Session:
    """Load (or initialize) the user's document and wire a live AppStore to it."""
    settings = settings or Settings()
    clock = clock or local_clock(settings)
    sync = RemoteSync(documents, user_id, settings.sync_debounce_seconds, clock=clock)
    document = sync.load()
    document.habits = refresh_streaks(document.habits, clock().date())
    store = AppStore(document, clock=clock)
    store.attach_sync(sync)
    sync.start(store.apply_remote)
    logger.info("Opened session for %s", user_id)
    return Session(user_id=user_id, store=store, sync=sync, settings=settings)


class SessionRegistry:
    """One open session per user id, shared by the request handlers."""

    def __init__(
        self,
        documents: DocumentStore,
        settings: Settings | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.documents = documents
        self.settings = settings or Settings()
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def get(self, user_id: str) -> Session:
        with self._lock:
            session = self._sessions.get(user_id)
            if session is None or session.closed:
                session = open_session(user_id, self.documents, self.settings, self._clock)
                self._sessions[user_id] = session
            return session

    def close(self, user_id: str) -> bool:
        with self._lock:
            session = self._sessions.pop(user_id, None)
        if session is None:
            return False
        session.close()
        return True

    def close_all(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.close()
