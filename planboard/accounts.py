"""Email/password accounts mapped to opaque user ids.

Accounts live in <root>/accounts.json as salted PBKDF2 hashes. Signup
also creates the user's document with empty collections.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

from planboard.fileio import read_json, update_json
from planboard.sync import DocumentStore, FileDocumentStore
from planboard.workspace import accounts_path

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6
PBKDF2_ITERATIONS = 200_000


class AuthError(Exception):
    """Login or signup failure; the message is meant for the user."""


def _hash_password(password: str, salt: str) -> str:
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), bytes.fromhex(salt), PBKDF2_ITERATIONS)
    return digest.hex()


class AccountRegistry:
    def __init__(
        self,
        root: Path,
        documents: DocumentStore | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.root = root
        self.documents = documents or FileDocumentStore(root)
        self._clock = clock or datetime.now

    def _load(self) -> dict[str, Any]:
        data = read_json(accounts_path(self.root))
        return data.get("accounts") or {}

    def signup(self, email: str, password: str, name: str = "") -> str:
        """Register a new account and return its user id."""
        key = (email or "").strip().lower()
        if not key or "@" not in key:
            raise AuthError("Please enter a valid email address")
        if len(password or "") < MIN_PASSWORD_LENGTH:
            raise AuthError(f"Password should be at least {MIN_PASSWORD_LENGTH} characters")
        salt = secrets.token_hex(16)
        password_hash = _hash_password(password, salt)
        user_id = uuid.uuid4().hex
        now = self._clock().isoformat(timespec="seconds")

        def _register(data: dict[str, Any]) -> None:
            accounts = data.setdefault("accounts", {})
            if key in accounts:
                raise AuthError("Email already in use")
            accounts[key] = {
                "userId": user_id,
                "name": name,
                "salt": salt,
                "passwordHash": password_hash,
                "createdAt": now,
            }

        update_json(accounts_path(self.root), _register)
        self.documents.set(
            user_id,
            {
                "name": name,
                "email": key,
                "createdAt": now,
                "updatedAt": now,
                "tasks": [],
                "habits": [],
                "workouts": [],
                "events": [],
            },
            merge=False,
        )
        logger.info("Created account %s", user_id)
        return user_id

    def login(self, email: str, password: str) -> str:
        """Return the user id for matching credentials."""
        key = (email or "").strip().lower()
        account = self._load().get(key)
        if account is None:
            raise AuthError("Invalid email or password")
        expected = str(account.get("passwordHash", ""))
        actual = _hash_password(password or "", str(account.get("salt", "")))
        if not secrets.compare_digest(actual.encode("utf-8"), expected.encode("utf-8")):
            raise AuthError("Invalid email or password")
        return str(account["userId"])
