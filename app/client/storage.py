"""Durable client-side storage for the bearer token and the cached public user."""

import json
import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredSession:
    token: str
    user: dict[str, Any]


class SessionStorage(Protocol):
    def load(self) -> StoredSession | None: ...

    def save(self, session: StoredSession) -> None: ...

    def clear(self) -> None: ...


class MemorySessionStorage:
    """Process-local storage; nothing survives a restart."""

    def __init__(self, session: StoredSession | None = None) -> None:
        self._session = session

    def load(self) -> StoredSession | None:
        return self._session

    def save(self, session: StoredSession) -> None:
        self._session = session

    def clear(self) -> None:
        self._session = None


class FileSessionStorage:
    """
    JSON file holding {"token": ..., "user": {...}}.

    Writes go to a temp file in the same directory and are then renamed over
    the target, so a reader sees either the old session or the new one.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> StoredSession | None:
        if not self.path.exists():
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            token = data["token"]
            user = data.get("user") or {}
        except (OSError, json.JSONDecodeError, KeyError, TypeError) as e:
            logger.warning("Ignoring unreadable session file %s: %s", self.path, e)
            return None
        if not isinstance(token, str) or not token:
            return None
        return StoredSession(token=token, user=user)

    def save(self, session: StoredSession) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with tempfile.NamedTemporaryFile(
            mode="w", dir=self.path.parent, delete=False, encoding="utf-8", suffix=".tmp"
        ) as tf:
            json.dump({"token": session.token, "user": session.user}, tf, indent=2, ensure_ascii=False)
            temp_path = Path(tf.name)
        try:
            os.replace(temp_path, self.path)
        except OSError:
            if temp_path.exists():
                temp_path.unlink()
            raise

    def clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass
