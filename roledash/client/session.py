from __future__ import annotations

"""Dashboard session state.

The bearer token and the UI preferences live in a small JSON file, the
command-line counterpart of the browser's local storage.  :class:`Session`
wraps that file with an explicit lifecycle: a token is acquired before each
request and invalidated when the backend answers ``401``.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List
import json
import logging

from ..errors import UnauthorizedError

logger = logging.getLogger(__name__)

DEFAULT_PREFERENCES = {"theme": "dark", "language": "en"}


@dataclass
class SessionState:
    token: str | None = None
    preferences: dict = field(default_factory=lambda: dict(DEFAULT_PREFERENCES))


class SessionStore:
    """Persist :class:`SessionState` as JSON at ``path``."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def load(self) -> SessionState:
        if not self.path.exists():
            return SessionState()
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("Invalid JSON in %s, starting a fresh session", self.path)
            return SessionState()
        prefs = dict(DEFAULT_PREFERENCES)
        prefs.update(data.get("preferences") or {})
        return SessionState(token=data.get("token") or None, preferences=prefs)

    def save(self, state: SessionState) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps({"token": state.token, "preferences": state.preferences}, indent=2),
            encoding="utf-8",
        )
        try:
            self.path.chmod(0o600)
        except OSError as exc:  # pragma: no cover - platform dependent
            logger.warning("Unable to set permissions on %s: %s", self.path, exc)


class MemorySessionStore(SessionStore):
    """Session store that never touches the disk."""

    def __init__(self, token: str | None = None):
        self._state = SessionState(token=token)

    def load(self) -> SessionState:
        return SessionState(token=self._state.token, preferences=dict(self._state.preferences))

    def save(self, state: SessionState) -> None:
        self._state = SessionState(token=state.token, preferences=dict(state.preferences))


class Session:
    """Bearer-token session handed to :class:`~roledash.client.http.ApiClient`."""

    def __init__(self, store: SessionStore):
        self.store = store
        self.state = store.load()
        self._logout_callbacks: List[Callable[[str], None]] = []

    @property
    def is_active(self) -> bool:
        return bool(self.state.token)

    def login(self, token: str) -> None:
        self.state.token = token.strip() or None
        self.store.save(self.state)

    def acquire(self) -> str:
        if not self.state.token:
            raise UnauthorizedError("No authentication token available")
        return self.state.token

    def on_logout(self, callback: Callable[[str], None]) -> None:
        self._logout_callbacks.append(callback)

    def invalidate(self, reason: str = "Session expired") -> None:
        if self.state.token is None:
            return
        logger.warning("Invalidating session: %s", reason)
        self.state.token = None
        self.store.save(self.state)
        for callback in list(self._logout_callbacks):
            callback(reason)

    def set_preference(self, name: str, value: str) -> None:
        self.state.preferences[name] = value
        self.store.save(self.state)
