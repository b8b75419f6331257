"""
Local session persistence.

Holds the logged-in user and their auth token between runs. The store is
a tiny get/set/clear key-value capability that callers pass around
explicitly instead of reaching for process-wide state, so tests can use
an in-memory store and production can use a JSON file.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Any, Optional, Protocol

logger = logging.getLogger(__name__)

USER_KEY = "user"
TOKEN_KEY = "token"


class SessionStore(Protocol):
    """Minimal key-value storage for session data."""

    def get(self, key: str) -> Optional[Any]:
        ...

    def set(self, key: str, value: Any) -> None:
        ...

    def clear(self, *keys: str) -> None:
        """Remove the given keys, or everything when called without keys."""
        ...


class MemorySessionStore:
    """In-memory store. Data is lost when the process exits."""

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    def get(self, key: str) -> Optional[Any]:
        return self._data.get(key)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def clear(self, *keys: str) -> None:
        if not keys:
            self._data.clear()
            return
        for key in keys:
            self._data.pop(key, None)


class FileSessionStore:
    """
    JSON file store.

    The whole file is rewritten on each change; session data is a
    handful of keys. The file and its parent directory are created on
    the first write.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._read().get(key)

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def clear(self, *keys: str) -> None:
        with self._lock:
            if not keys:
                data = {}
            else:
                data = self._read()
                for key in keys:
                    data.pop(key, None)
            self._write(data)

    def _read(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning(
                "Session file is corrupt, starting empty",
                extra={"path": str(self._path)},
            )
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, Any]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(data), encoding="utf-8")


# ---------------------------------------------------------------------------
# Session helpers
# ---------------------------------------------------------------------------

def save_user(store: SessionStore, user: dict[str, Any], token: Optional[str] = None) -> None:
    """Persist the user; the token is only replaced when a new one is given."""
    store.set(USER_KEY, user)
    if token:
        store.set(TOKEN_KEY, token)


def load_user(store: SessionStore) -> Optional[dict[str, Any]]:
    return store.get(USER_KEY)


def load_token(store: SessionStore) -> Optional[str]:
    return store.get(TOKEN_KEY)


def clear_session(store: SessionStore) -> None:
    store.clear(USER_KEY, TOKEN_KEY)


def create_session_store(path: Optional[str] = None) -> SessionStore:
    """File store when a path is configured, memory store otherwise."""
    if path:
        logger.info("Using file session store", extra={"path": path})
        return FileSessionStore(path)
    return MemorySessionStore()
