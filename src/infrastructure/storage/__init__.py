"""
Session storage for the logged-in user and auth token.
"""

from .session_store import (
    FileSessionStore,
    MemorySessionStore,
    SessionStore,
    clear_session,
    create_session_store,
    load_token,
    load_user,
    save_user,
)

__all__ = [
    "FileSessionStore",
    "MemorySessionStore",
    "SessionStore",
    "clear_session",
    "create_session_store",
    "load_token",
    "load_user",
    "save_user",
]
