"""
client/storage.py -- SQLite-backed key/value storage for the client session.

The Python counterpart of the browser's localStorage: string values under
string keys that survive a process restart (the equivalent of a page reload).
SessionManager keeps the bearer token and the redacted user here.

Usage:
    storage = SessionStorage(Path("~/.tripmate/session.db").expanduser())
    storage.set("auth_token", token)
    storage.get("auth_token")         # returns str or None
    storage.remove("auth_token")
"""

import sqlite3
from pathlib import Path
from typing import Optional, Union

_DDL = """
CREATE TABLE IF NOT EXISTS client_storage (
    key     TEXT PRIMARY KEY,
    value   TEXT NOT NULL
);
"""


class SessionStorage:
    def __init__(self, db_path: Union[Path, str] = ":memory:") -> None:
        self._conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute(_DDL)
        self._conn.commit()

    def get(self, key: str) -> Optional[str]:
        row = self._conn.execute("SELECT value FROM client_storage WHERE key = ?", (key,)).fetchone()
        return row[0] if row is not None else None

    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any existing entry."""
        self._conn.execute(
            "INSERT OR REPLACE INTO client_storage (key, value) VALUES (?, ?)",
            (key, value),
        )
        self._conn.commit()

    def remove(self, key: str) -> None:
        self._conn.execute("DELETE FROM client_storage WHERE key = ?", (key,))
        self._conn.commit()

    def close(self) -> None:
        self._conn.close()
