"""Session-scoped key/value stores for backup/resume snapshots."""

from __future__ import annotations

import threading
from pathlib import Path
from typing import Dict, Optional

from core.common.db_interface import MEMORY, SQLiteRepository
from core.contracts.session import ISessionStore


class InMemorySessionStore(ISessionStore):
    """Process-local store; lives as long as the object."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self):
        with self._lock:
            return list(self._data)


class SQLiteSessionStore(SQLiteRepository, ISessionStore):
    """Session store that survives a process restart."""

    def __init__(self, db_path: Path | str = MEMORY) -> None:
        self._lock = threading.Lock()
        super().__init__(db_path, check_same_thread=False)

    def _ensure_schema(self) -> None:
        conn = self.connect()
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS session_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL
            )
            """
        )
        conn.commit()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            row = self.connect().execute("SELECT value FROM session_store WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        with self._lock:
            conn = self.connect()
            conn.execute(
                "INSERT INTO session_store(key, value) VALUES (?, ?) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
                (key, value),
            )
            conn.commit()

    def remove(self, key: str) -> None:
        with self._lock:
            conn = self.connect()
            conn.execute("DELETE FROM session_store WHERE key = ?", (key,))
            conn.commit()
