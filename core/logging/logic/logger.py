"""
core/logging/logic/logger.py
============================

Thread-safe, SQLite-backed event log.

Rows are only ever inserted and queried; there is no update or delete of
single entries. The audit trail of the signing workflow is persisted here
through :class:`documents.adapters.audit_sink.SqliteAuditSink`.
"""

from __future__ import annotations

import json
import threading
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any, List, Mapping, Optional

from core.common.db_interface import SQLiteRepository
from core.helpers.date_time_helper import to_iso, utc_now
from core.logging.models.log_entry import LogEntry


class EventLogger(SQLiteRepository):
    """Append-only event log with a single shared connection."""

    def __init__(self, db_path: Path | str) -> None:
        self._lock = threading.Lock()
        super().__init__(db_path, check_same_thread=False)

    # ------------------------------------------------------------------ #
    #  Public API: log                                                   #
    # ------------------------------------------------------------------ #
    def log(
        self,
        feature: str,
        event: str,
        *,
        user_id: Optional[str] = None,
        username: Optional[str] = None,
        level: str = "INFO",
        reference_id: Optional[str] = None,
        message: Optional[str] = None,
        data: Mapping[str, Any] | None = None,
        timestamp: Optional[datetime] = None,
    ) -> LogEntry:
        """Persist one entry and return it with its row id."""
        entry = LogEntry(
            id=None,
            timestamp=timestamp or utc_now(),
            user_id=user_id,
            username=username or "unknown",
            feature=feature,
            event=event,
            reference_id=reference_id,
            message=message,
            log_level=level,
            data=json.dumps(dict(data), ensure_ascii=False, default=str) if data else None,
        )
        row_id = self._insert_log(entry)
        return replace(entry, id=row_id)

    # ------------------------------------------------------------------ #
    #  Query                                                             #
    # ------------------------------------------------------------------ #
    def query_logs(
        self,
        *,
        feature: Optional[str] = None,
        event: Optional[str] = None,
        reference_id: Optional[str] = None,
        level: Optional[str] = None,
        limit: int = 1_000,
    ) -> List[LogEntry]:
        """Entries in insertion order (oldest first)."""
        query = "SELECT * FROM logs WHERE 1=1"
        params: list[object] = []

        if feature is not None:
            query += " AND feature = ?"
            params.append(feature)
        if event is not None:
            query += " AND event = ?"
            params.append(event)
        if reference_id is not None:
            query += " AND reference_id = ?"
            params.append(reference_id)
        if level is not None:
            query += " AND log_level = ?"
            params.append(level)

        query += " ORDER BY id ASC LIMIT ?"
        params.append(limit)

        with self._lock:
            rows = self.connect().execute(query, params).fetchall()
        return [LogEntry.from_row(r) for r in rows]

    # ------------------------------------------------------------------ #
    #  Internal helpers                                                  #
    # ------------------------------------------------------------------ #
    def _ensure_schema(self) -> None:
        conn = self.connect()
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                timestamp TEXT NOT NULL,
                user_id TEXT,
                username TEXT,
                feature TEXT NOT NULL,
                event TEXT NOT NULL,
                reference_id TEXT,
                message TEXT,
                data TEXT,
                log_level TEXT NOT NULL DEFAULT 'INFO'
            )
            """
        )
        conn.commit()

    def _insert_log(self, entry: LogEntry) -> int:
        with self._lock:
            conn = self.connect()
            cur = conn.execute(
                """
                INSERT INTO logs
                    (timestamp, user_id, username, feature, event,
                     reference_id, message, data, log_level)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    to_iso(entry.timestamp),
                    entry.user_id,
                    entry.username,
                    entry.feature,
                    entry.event,
                    entry.reference_id,
                    entry.message,
                    entry.data,
                    entry.log_level,
                ),
            )
            conn.commit()
            return int(cur.lastrowid)
