"""
log_entry.py

Dataclass for a single event-log row.

- from_row()  builds the object from a DB row / JSON dict
- as_dict()   returns a plain dict for export
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping, Optional

import core.helpers.date_time_helper as dt


@dataclass(frozen=True)
class LogEntry:
    id: Optional[int]
    timestamp: datetime          # always UTC
    log_level: str
    user_id: Optional[str]
    username: Optional[str]
    feature: str
    event: str
    reference_id: Optional[str]
    message: Optional[str]
    data: Optional[str] = None   # JSON payload

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "LogEntry":
        ts = row["timestamp"]
        if isinstance(ts, str):
            ts = dt.parse_iso_datetime(ts)
        return cls(
            id=row["id"] if "id" in row.keys() else None,
            timestamp=ts,
            log_level=row["log_level"] or "INFO",
            user_id=row["user_id"],
            username=row["username"],
            feature=row["feature"] or "",
            event=row["event"] or "",
            reference_id=row["reference_id"],
            message=row["message"],
            data=row["data"],
        )

    def as_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp_utc": dt.to_iso(self.timestamp),
            "log_level": self.log_level,
            "user_id": self.user_id,
            "username": self.username,
            "feature": self.feature,
            "event": self.event,
            "reference_id": self.reference_id,
            "message": self.message,
            "data": self.data,
        }
