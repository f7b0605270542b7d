"""Audit sinks: where the audit recorder writes its events."""

from __future__ import annotations

import json
import logging
import threading
from typing import Any, Dict, List, Mapping

from core.contracts.audit import IAuditSink
from core.helpers.date_time_helper import parse_iso_datetime
from core.logging.logic.logger import EventLogger

logger = logging.getLogger(__name__)

FEATURE = "documents.audit"


class InMemoryAuditSink(IAuditSink):
    def __init__(self) -> None:
        self._records: Dict[str, List[Dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def append(self, document_id: str, record: Mapping[str, Any]) -> None:
        with self._lock:
            self._records.setdefault(document_id, []).append(dict(record))

    def load(self, document_id: str) -> List[Dict[str, Any]]:
        with self._lock:
            return [dict(r) for r in self._records.get(document_id, [])]


class SqliteAuditSink(IAuditSink):
    """
    Persists audit records in the shared event log.

    One log row per audit event: ``feature=documents.audit``, ``event`` is
    the audit action, ``reference_id`` the document id and ``data`` the full
    record as JSON.
    """

    def __init__(self, event_logger: EventLogger) -> None:
        self._log = event_logger

    def append(self, document_id: str, record: Mapping[str, Any]) -> None:
        level = str(record.get("severity") or "info").upper()
        self._log.log(
            FEATURE,
            str(record.get("event_type")),
            user_id=record.get("actor_id"),
            username=record.get("actor_email"),
            level=level,
            reference_id=document_id,
            message=f"{record.get('event_type')} #{record.get('sequence')}",
            data=record,
            timestamp=parse_iso_datetime(str(record.get("occurred_at") or "")),
        )

    def load(self, document_id: str) -> List[Dict[str, Any]]:
        records: List[Dict[str, Any]] = []
        for entry in self._log.query_logs(feature=FEATURE, reference_id=document_id, limit=1_000_000):
            if not entry.data:
                logger.warning("audit log row %s has no payload", entry.id)
                continue
            records.append(json.loads(entry.data))
        return records
