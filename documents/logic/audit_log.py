from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

from core.contracts.audit import IAuditSink
from core.helpers.date_time_helper import Clock, ensure_utc, parse_iso_datetime, utc_now
from core.logging.logic.log_export_utils import export_logs_to_json
from documents.dto.audit_event import AuditAction, AuditEvent, AuditSeverity
from documents.dto.transition import WorkflowEvent
from documents.exceptions.errors import AuditIntegrityError

logger = logging.getLogger(__name__)


class AuditRecorder:
    """
    Append-only audit trail of one document.

    Turns the workflow events a transition emits into immutable
    :class:`AuditEvent` records. Timestamps never go backwards within a
    trail (a clock step back is clamped to the previous timestamp) and every
    event gets the next sequence number. With a sink, each event is written
    through before it becomes visible in :meth:`events`.
    """

    def __init__(self, document_id: str, sink: Optional[IAuditSink] = None, *, clock: Clock = utc_now) -> None:
        self.document_id = document_id
        self._sink = sink
        self._clock = clock
        self._lock = threading.Lock()
        self._events: List[AuditEvent] = []
        self._last_at: Optional[datetime] = None

    @classmethod
    def from_sink(cls, document_id: str, sink: IAuditSink, *, clock: Clock = utc_now) -> "AuditRecorder":
        """Rebuild a recorder from the records already stored in *sink*."""
        recorder = cls(document_id, sink, clock=clock)
        for raw in sink.load(document_id):
            recorder._events.append(_event_from_record(raw))
        if recorder._events:
            recorder._last_at = recorder._events[-1].occurred_at
        return recorder

    def record(self, event: WorkflowEvent) -> AuditEvent:
        with self._lock:
            now = ensure_utc(self._clock())
            if self._last_at is not None and now < self._last_at:
                now = self._last_at
            actor = event.actor
            audit = AuditEvent(
                event_id=uuid.uuid4().hex,
                document_id=self.document_id,
                sequence=len(self._events) + 1,
                event_type=event.action,
                occurred_at=now,
                actor_id=actor.actor_id,
                actor_email=actor.email,
                signer_id=event.signer_id,
                ip_address=actor.ip_address,
                user_agent=actor.user_agent,
                geolocation=actor.geolocation,
                severity=event.severity,
                details=event.details,
            )
            if self._sink is not None:
                self._sink.append(self.document_id, audit.to_dict())
            self._events.append(audit)
            self._last_at = now
        logger.info("audit %s", audit.to_log_string())
        return audit

    def record_all(self, events: Iterable[WorkflowEvent]) -> Tuple[AuditEvent, ...]:
        return tuple(self.record(e) for e in events)

    def append(self, audit: AuditEvent) -> None:
        """Append an already built event; it must belong here and continue the trail."""
        with self._lock:
            if audit.document_id != self.document_id:
                raise AuditIntegrityError(
                    f"event for {audit.document_id} cannot be appended to trail of {self.document_id}")
            if audit.sequence != len(self._events) + 1:
                raise AuditIntegrityError(f"sequence {audit.sequence} does not continue the trail")
            if self._last_at is not None and audit.occurred_at < self._last_at:
                raise AuditIntegrityError("audit timestamps must not go backwards")
            if self._sink is not None:
                self._sink.append(self.document_id, audit.to_dict())
            self._events.append(audit)
            self._last_at = audit.occurred_at

    def events(self) -> Tuple[AuditEvent, ...]:
        """All events in chronological order."""
        with self._lock:
            return tuple(self._events)

    def __len__(self) -> int:
        return len(self._events)

    def export(self) -> List[Dict[str, Any]]:
        return [e.to_dict() for e in self.events()]

    def export_json(self, filepath: str | Path) -> Path:
        return export_logs_to_json(self.export(), filepath)


def _event_from_record(raw: Dict[str, Any]) -> AuditEvent:
    occurred = parse_iso_datetime(raw["occurred_at"])
    if occurred is None:
        raise AuditIntegrityError(f"stored audit record has no valid timestamp: {raw.get('event_id')}")
    return AuditEvent(
        event_id=raw["event_id"],
        document_id=raw["document_id"],
        sequence=int(raw["sequence"]),
        event_type=AuditAction(raw["event_type"]),
        occurred_at=occurred,
        actor_id=raw.get("actor_id") or "",
        actor_email=raw.get("actor_email"),
        signer_id=raw.get("signer_id"),
        ip_address=raw.get("ip_address"),
        user_agent=raw.get("user_agent"),
        geolocation=raw.get("geolocation"),
        severity=AuditSeverity(raw.get("severity") or "info"),
        details=raw.get("details") or {},
    )
