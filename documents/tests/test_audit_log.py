from __future__ import annotations

import json
from dataclasses import replace

import pytest

from core.contracts.identity import ActorContext
from core.logging.logic.logger import EventLogger
from documents.adapters.audit_sink import InMemoryAuditSink, SqliteAuditSink
from documents.dto.audit_event import AuditAction, AuditSeverity
from documents.dto.transition import WorkflowEvent
from documents.exceptions.errors import AuditIntegrityError
from documents.logic.audit_log import AuditRecorder
from documents.tests.builders import FakeClock, T0

ALICE = ActorContext(actor_id="alice", email="alice@example.com", ip_address="10.0.0.7",
                     user_agent="pytest", geolocation="52.52,13.40")


def _wf(action=AuditAction.DOCUMENT_VIEWED, **details):
    return WorkflowEvent(action=action, actor=ALICE, signer_id="alice", details=details)


def test_events_are_sequenced_and_attributed() -> None:
    clock = FakeClock()
    recorder = AuditRecorder("doc-1", clock=clock)
    first = recorder.record(_wf())
    clock.advance(seconds=5)
    second = recorder.record(_wf(AuditAction.SIGNER_COMPLETED, signature_sha256="abc"))

    assert [first.sequence, second.sequence] == [1, 2]
    assert second.occurred_at - first.occurred_at == (T0.replace(second=5) - T0)
    assert first.ip_address == "10.0.0.7"
    assert first.geolocation == "52.52,13.40"
    assert second.details["signature_sha256"] == "abc"
    assert len(recorder) == 2


def test_clock_going_backwards_is_clamped() -> None:
    clock = FakeClock()
    recorder = AuditRecorder("doc-1", clock=clock)
    recorder.record(_wf())
    clock.advance(minutes=-10)
    later = recorder.record(_wf())
    assert later.occurred_at == T0
    times = [e.occurred_at for e in recorder.events()]
    assert times == sorted(times)


def test_details_are_read_only() -> None:
    recorder = AuditRecorder("doc-1", clock=FakeClock())
    event = recorder.record(_wf(reason="x"))
    with pytest.raises(TypeError):
        event.details["reason"] = "y"  # type: ignore[index]


def test_append_rejects_broken_trail() -> None:
    clock = FakeClock()
    recorder = AuditRecorder("doc-1", clock=clock)
    first = recorder.record(_wf())

    with pytest.raises(AuditIntegrityError):
        recorder.append(replace(first, document_id="doc-2", sequence=2))
    with pytest.raises(AuditIntegrityError):
        recorder.append(replace(first, sequence=3))
    with pytest.raises(AuditIntegrityError):
        recorder.append(replace(first, sequence=2, occurred_at=T0.replace(hour=8)))

    recorder.append(replace(first, event_id="e2", sequence=2))
    assert len(recorder) == 2


def test_sink_receives_every_event_and_rebuilds_trail() -> None:
    sink = InMemoryAuditSink()
    clock = FakeClock()
    recorder = AuditRecorder("doc-1", sink, clock=clock)
    recorder.record(_wf())
    recorder.record(WorkflowEvent(action=AuditAction.TRANSITION_REJECTED, actor=ALICE,
                                  severity=AuditSeverity.WARNING, details={"code": "terminal_state"}))
    assert len(sink.load("doc-1")) == 2

    rebuilt = AuditRecorder.from_sink("doc-1", sink, clock=clock)
    assert rebuilt.events() == recorder.events()
    clock.advance(minutes=-1)
    third = rebuilt.record(_wf())
    assert third.sequence == 3
    assert third.occurred_at == T0


def test_sqlite_sink_round_trip() -> None:
    log = EventLogger(":memory:")
    sink = SqliteAuditSink(log)
    recorder = AuditRecorder("doc-1", sink, clock=FakeClock())
    recorder.record(_wf(AuditAction.DOCUMENT_PREPARED, field_count=4))
    AuditRecorder("doc-2", sink, clock=FakeClock()).record(_wf())

    rows = log.query_logs(feature="documents.audit", reference_id="doc-1")
    assert len(rows) == 1
    assert rows[0].event == "document_prepared"
    assert rows[0].timestamp == T0

    rebuilt = AuditRecorder.from_sink("doc-1", sink)
    assert [e.event_type for e in rebuilt.events()] == [AuditAction.DOCUMENT_PREPARED]
    assert rebuilt.events()[0].details["field_count"] == 4


def test_export_json(tmp_path) -> None:
    recorder = AuditRecorder("doc-1", clock=FakeClock())
    recorder.record(_wf())
    target = recorder.export_json(tmp_path / "out" / "audit.json")
    data = json.loads(target.read_text(encoding="utf-8"))
    assert data[0]["event_type"] == "document_viewed"
    assert data[0]["occurred_at"] == T0.isoformat()
