from __future__ import annotations

import hashlib
from io import BytesIO

import pytest
from reportlab.pdfgen import canvas

from core.config.config_service import ConfigService
from core.contracts.identity import ActorContext, IIdentityProvider
from core.helpers.retry import RetryExhaustedError
from core.logging.logic.logger import EventLogger
from documents.adapters.audit_sink import SqliteAuditSink
from documents.adapters.filesystem_storage_adapter import InMemoryBlobStore
from documents.dto.audit_event import AuditAction
from documents.enum.lifecycle_state import LifecycleState
from documents.exceptions.errors import (
    DocumentNotFoundError,
    DuplicateSubmissionError,
    PolicyViolationError,
)
from documents.models.field_factory import create_field
from documents.repository import InMemoryDocumentRepository
from documents.services.signing_service import SigningService
from documents.tests.builders import SIGNATURE_PNG, FakeClock, T0, two_signer_bundle

ALICE_VALUES = {"a-name": "Alice", "a-sig": SIGNATURE_PNG}
BOB_VALUES = {"b-name": "Bob", "b-sig": SIGNATURE_PNG}


class FlakyRepository(InMemoryDocumentRepository):
    """Fails the first ``failures`` loads with a transient error."""

    def __init__(self, failures: int) -> None:
        super().__init__()
        self.failures = failures
        self.calls = 0

    def load_bundle(self, document_id):
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionError("database unavailable")
        return super().load_bundle(document_id)


class StaticIdentity(IIdentityProvider):
    def __init__(self, actor: ActorContext) -> None:
        self.actor = actor

    def current_actor(self):
        return self.actor


def _service(repo=None, state=LifecycleState.PREPARED, **kwargs):
    repo = repo if repo is not None else InMemoryDocumentRepository()
    document, signers, fields = two_signer_bundle(state)
    repo.add(document, fields, signers)
    kwargs.setdefault("clock", FakeClock())
    kwargs.setdefault("config", ConfigService(environ={}))
    return SigningService(repo, **kwargs), repo


def _one_page_pdf() -> bytes:
    buf = BytesIO()
    c = canvas.Canvas(buf, pagesize=(612, 792))
    c.drawString(72, 720, "Agreement")
    c.showPage()
    c.save()
    return buf.getvalue()


def test_two_signers_complete_document() -> None:
    service, repo = _service()
    first = service.submit("doc-1", "alice", ALICE_VALUES)
    assert first.succeeded
    assert service.display_state("doc-1") is LifecycleState.PARTIALLY_SIGNED
    assert service.completion("doc-1").percentage == 50

    second = service.submit("doc-1", "bob", BOB_VALUES)
    assert second.next_state is LifecycleState.COMPLETED

    document, fields, signers = repo.load_bundle("doc-1")
    assert document.lifecycle_state is LifecycleState.COMPLETED
    assert document.signed_at == T0
    assert {f.id: f.value for f in fields}["b-name"] == "Bob"

    trail = service.audit_trail("doc-1")
    assert [e.sequence for e in trail] == list(range(1, len(trail) + 1))
    assert trail[-2].event_type is AuditAction.DOCUMENT_COMPLETED


def test_signer_completed_event_carries_signature_hash() -> None:
    service, _repo = _service()
    service.submit("doc-1", "alice", ALICE_VALUES)
    completed = [e for e in service.audit_trail("doc-1") if e.event_type is AuditAction.SIGNER_COMPLETED]
    expected = hashlib.sha256(SIGNATURE_PNG.encode("utf-8")).hexdigest()
    assert completed[0].details["signature_sha256"] == {"a-sig": expected}


def test_validation_failure_persists_nothing() -> None:
    service, repo = _service()
    result = service.submit("doc-1", "alice", {"a-name": "Alice"})
    assert not result.succeeded
    assert [e.field_id for e in result.errors] == ["a-sig"]
    _document, fields, _signers = repo.load_bundle("doc-1")
    assert all(f.value == "" for f in fields)
    assert [e.event_type for e in service.audit_trail("doc-1")] == [AuditAction.VALIDATION_FAILED]

    # a rejected attempt does not burn the idempotency key
    assert service.submit("doc-1", "alice", ALICE_VALUES).succeeded


def test_duplicate_submit_is_refused() -> None:
    service, _repo = _service()
    service.submit("doc-1", "alice", ALICE_VALUES)
    with pytest.raises(DuplicateSubmissionError):
        service.submit("doc-1", "alice", ALICE_VALUES)
    again = service.submit("doc-1", "alice", ALICE_VALUES, attempt="2")
    assert again.rejection.code == "already_completed"


def test_transient_failures_are_retried() -> None:
    delays = []
    service, repo = _service(FlakyRepository(failures=2), sleep=delays.append)
    assert service.submit("doc-1", "alice", ALICE_VALUES).succeeded
    assert delays == [0.5, 1.0]


def test_retry_exhaustion_reaches_caller() -> None:
    delays = []
    config = ConfigService(environ={"ESIGN_RETRY__MAX_ATTEMPTS": "2", "ESIGN_RETRY__BASE_DELAY_SECONDS": "0.1"})
    service, repo = _service(FlakyRepository(failures=10), sleep=delays.append, config=config)
    with pytest.raises(RetryExhaustedError) as info:
        service.open_document("doc-1", "alice")
    assert info.value.attempts == 2
    assert isinstance(info.value.last_error, ConnectionError)
    assert delays == [0.1]
    assert service.audit_trail("doc-1") == ()


def test_unknown_document() -> None:
    service, _repo = _service()
    with pytest.raises(DocumentNotFoundError):
        service.open_document("nope", "alice")


def test_decline_and_delete() -> None:
    service, repo = _service()
    result = service.decline("doc-1", "bob", "not my contract")
    assert result.next_state is LifecycleState.DECLINED
    assert repo.load_bundle("doc-1")[0].lifecycle_state is LifecycleState.DECLINED

    service.save_progress("doc-1", "bob", {"b-name": "B"})
    service.delete_document("doc-1")
    assert repo.load_bundle("doc-1") is None
    assert service.resume("doc-1", "bob", {"b-name": ""}).reason == "missing"


def test_expiry_is_persisted_on_access() -> None:
    clock = FakeClock()
    repo = InMemoryDocumentRepository()
    document, signers, fields = two_signer_bundle()
    document.expires_at = T0.replace(hour=12)
    repo.add(document, fields, signers)
    service = SigningService(repo, config=ConfigService(environ={}), clock=clock)

    clock.advance(hours=4)
    assert service.display_state("doc-1") is LifecycleState.EXPIRED
    assert repo.load_bundle("doc-1")[0].lifecycle_state is LifecycleState.PREPARED

    result = service.check_expiry("doc-1")
    assert result.succeeded
    assert repo.load_bundle("doc-1")[0].lifecycle_state is LifecycleState.EXPIRED
    assert service.submit("doc-1", "alice", ALICE_VALUES).rejection.code == "terminal_state"


def test_edit_fields_only_in_draft() -> None:
    service, repo = _service(state=LifecycleState.DRAFT)
    new_layout = [create_field("text", 1, document_id="doc-1", field_id="extra", assigned_to="alice")]
    assert service.edit_fields("doc-1", new_layout).succeeded
    assert [f.id for f in repo.load_bundle("doc-1")[1]] == ["extra"]

    service.prepare("doc-1")
    locked = service.edit_fields("doc-1", [])
    assert locked.rejection.code == "fields_locked"
    assert [f.id for f in repo.load_bundle("doc-1")[1]] == ["extra"]


def test_audit_goes_to_event_log_with_identity() -> None:
    log = EventLogger(":memory:")
    actor = ActorContext(actor_id="alice", email="alice@example.com", ip_address="10.1.1.1")
    service, repo = _service(audit_sink=SqliteAuditSink(log), identity=StaticIdentity(actor))
    service.open_document("doc-1", "alice")

    rows = log.query_logs(feature="documents.audit", reference_id="doc-1")
    assert [r.event for r in rows] == ["document_viewed", "status_changed"]
    assert rows[0].username == "alice@example.com"

    restarted = SigningService(repo, config=ConfigService(environ={}), audit_sink=SqliteAuditSink(log),
                               clock=FakeClock())
    assert len(restarted.audit_trail("doc-1")) == 2
    assert restarted.audit_trail("doc-1")[0].ip_address == "10.1.1.1"


def test_backup_cleared_after_submit() -> None:
    service, _repo = _service()
    service.save_progress("doc-1", "alice", {"a-name": "Ali"})
    assert service.resume("doc-1", "alice", {"a-name": ""}).values == {"a-name": "Ali"}
    service.submit("doc-1", "alice", ALICE_VALUES)
    assert service.resume("doc-1", "alice", {"a-name": ""}).reason == "missing"


def test_backups_are_kept_per_signer() -> None:
    service, _repo = _service()
    service.save_progress("doc-1", "alice", {"a-name": "Alice draft"})
    service.save_progress("doc-1", "bob", {"b-name": "Bob draft"})

    service.open_document("doc-1", "bob")
    assert service.submit("doc-1", "bob", BOB_VALUES).succeeded

    resumed = service.resume("doc-1", "alice", {})
    assert resumed.values == {"a-name": "Alice draft"}
    assert service.resume("doc-1", "bob", {}).reason == "missing"


def test_services_sharing_a_sink_continue_the_sequence() -> None:
    log = EventLogger(":memory:")
    first, repo = _service(audit_sink=SqliteAuditSink(log))
    second = SigningService(repo, config=ConfigService(environ={}), audit_sink=SqliteAuditSink(log),
                            clock=FakeClock())

    first.open_document("doc-1", "alice")
    second.submit("doc-1", "alice", ALICE_VALUES)
    first.open_document("doc-1", "bob")

    trail = second.audit_trail("doc-1")
    assert [e.sequence for e in trail] == list(range(1, len(trail) + 1))
    assert [e.sequence for e in first.audit_trail("doc-1")] == [e.sequence for e in trail]


def test_delete_drops_in_memory_trail() -> None:
    service, _repo = _service()
    service.open_document("doc-1", "alice")
    assert len(service.audit_trail("doc-1")) == 2
    service.delete_document("doc-1")
    assert service.audit_trail("doc-1") == ()


def test_render_signed_pdf() -> None:
    blobs = InMemoryBlobStore()
    blobs.store("original.pdf", _one_page_pdf())
    service, _repo = _service(blob_store=blobs)
    assert service.check_layout("doc-1", "original.pdf") == []

    with pytest.raises(PolicyViolationError):
        service.render_signed_pdf("doc-1", "original.pdf", "signed.pdf")

    service.submit("doc-1", "alice", ALICE_VALUES)
    service.submit("doc-1", "bob", BOB_VALUES)
    key = service.render_signed_pdf("doc-1", "original.pdf", "signed.pdf")
    signed = blobs.fetch(key)
    assert signed.startswith(b"%PDF")
    assert signed != blobs.fetch("original.pdf")


def test_autosaver_writes_backup_on_flush() -> None:
    config = ConfigService(environ={"ESIGN_SIGNING__AUTOSAVE_QUIET_SECONDS": "0.25"})
    service, _repo = _service(config=config)
    saver = service.autosaver("doc-1", "alice")
    assert saver.quiet_seconds == 0.25
    saver.touch({"a-name": "Al"})
    saver.touch({"a-name": "Alice"})
    assert saver.flush()
    assert service.resume("doc-1", "alice", {"a-name": ""}).values == {"a-name": "Alice"}
