"""Signing workflow service.

Orchestrates the pure engine over its collaborators:

    load bundle -> WorkflowEngine.transition -> persist copies -> record audit

- Persistence calls are retried with bounded exponential backoff; on
  exhaustion ``RetryExhaustedError`` reaches the caller, who can offer an
  explicit retry.
- Audit events are recorded only after the new state has been persisted.
- Submits run at most once per ``(document, signer, attempt)`` and every
  transition of a document is serialised by a per-document lock.
"""

from __future__ import annotations

import hashlib
import logging
import time
from dataclasses import replace
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from core.config.config_service import ConfigService
from core.contracts.audit import IAuditSink
from core.contracts.documents import IBlobStore, IDocumentRepository
from core.contracts.identity import ActorContext, IIdentityProvider
from core.contracts.session import ISessionStore
from core.helpers.date_time_helper import Clock, utc_now
from core.helpers.encryption import KeyringCipher
from core.helpers.retry import retry_call
from documents.adapters.session_store import InMemorySessionStore
from documents.dto.audit_event import AuditAction, AuditEvent
from documents.dto.completion import CompletionReport
from documents.dto.transition import TransitionEvent, TransitionResult, WorkflowEvent
from documents.enum.document_action import DocumentAction
from documents.enum.lifecycle_state import LifecycleState
from documents.dto.validation_error import ValidationError
from documents.exceptions.errors import DocumentNotFoundError, PolicyViolationError
from documents.logic.assignment_tracker import document_completion
from documents.logic.audit_log import AuditRecorder
from documents.logic.autosave import AutoSaveDebouncer
from documents.logic.completion_guard import CompletionGuard, IdempotencyKey
from documents.logic.placement import check_placement
from documents.logic.progress_backup import ProgressBackup, RestoreResult
from documents.logic.validation_engine import is_image_data
from documents.logic.workflow_engine import WorkflowEngine
from documents.models.document_models import Document, Field, Signer
from signature.logic.pdf_signer import PdfFieldStamper, read_page_geometry

logger = logging.getLogger(__name__)

Bundle = Tuple[Document, List[Field], List[Signer]]


def signature_fingerprints(fields: Iterable[Field], values: Mapping[str, str]) -> Dict[str, str]:
    """SHA-256 of each submitted signature/initial image, keyed by field id."""
    out: Dict[str, str] = {}
    for f in fields:
        value = values.get(f.id)
        if f.field_type.is_signature_like and isinstance(value, str) and is_image_data(value):
            out[f.id] = hashlib.sha256(value.encode("utf-8")).hexdigest()
    return out


class SigningService:
    """Service layer of the signing workflow (no UI)."""

    def __init__(
        self,
        repository: IDocumentRepository,
        *,
        config: Optional[ConfigService] = None,
        audit_sink: Optional[IAuditSink] = None,
        blob_store: Optional[IBlobStore] = None,
        session_store: Optional[ISessionStore] = None,
        identity: Optional[IIdentityProvider] = None,
        guard: Optional[CompletionGuard] = None,
        clock: Clock = utc_now,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._repo = repository
        self._cfg = config or ConfigService()
        self._sink = audit_sink
        self._blobs = blob_store
        self._identity = identity
        self._guard = guard or CompletionGuard()
        self._clock = clock
        self._sleep = sleep
        self.engine = WorkflowEngine(clock, enforce_signing_order=self._cfg.signing.enforce_signing_order)
        self.backup = ProgressBackup(
            session_store or InMemorySessionStore(),
            ttl_hours=self._cfg.signing.backup_ttl_hours,
            clock=clock,
            cipher=KeyringCipher.from_config(self._cfg.backup.encryption_key),
        )
        self._recorders: Dict[str, AuditRecorder] = {}

    # ------------------------------------------------------------------ #
    #  Collaborator access
    # ------------------------------------------------------------------ #
    def _retry(self, fn, operation: str):
        return retry_call(
            fn,
            operation=operation,
            max_attempts=self._cfg.retry.max_attempts,
            base_delay=self._cfg.retry.base_delay_seconds,
            sleep=self._sleep,
        )

    def _load(self, document_id: str) -> Bundle:
        bundle = self._retry(lambda: self._repo.load_bundle(document_id), f"load {document_id}")
        if bundle is None:
            raise DocumentNotFoundError(document_id)
        document, fields, signers = bundle
        return document, list(fields), list(signers)

    def _actor(self, actor: Optional[ActorContext]) -> ActorContext:
        if actor is not None:
            return actor
        if self._identity is not None:
            current = self._identity.current_actor()
            if current is not None:
                return current
        return ActorContext.system()

    def recorder(self, document_id: str) -> AuditRecorder:
        """
        Audit recorder of one document.

        With a sink the trail is rebuilt from it on every call, so services
        sharing a sink continue each other's sequence. Without one the
        recorder itself holds the trail until the document is deleted.
        """
        if self._sink is not None:
            return AuditRecorder.from_sink(document_id, self._sink, clock=self._clock)
        rec = self._recorders.get(document_id)
        if rec is None:
            rec = self._recorders[document_id] = AuditRecorder(document_id, clock=self._clock)
        return rec

    # ------------------------------------------------------------------ #
    #  Core
    # ------------------------------------------------------------------ #
    def _apply(
        self,
        document_id: str,
        event: TransitionEvent,
        *,
        layout: Optional[Sequence[Field]] = None,
    ) -> TransitionResult:
        with self._guard.document_lock(document_id):
            document, fields, signers = self._load(document_id)
            result = self.engine.transition(document, signers, layout if layout is not None else fields, event)
            if result.rejection is None and result.errors and not result.succeeded:
                self._record(document_id, result.audit_events)
                return result

            if result.succeeded or result.document != document:
                self._persist(document, fields, signers, result, layout_changed=layout is not None and result.succeeded)

            events = result.audit_events
            if event.action is DocumentAction.SUBMIT and result.succeeded:
                events = self._with_fingerprints(events, result.fields, event.values)
            self._record(document_id, events)
            return result

    def _persist(self, document: Document, fields: Sequence[Field], signers: Sequence[Signer],
                 result: TransitionResult, *, layout_changed: bool) -> None:
        doc_id = document.id
        if layout_changed:
            self._retry(lambda: self._repo.save_fields(doc_id, result.fields), f"save fields {doc_id}")
        else:
            before = {f.id: f.value for f in fields}
            changed = {f.id: f.value for f in result.fields if before.get(f.id) != f.value}
            if changed:
                self._retry(lambda: self._repo.save_field_values(doc_id, changed), f"save values {doc_id}")
        if list(result.signers) != list(signers):
            self._retry(lambda: self._repo.save_signers(doc_id, result.signers), f"save signers {doc_id}")
        if result.document != document:
            self._retry(lambda: self._repo.save_document(result.document), f"save document {doc_id}")

    def _record(self, document_id: str, events: Sequence[WorkflowEvent]) -> Tuple[AuditEvent, ...]:
        return self.recorder(document_id).record_all(events)

    @staticmethod
    def _with_fingerprints(events: Sequence[WorkflowEvent], fields: Sequence[Field],
                           values: Mapping[str, object]) -> Tuple[WorkflowEvent, ...]:
        prints = signature_fingerprints(fields, {k: v for k, v in values.items() if isinstance(v, str)})
        if not prints:
            return tuple(events)
        out = []
        for e in events:
            if e.action is AuditAction.SIGNER_COMPLETED:
                e = replace(e, details={**dict(e.details), "signature_sha256": prints})
            out.append(e)
        return tuple(out)

    # ------------------------------------------------------------------ #
    #  Author actions
    # ------------------------------------------------------------------ #
    def prepare(self, document_id: str, actor: Optional[ActorContext] = None) -> TransitionResult:
        return self._apply(document_id, TransitionEvent(DocumentAction.PREPARE, self._actor(actor)))

    def edit_fields(self, document_id: str, fields: Sequence[Field],
                    actor: Optional[ActorContext] = None) -> TransitionResult:
        """Replace the field layout; only allowed while the document is a draft."""
        return self._apply(document_id, TransitionEvent(DocumentAction.EDIT_FIELDS, self._actor(actor)),
                           layout=fields)

    def delete_document(self, document_id: str) -> None:
        bundle = self._retry(lambda: self._repo.load_bundle(document_id), f"load {document_id}")
        self._retry(lambda: self._repo.delete_document(document_id), f"delete {document_id}")
        if bundle is not None:
            self.backup.clear_all(document_id, (s.id for s in bundle[2]))
        self._recorders.pop(document_id, None)
        logger.info("document %s deleted with its fields and signers", document_id)

    # ------------------------------------------------------------------ #
    #  Signer actions
    # ------------------------------------------------------------------ #
    def open_document(self, document_id: str, signer_id: str,
                      actor: Optional[ActorContext] = None) -> TransitionResult:
        return self._apply(
            document_id,
            TransitionEvent(DocumentAction.OPEN, self._actor(actor), signer_id=signer_id),
        )

    def submit(
        self,
        document_id: str,
        signer_id: str,
        values: Mapping[str, object],
        actor: Optional[ActorContext] = None,
        *,
        attempt: str = "1",
    ) -> TransitionResult:
        """
        Submit a signer's values.

        Raises ``DuplicateSubmissionError`` when the same attempt is already
        running or has already completed.
        """
        key = IdempotencyKey(document_id, signer_id, attempt)
        event = TransitionEvent(DocumentAction.SUBMIT, self._actor(actor), signer_id=signer_id,
                                values=dict(values))
        with self._guard.single_flight(key) as flight:
            result = self._apply(document_id, event)
            if result.succeeded:
                flight.succeed()
        if result.succeeded:
            self.backup.clear(document_id, signer_id)
        return result

    def decline(self, document_id: str, signer_id: str, reason: Optional[str] = None,
                actor: Optional[ActorContext] = None) -> TransitionResult:
        return self._apply(
            document_id,
            TransitionEvent(DocumentAction.DECLINE, self._actor(actor), signer_id=signer_id, reason=reason),
        )

    def check_expiry(self, document_id: str) -> TransitionResult:
        return self._apply(document_id, TransitionEvent(DocumentAction.CHECK_EXPIRY, ActorContext.system()))

    # ------------------------------------------------------------------ #
    #  Backup / resume
    # ------------------------------------------------------------------ #
    def save_progress(self, document_id: str, signer_id: str, values: Mapping[str, object]) -> None:
        self.backup.backup(document_id, signer_id, values)

    def resume(self, document_id: str, signer_id: str, current_values: Mapping[str, object],
               touched: Iterable[str] = ()) -> RestoreResult:
        return self.backup.restore(document_id, signer_id, current_values, touched)

    def autosaver(self, document_id: str, signer_id: str) -> AutoSaveDebouncer:
        return AutoSaveDebouncer(
            lambda values: self.backup.backup(document_id, signer_id, values),
            quiet_seconds=self._cfg.signing.autosave_quiet_seconds,
        )

    # ------------------------------------------------------------------ #
    #  Queries
    # ------------------------------------------------------------------ #
    def completion(self, document_id: str) -> CompletionReport:
        _document, fields, signers = self._load(document_id)
        return document_completion(fields, signers, today=self._clock().date())

    def display_state(self, document_id: str) -> LifecycleState:
        document, _fields, signers = self._load(document_id)
        return self.engine.display_state(document, signers)

    def audit_trail(self, document_id: str) -> Tuple[AuditEvent, ...]:
        return self.recorder(document_id).events()

    # ------------------------------------------------------------------ #
    #  Rendered document
    # ------------------------------------------------------------------ #
    def _fetch(self, key: str) -> bytes:
        if self._blobs is None:
            raise RuntimeError("SigningService was created without a blob store")
        return self._retry(lambda: self._blobs.fetch(key), f"fetch {key}")

    def check_layout(self, document_id: str, pdf_key: str) -> List[ValidationError]:
        """Placement errors of the document's fields against the PDF's page geometry."""
        _document, fields, _signers = self._load(document_id)
        return check_placement(fields, read_page_geometry(self._fetch(pdf_key)))

    def render_signed_pdf(self, document_id: str, pdf_key: str, target_key: str) -> str:
        """Stamp the completed field values onto the original PDF and store the result."""
        document, fields, _signers = self._load(document_id)
        if document.lifecycle_state is not LifecycleState.COMPLETED:
            raise PolicyViolationError("not_completed", f"Document {document_id} is not completed")
        signed = PdfFieldStamper().stamp(self._fetch(pdf_key), fields)
        stored = self._retry(lambda: self._blobs.store(target_key, signed), f"store {target_key}")
        logger.info("signed PDF for %s stored as %s", document_id, stored)
        return stored
