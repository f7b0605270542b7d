# documents/logic/workflow_engine.py
"""
Lifecycle state machine for signable documents.

- Synchronous and side-effect free: ``transition`` works on copies of the
  document, signers and fields it is given and returns them together with
  the next state, the workflow events to record and any validation errors.
- Illegal transitions come back as a ``TransitionRejection`` value; nothing
  of the input is mutated.
- Expiry is evaluated lazily on every call; there is no background sweep.

States::

    DRAFT -> PREPARED -> PENDING_SIGNATURES -> COMPLETED
                  \\-------------+-----------> DECLINED | EXPIRED

PARTIALLY_SIGNED is never stored; ``display_state`` derives it.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from core.helpers.date_time_helper import Clock, ensure_utc, utc_now
from documents.dto.audit_event import AuditAction, AuditSeverity
from documents.dto.transition import (
    TransitionEvent,
    TransitionRejection,
    TransitionResult,
    WorkflowEvent,
)
from documents.dto.validation_error import ValidationError
from documents.enum.document_action import DocumentAction
from documents.enum.document_type import DocumentType
from documents.enum.lifecycle_state import LifecycleState
from documents.enum.signer_status import SignerStatus
from documents.logic.assignment_tracker import (
    document_completion,
    fields_for_signer,
    is_last_signer,
    may_sign,
)
from documents.logic.validation_engine import validate
from documents.models.document_models import Document, Field, Signer, coerce_value

logger = logging.getLogger(__name__)

_SIGNABLE = (LifecycleState.PREPARED, LifecycleState.PENDING_SIGNATURES, LifecycleState.PARTIALLY_SIGNED)


class _Draft:
    """Working copies for one transition."""

    def __init__(self, document: Document, signers: Sequence[Signer], fields: Sequence[Field],
                 event: TransitionEvent) -> None:
        self.document = replace(document)
        self.signers = [replace(s) for s in signers]
        self.fields = [replace(f) for f in fields]
        self.event = event
        self.events: List[WorkflowEvent] = []

    def emit(self, action: AuditAction, severity: AuditSeverity = AuditSeverity.INFO, **details) -> None:
        self.events.append(WorkflowEvent(
            action=action,
            actor=self.event.actor,
            signer_id=self.event.signer_id,
            severity=severity,
            details=details,
        ))

    def move_to(self, state: LifecycleState, now: datetime) -> None:
        previous = self.document.lifecycle_state
        if previous is state:
            return
        self.document.lifecycle_state = state
        self.document.updated_at = now
        self.emit(AuditAction.STATUS_CHANGED, **{"from": previous.value, "to": state.value})

    def signer(self) -> Optional[Signer]:
        return next((s for s in self.signers if s.id == self.event.signer_id), None)

    def result(self, errors: Sequence[ValidationError] = ()) -> TransitionResult:
        return TransitionResult(
            next_state=self.document.lifecycle_state,
            document=self.document,
            signers=tuple(self.signers),
            fields=tuple(self.fields),
            audit_events=tuple(self.events),
            errors=tuple(errors),
        )


class WorkflowEngine:
    """Pure lifecycle rules; the service layer persists the returned copies."""

    def __init__(self, clock: Clock = utc_now, *, enforce_signing_order: bool = False) -> None:
        self._clock = clock
        self.enforce_signing_order = enforce_signing_order

    # ------------------------------------------------------------------ #
    #  Queries
    # ------------------------------------------------------------------ #
    def now(self) -> datetime:
        return ensure_utc(self._clock())

    def is_expired(self, document: Document, now: Optional[datetime] = None) -> bool:
        if document.is_terminal or document.expires_at is None:
            return False
        return (now or self.now()) > ensure_utc(document.expires_at)

    def display_state(self, document: Document, signers: Sequence[Signer]) -> LifecycleState:
        """State for display: lazily expired, PARTIALLY_SIGNED once someone has signed."""
        if self.is_expired(document):
            return LifecycleState.EXPIRED
        state = document.lifecycle_state
        if state is LifecycleState.PENDING_SIGNATURES and any(
            s.status is SignerStatus.COMPLETED for s in signers
        ):
            return LifecycleState.PARTIALLY_SIGNED
        return state

    # ------------------------------------------------------------------ #
    #  Transition
    # ------------------------------------------------------------------ #
    def transition(
        self,
        document: Document,
        signers: Sequence[Signer],
        fields: Sequence[Field],
        event: TransitionEvent,
    ) -> TransitionResult:
        now = self.now()
        draft = _Draft(document, signers, fields, event)
        action = DocumentAction(event.action)

        if self.is_expired(draft.document, now):
            draft.emit(AuditAction.DOCUMENT_EXPIRED, expires_at=ensure_utc(document.expires_at).isoformat())
            draft.move_to(LifecycleState.EXPIRED, now)
            if action is DocumentAction.CHECK_EXPIRY:
                return draft.result()
            return self._reject(draft, "document_expired", "Document has expired", keep_changes=True)

        if action is DocumentAction.CHECK_EXPIRY:
            return draft.result()

        if draft.document.is_terminal:
            return self._reject(
                draft, "terminal_state",
                f"Document is {draft.document.lifecycle_state.value} and cannot be changed",
            )

        handler = {
            DocumentAction.PREPARE: self._prepare,
            DocumentAction.EDIT_FIELDS: self._edit_fields,
            DocumentAction.OPEN: self._open,
            DocumentAction.SUBMIT: self._submit,
            DocumentAction.DECLINE: self._decline,
        }[action]
        return handler(draft, now)

    # ------------------------------------------------------------------ #
    #  Handlers
    # ------------------------------------------------------------------ #
    def _prepare(self, d: _Draft, now: datetime) -> TransitionResult:
        if d.document.lifecycle_state is not LifecycleState.DRAFT:
            return self._reject(d, "not_draft", "Only draft documents can be prepared")
        if not d.signers:
            return self._reject(d, "no_signers", "A document needs at least one signer")
        known = {s.id for s in d.signers}
        stray = [f.id for f in d.fields if f.assigned_to is not None and f.assigned_to not in known]
        if stray:
            return self._reject(d, "unknown_signer", f"Fields assigned to unknown signers: {', '.join(stray)}")

        d.document.prepared_at = now
        d.emit(AuditAction.DOCUMENT_PREPARED, field_count=len(d.fields), signer_count=len(d.signers))
        d.move_to(LifecycleState.PREPARED, now)
        return d.result()

    def _edit_fields(self, d: _Draft, now: datetime) -> TransitionResult:
        if d.document.lifecycle_state is not LifecycleState.DRAFT:
            return self._reject(d, "fields_locked", "Field layout is locked once the document is prepared")
        d.document.updated_at = now
        d.emit(AuditAction.FIELDS_EDITED, field_count=len(d.fields))
        return d.result()

    def _open(self, d: _Draft, now: datetime) -> TransitionResult:
        if d.document.lifecycle_state not in _SIGNABLE:
            return self._reject(d, "not_prepared", "Document is not ready for signing")
        signer = d.signer()
        if signer is None:
            return self._reject(d, "unknown_signer", f"Signer {d.event.signer_id!r} is not on this document")

        if signer.status is SignerStatus.PENDING:
            signer.status = SignerStatus.VIEWED
            signer.viewed_at = now
        d.emit(AuditAction.DOCUMENT_VIEWED)
        d.move_to(LifecycleState.PENDING_SIGNATURES, now)
        return d.result()

    def _submit(self, d: _Draft, now: datetime) -> TransitionResult:
        if d.document.lifecycle_state not in _SIGNABLE:
            return self._reject(d, "not_prepared", "Document is not ready for signing")
        signer = d.signer()
        if signer is None:
            return self._reject(d, "unknown_signer", f"Signer {d.event.signer_id!r} is not on this document")
        if signer.status is SignerStatus.COMPLETED:
            return self._reject(d, "already_completed", f"Signer {signer.id} has already completed")
        if signer.status is SignerStatus.DECLINED:
            return self._reject(d, "signer_declined", f"Signer {signer.id} has declined")
        if not may_sign(d.signers, signer.id, enforce_order=self.enforce_signing_order):
            return self._reject(d, "out_of_order", "Another signer must complete first")

        mine = {f.id for f in fields_for_signer(d.fields, signer.id)}
        foreign = sorted(k for k in d.event.values if k not in mine)
        if foreign:
            return self._reject(d, "field_not_assigned",
                                f"Fields not assigned to signer {signer.id}: {', '.join(foreign)}")

        candidate = [replace(f) for f in d.fields]
        changed = self._merge_values(candidate, d.event.values, now)
        errors = [e for e in validate(candidate, today=now.date()) if e.field_id in mine]
        if any(e.is_blocking for e in errors):
            logger.debug("submit by %s blocked by %d validation error(s)", signer.id, len(errors))
            return self._validation_failed(d, errors)
        d.fields = candidate

        if d.document.lifecycle_state is LifecycleState.PREPARED:
            d.move_to(LifecycleState.PENDING_SIGNATURES, now)

        for f in changed:
            d.emit(AuditAction.FIELD_COMPLETED, field_id=f.id, field_type=f.field_type.value)

        last = is_last_signer(d.signers, signer.id)
        signer.status = SignerStatus.COMPLETED
        signer.completed_at = now
        d.emit(AuditAction.SIGNER_COMPLETED, field_count=len(mine))

        if last and self._reopen_stale_signers(d, now):
            d.document.updated_at = now
        elif last and document_completion(d.fields, d.signers, today=now.date()).percentage == 100:
            d.document.document_type = DocumentType.SIGNED
            d.document.signed_at = now
            d.emit(AuditAction.DOCUMENT_COMPLETED, signer_count=len(d.signers))
            d.move_to(LifecycleState.COMPLETED, now)
        else:
            d.document.updated_at = now
        return d.result(errors)

    def _decline(self, d: _Draft, now: datetime) -> TransitionResult:
        signer = d.signer()
        if signer is None:
            return self._reject(d, "unknown_signer", f"Signer {d.event.signer_id!r} is not on this document")
        if signer.status is SignerStatus.COMPLETED:
            return self._reject(d, "already_completed", f"Signer {signer.id} has already completed")

        signer.status = SignerStatus.DECLINED
        signer.declined_at = now
        signer.decline_reason = d.event.reason
        d.document.declined_at = now
        d.emit(AuditAction.SIGNER_DECLINED, reason=d.event.reason or "")
        d.emit(AuditAction.DOCUMENT_DECLINED)
        d.move_to(LifecycleState.DECLINED, now)
        return d.result()

    # ------------------------------------------------------------------ #
    #  Helpers
    # ------------------------------------------------------------------ #
    @staticmethod
    def _merge_values(fields: List[Field], values, now: datetime) -> List[Field]:
        by_id: Dict[str, Field] = {f.id: f for f in fields}
        changed: List[Field] = []
        for field_id, raw in values.items():
            f = by_id[field_id]
            text = coerce_value(raw)
            if text != f.value:
                f.value = text
                f.modified_at = now
                if text.strip():
                    changed.append(f)
        return changed

    @staticmethod
    def _reopen_stale_signers(d: _Draft, now: datetime) -> bool:
        """
        Re-check every field before the document closes.

        Values accepted earlier can stop validating (a ``range:today`` date
        a day later, a conditional field that became visible). Their owners
        go back to VIEWED so they can resubmit; returns True if any did.
        """
        failing: Dict[str, List[str]] = {}
        owner_of = {f.id: f.assigned_to for f in d.fields}
        for error in validate(d.fields, today=now.date()):
            owner = owner_of.get(error.field_id)
            if error.is_blocking and owner is not None:
                failing.setdefault(owner, []).append(error.field_id)
        for s in d.signers:
            if s.id in failing and s.status is SignerStatus.COMPLETED:
                s.status = SignerStatus.VIEWED
                s.completed_at = None
                d.emit(AuditAction.SIGNER_REOPENED, AuditSeverity.WARNING,
                       reopened_signer=s.id, field_ids=sorted(set(failing[s.id])))
        if failing:
            logger.info("document %s kept open: %d signer(s) must resubmit", d.document.id, len(failing))
        return bool(failing)

    @staticmethod
    def _validation_failed(d: _Draft, errors: Sequence[ValidationError]) -> TransitionResult:
        original = d.result()
        failed = WorkflowEvent(
            action=AuditAction.VALIDATION_FAILED,
            actor=d.event.actor,
            signer_id=d.event.signer_id,
            severity=AuditSeverity.WARNING,
            details={"field_ids": sorted({e.field_id for e in errors if e.is_blocking})},
        )
        return TransitionResult(
            next_state=original.next_state,
            document=original.document,
            signers=original.signers,
            fields=original.fields,
            audit_events=(failed,),
            errors=tuple(errors),
        )

    @staticmethod
    def _reject(d: _Draft, code: str, message: str, *, keep_changes: bool = False) -> TransitionResult:
        logger.debug("transition %s rejected: %s", d.event.action, code)
        rejected = WorkflowEvent(
            action=AuditAction.TRANSITION_REJECTED,
            actor=d.event.actor,
            signer_id=d.event.signer_id,
            severity=AuditSeverity.WARNING,
            details={"action": DocumentAction(d.event.action).value, "code": code},
        )
        events: Tuple[WorkflowEvent, ...] = (tuple(d.events) if keep_changes else ()) + (rejected,)
        return TransitionResult(
            next_state=d.document.lifecycle_state,
            document=d.document,
            signers=tuple(d.signers),
            fields=tuple(d.fields),
            audit_events=events,
            rejection=TransitionRejection(code=code, message=message),
        )
