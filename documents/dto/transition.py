"""Input and output values of the lifecycle state machine."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping, Optional, Tuple

from core.contracts.identity import ActorContext
from documents.dto.audit_event import AuditAction, AuditSeverity
from documents.dto.validation_error import ValidationError
from documents.enum.document_action import DocumentAction
from documents.enum.lifecycle_state import LifecycleState
from documents.models.document_models import Document, Field, Signer


@dataclass(frozen=True)
class TransitionEvent:
    """A request to move a document through its workflow."""
    action: DocumentAction
    actor: ActorContext
    signer_id: Optional[str] = None
    values: Mapping[str, Any] = field(default_factory=dict)
    reason: Optional[str] = None


@dataclass(frozen=True)
class WorkflowEvent:
    """An auditable occurrence emitted by a transition, not yet timestamped into the trail."""
    action: AuditAction
    actor: ActorContext
    signer_id: Optional[str] = None
    severity: AuditSeverity = AuditSeverity.INFO
    details: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TransitionRejection:
    """Illegal state change; nothing was mutated."""
    code: str
    message: str


@dataclass(frozen=True)
class TransitionResult:
    next_state: LifecycleState
    document: Document
    signers: Tuple[Signer, ...]
    fields: Tuple[Field, ...]
    audit_events: Tuple[WorkflowEvent, ...] = ()
    errors: Tuple[ValidationError, ...] = ()
    rejection: Optional[TransitionRejection] = None

    @property
    def succeeded(self) -> bool:
        return self.rejection is None and not any(e.is_blocking for e in self.errors)

    @property
    def completed_at(self) -> Optional[datetime]:
        return self.document.signed_at
