"""Audit event DTO for the signing workflow.

Audit events are append-only: once written they are never mutated, reordered
or deleted. They are produced by :class:`documents.logic.audit_log.AuditRecorder`
from the workflow events the lifecycle state machine emits.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional


class AuditAction(Enum):
    """Audit action labels for the document lifecycle."""

    # Preparation
    DOCUMENT_PREPARED = "document_prepared"
    FIELDS_EDITED = "fields_edited"

    # Signing
    DOCUMENT_VIEWED = "document_viewed"
    FIELD_COMPLETED = "field_completed"
    SIGNER_COMPLETED = "signer_completed"
    SIGNER_REOPENED = "signer_reopened"
    DOCUMENT_COMPLETED = "document_completed"
    SIGNER_DECLINED = "signer_declined"
    DOCUMENT_DECLINED = "document_declined"
    DOCUMENT_EXPIRED = "document_expired"

    # Status
    STATUS_CHANGED = "status_changed"

    # Security
    TRANSITION_REJECTED = "transition_rejected"
    VALIDATION_FAILED = "validation_failed"


class AuditSeverity(Enum):
    """Audit event severity levels."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class AuditEvent:
    """
    Immutable audit log event.

    ``sequence`` is the position in the document's trail; together with the
    monotonic ``occurred_at`` it fixes the order of the trail.
    """

    event_id: str
    """Unique event ID (UUID)"""

    document_id: str
    """Owning document"""

    sequence: int
    """1-based position within the document trail"""

    event_type: AuditAction
    """Event label"""

    occurred_at: datetime
    """When the event occurred (UTC, monotonic per document)"""

    actor_id: str
    """User or signer who performed the action"""

    actor_email: Optional[str] = None

    signer_id: Optional[str] = None
    """Signer the event concerns (if any)"""

    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    geolocation: Optional[str] = None

    severity: AuditSeverity = AuditSeverity.INFO

    details: Mapping[str, Any] = field(default_factory=dict)
    """
    Event specific context, e.g.
    - status change: {'from': 'PREPARED', 'to': 'PENDING_SIGNATURES'}
    - signer completed: {'signature_sha256': '...'}
    """

    def __post_init__(self) -> None:
        # freeze the details mapping as well
        object.__setattr__(self, "details", MappingProxyType(dict(self.details or {})))

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict for storage/serialisation."""
        return {
            "event_id": self.event_id,
            "document_id": self.document_id,
            "sequence": self.sequence,
            "event_type": self.event_type.value,
            "occurred_at": self.occurred_at.isoformat(),
            "actor_id": self.actor_id,
            "actor_email": self.actor_email,
            "signer_id": self.signer_id,
            "ip_address": self.ip_address,
            "user_agent": self.user_agent,
            "geolocation": self.geolocation,
            "severity": self.severity.value,
            "details": dict(self.details),
        }

    def to_log_string(self) -> str:
        """Human-readable one-liner."""
        parts = [
            f"[{self.occurred_at.isoformat()}]",
            f"[{self.severity.value.upper()}]",
            self.event_type.value,
            f"by {self.actor_email or self.actor_id}",
            f"on {self.document_id}",
        ]
        if self.signer_id and self.signer_id != self.actor_id:
            parts.append(f"(signer {self.signer_id})")
        if self.ip_address:
            parts.append(f"from {self.ip_address}")
        return " ".join(parts)
