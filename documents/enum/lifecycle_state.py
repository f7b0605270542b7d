"""Explicit lifecycle states of a signable document."""
from __future__ import annotations

from enum import Enum

from documents.enum.document_status import DocumentStatus


class LifecycleState(str, Enum):
    DRAFT = "DRAFT"
    PREPARED = "PREPARED"
    PENDING_SIGNATURES = "PENDING_SIGNATURES"
    PARTIALLY_SIGNED = "PARTIALLY_SIGNED"
    COMPLETED = "COMPLETED"
    DECLINED = "DECLINED"
    EXPIRED = "EXPIRED"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATES

    @property
    def document_status(self) -> DocumentStatus:
        """Coarse persisted status for this state."""
        if self is LifecycleState.COMPLETED:
            return DocumentStatus.COMPLETED
        if self is LifecycleState.DECLINED:
            return DocumentStatus.DECLINED
        if self is LifecycleState.EXPIRED:
            return DocumentStatus.EXPIRED
        return DocumentStatus.PENDING


TERMINAL_STATES = frozenset({
    LifecycleState.COMPLETED,
    LifecycleState.DECLINED,
    LifecycleState.EXPIRED,
})
