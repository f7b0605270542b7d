"""core/contracts/audit.py
======================

Audit trail contracts.

Audit sinks are replaceable (in-memory, SQLite event log, remote) while the
append-only semantics are defined in one place.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Iterable, Mapping


class IAuditSink(ABC):
    """Write-once audit trail storage."""

    @abstractmethod
    def append(self, document_id: str, record: Mapping[str, Any]) -> None:
        """Persist one audit record. Implementations never update or delete."""

    @abstractmethod
    def load(self, document_id: str) -> Iterable[Mapping[str, Any]]:
        """Return stored records for a document in insertion order."""
