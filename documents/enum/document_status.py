"""Document status enumeration.

``DocumentStatus`` is the coarse, persisted status a relational store keeps
for a document. The fine-grained workflow position lives in
:class:`documents.enum.lifecycle_state.LifecycleState`; the status is derived
from it.
"""
from __future__ import annotations

from enum import Enum


class DocumentStatus(Enum):
    """Persisted document status."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    DECLINED = "DECLINED"
    EXPIRED = "EXPIRED"
