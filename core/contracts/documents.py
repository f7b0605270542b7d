"""core/contracts/documents.py
==========================

Persistence and blob-storage contracts for signable documents.

The engine works on in-memory domain objects; these interfaces are how the
service layer loads them from and hands them back to a relational store.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional, Sequence, Tuple


class IDocumentRepository(ABC):
    """Relational persistence for Document / Field / Signer records."""

    @abstractmethod
    def load_bundle(self, document_id: str) -> Optional[Tuple[Any, Sequence[Any], Sequence[Any]]]:
        """Return ``(document, fields, signers)`` or None when unknown."""

    @abstractmethod
    def save_field_values(self, document_id: str, values: Mapping[str, str]) -> None:
        """Persist field values keyed by field id."""

    @abstractmethod
    def save_fields(self, document_id: str, fields: Sequence[Any]) -> None:
        """Replace the field layout of a document (draft editing)."""

    @abstractmethod
    def save_document(self, document: Any) -> None:
        """Persist document status and lifecycle timestamps."""

    @abstractmethod
    def save_signers(self, document_id: str, signers: Sequence[Any]) -> None:
        """Persist signer statuses."""

    @abstractmethod
    def delete_document(self, document_id: str) -> None:
        """Delete a document; its fields and signers are deleted with it."""


class IBlobStore(ABC):
    """Raw document bytes (original and signed PDF)."""

    @abstractmethod
    def fetch(self, key: str) -> bytes:
        """Return the bytes stored under *key*."""

    @abstractmethod
    def store(self, key: str, data: bytes) -> str:
        """Store *data* and return its key/URL."""
