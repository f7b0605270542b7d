"""In-memory document repository (tests, single-process tools)."""

from __future__ import annotations

import threading
from dataclasses import replace
from typing import Dict, List, Mapping, Optional, Sequence, Tuple

from core.contracts.documents import IDocumentRepository
from documents.exceptions.errors import DocumentNotFoundError
from documents.models.document_models import Document, Field, Signer


class InMemoryDocumentRepository(IDocumentRepository):
    """Keeps copies; callers never share objects with the store."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._documents: Dict[str, Document] = {}
        self._fields: Dict[str, List[Field]] = {}
        self._signers: Dict[str, List[Signer]] = {}

    def add(self, document: Document, fields: Sequence[Field], signers: Sequence[Signer]) -> None:
        with self._lock:
            self._documents[document.id] = replace(document)
            self._fields[document.id] = [replace(f) for f in fields]
            self._signers[document.id] = [replace(s) for s in signers]

    def load_bundle(self, document_id: str) -> Optional[Tuple[Document, List[Field], List[Signer]]]:
        with self._lock:
            doc = self._documents.get(document_id)
            if doc is None:
                return None
            return (
                replace(doc),
                [replace(f) for f in self._fields.get(document_id, [])],
                [replace(s) for s in self._signers.get(document_id, [])],
            )

    def save_field_values(self, document_id: str, values: Mapping[str, str]) -> None:
        with self._lock:
            fields = self._require(document_id, self._fields)
            for f in fields:
                if f.id in values:
                    f.value = values[f.id]

    def save_fields(self, document_id: str, fields: Sequence[Field]) -> None:
        with self._lock:
            self._require(document_id, self._fields)
            self._fields[document_id] = [replace(f) for f in fields]

    def save_document(self, document: Document) -> None:
        with self._lock:
            self._require(document.id, self._documents)
            self._documents[document.id] = replace(document)

    def save_signers(self, document_id: str, signers: Sequence[Signer]) -> None:
        with self._lock:
            self._require(document_id, self._signers)
            self._signers[document_id] = [replace(s) for s in signers]

    def delete_document(self, document_id: str) -> None:
        with self._lock:
            self._documents.pop(document_id, None)
            self._fields.pop(document_id, None)
            self._signers.pop(document_id, None)

    def field_count(self, document_id: str) -> int:
        return len(self._fields.get(document_id, []))

    def signer_count(self, document_id: str) -> int:
        return len(self._signers.get(document_id, []))

    @staticmethod
    def _require(document_id: str, table: dict):
        if document_id not in table:
            raise DocumentNotFoundError(document_id)
        return table[document_id]
