"""Repository layer for documents module.

Provides data access for documents, fields and signers.
"""

from documents.repository.memory_document_repository import InMemoryDocumentRepository
from documents.repository.sqlite_document_repository import SQLiteDocumentRepository

__all__ = [
    "InMemoryDocumentRepository",
    "SQLiteDocumentRepository",
]
