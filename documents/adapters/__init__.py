"""Adapters for external collaborators.

Provides implementations of the core contracts for:
- Session storage (backup/resume snapshots)
- Audit sinks (in-memory, shared SQLite event log)
- Blob storage (filesystem, in-memory)
"""

from documents.adapters.audit_sink import InMemoryAuditSink, SqliteAuditSink
from documents.adapters.filesystem_storage_adapter import FilesystemBlobStore, InMemoryBlobStore
from documents.adapters.session_store import InMemorySessionStore, SQLiteSessionStore

__all__ = [
    "InMemoryAuditSink",
    "SqliteAuditSink",
    "FilesystemBlobStore",
    "InMemoryBlobStore",
    "InMemorySessionStore",
    "SQLiteSessionStore",
]
