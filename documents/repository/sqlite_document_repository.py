"""SQLite implementation of the document repository.

Lightweight repository - only CRUD on documents, fields and signers.
Business logic is in the logic/services layer. Deleting a document
cascades to its fields and signers through foreign keys.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any, List, Mapping, Optional, Sequence, Tuple

from core.common.db_interface import MEMORY, SQLiteRepository
from core.contracts.documents import IDocumentRepository
from core.helpers.date_time_helper import parse_iso_datetime, to_iso
from documents.enum.document_type import DocumentType
from documents.enum.field_type import FieldType
from documents.enum.lifecycle_state import LifecycleState
from documents.enum.signer_status import SignerStatus
from documents.exceptions.errors import DocumentNotFoundError
from documents.models.document_models import Document, Field, FieldBox, Signer

logger = logging.getLogger(__name__)


def _dt(value: Optional[str]):
    return parse_iso_datetime(value) if value else None


class SQLiteDocumentRepository(SQLiteRepository, IDocumentRepository):
    """SQLite backend for documents, fields and signers."""

    def __init__(self, db_path: Path | str = MEMORY) -> None:
        self._lock = threading.RLock()
        super().__init__(db_path, check_same_thread=False)

    # =========================================================================
    # Schema Management
    # =========================================================================

    def _ensure_schema(self) -> None:
        conn = self.connect()
        conn.executescript(
            """
            CREATE TABLE IF NOT EXISTS documents (
                id TEXT PRIMARY KEY,
                title TEXT NOT NULL,
                author_id TEXT NOT NULL,
                description TEXT,
                document_type TEXT NOT NULL,
                lifecycle_state TEXT NOT NULL,
                status TEXT NOT NULL,
                created_at TEXT,
                updated_at TEXT,
                prepared_at TEXT,
                signed_at TEXT,
                declined_at TEXT,
                expires_at TEXT,
                due_date TEXT,
                page_count INTEGER
            );

            CREATE TABLE IF NOT EXISTS fields (
                id TEXT PRIMARY KEY,
                document_id TEXT NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
                position INTEGER NOT NULL,
                field_type TEXT NOT NULL,
                page_number INTEGER NOT NULL CHECK (page_number >= 1),
                x REAL NOT NULL,
                y REAL NOT NULL,
                width REAL NOT NULL,
                height REAL NOT NULL,
                required INTEGER NOT NULL DEFAULT 0,
                label TEXT,
                placeholder TEXT,
                options TEXT,
                validation_rule TEXT,
                assigned_to TEXT,
                value TEXT NOT NULL DEFAULT '',
                conditional_logic TEXT,
                created_at TEXT,
                modified_at TEXT
            );

            CREATE TABLE IF NOT EXISTS signers (
                id TEXT PRIMARY KEY,
                document_id TEXT NOT NULL REFERENCES documents(id) ON DELETE CASCADE,
                name TEXT NOT NULL,
                email TEXT NOT NULL,
                user_id TEXT,
                signing_order INTEGER NOT NULL DEFAULT 0,
                status TEXT NOT NULL,
                viewed_at TEXT,
                completed_at TEXT,
                declined_at TEXT,
                decline_reason TEXT
            );
            """
        )
        conn.commit()

    # =========================================================================
    # Writes
    # =========================================================================

    def add(self, document: Document, fields: Sequence[Field], signers: Sequence[Signer]) -> None:
        with self._lock:
            conn = self.connect()
            conn.execute(
                "INSERT INTO documents(id, title, author_id, description, document_type, lifecycle_state, "
                "status, created_at, updated_at, prepared_at, signed_at, declined_at, expires_at, due_date, "
                "page_count) VALUES (?,?,?,?,?,?,?,?,?,?,?,?,?,?,?)",
                (document.id, document.title, document.author_id, document.description)
                + self._document_state(document)[:-1] + (document.page_count,),
            )
            self._write_fields(conn, document.id, fields)
            self._write_signers(conn, document.id, signers)
            conn.commit()

    def save_document(self, document: Document) -> None:
        with self._lock:
            conn = self.connect()
            cur = conn.execute(
                "UPDATE documents SET document_type=?, lifecycle_state=?, status=?, created_at=?, updated_at=?, "
                "prepared_at=?, signed_at=?, declined_at=?, expires_at=?, due_date=? WHERE id=?",
                self._document_state(document),
            )
            if cur.rowcount == 0:
                raise DocumentNotFoundError(document.id)
            conn.commit()

    def save_field_values(self, document_id: str, values: Mapping[str, str]) -> None:
        with self._lock:
            conn = self.connect()
            conn.executemany(
                "UPDATE fields SET value=? WHERE id=? AND document_id=?",
                [(v, k, document_id) for k, v in values.items()],
            )
            conn.commit()

    def save_fields(self, document_id: str, fields: Sequence[Field]) -> None:
        with self._lock:
            conn = self.connect()
            conn.execute("DELETE FROM fields WHERE document_id=?", (document_id,))
            self._write_fields(conn, document_id, fields)
            conn.commit()

    def save_signers(self, document_id: str, signers: Sequence[Signer]) -> None:
        with self._lock:
            conn = self.connect()
            conn.execute("DELETE FROM signers WHERE document_id=?", (document_id,))
            self._write_signers(conn, document_id, signers)
            conn.commit()

    def delete_document(self, document_id: str) -> None:
        with self._lock:
            conn = self.connect()
            conn.execute("DELETE FROM documents WHERE id=?", (document_id,))
            conn.commit()

    # =========================================================================
    # Reads
    # =========================================================================

    def load_bundle(self, document_id: str) -> Optional[Tuple[Document, List[Field], List[Signer]]]:
        with self._lock:
            conn = self.connect()
            row = conn.execute("SELECT * FROM documents WHERE id=?", (document_id,)).fetchone()
            if row is None:
                return None
            field_rows = conn.execute(
                "SELECT * FROM fields WHERE document_id=? ORDER BY position", (document_id,)).fetchall()
            signer_rows = conn.execute(
                "SELECT * FROM signers WHERE document_id=? ORDER BY signing_order, id", (document_id,)).fetchall()
        return (
            self._row_to_document(row),
            [self._row_to_field(r) for r in field_rows],
            [self._row_to_signer(r) for r in signer_rows],
        )

    def count_rows(self, table: str, document_id: str) -> int:
        if table not in ("fields", "signers"):
            raise ValueError(table)
        with self._lock:
            row = self.connect().execute(
                f"SELECT COUNT(*) AS n FROM {table} WHERE document_id=?", (document_id,)).fetchone()
        return int(row["n"])

    # =========================================================================
    # Mapping
    # =========================================================================

    @staticmethod
    def _document_state(d: Document) -> Tuple[Any, ...]:
        return (
            d.document_type.value, d.lifecycle_state.value, d.status.value,
            to_iso(d.created_at), to_iso(d.updated_at), to_iso(d.prepared_at), to_iso(d.signed_at),
            to_iso(d.declined_at), to_iso(d.expires_at), to_iso(d.due_date), d.id,
        )

    @staticmethod
    def _write_fields(conn, document_id: str, fields: Sequence[Field]) -> None:
        conn.executemany(
            "INSERT INTO fields(id, document_id, position, field_type, page_number, x, y, width, height, "
            "required, label, placeholder, options, validation_rule, assigned_to, value, conditional_logic, "
            "created_at, modified_at) VALUES (?,?,?,?,?,?,?,?,?,?,?,?,?,?,?,?,?,?,?)",
            [
                (f.id, document_id, i, f.field_type.value, f.page_number,
                 f.position.x, f.position.y, f.position.width, f.position.height,
                 int(f.required), f.label, f.placeholder, json.dumps(list(f.options)),
                 f.validation_rule, f.assigned_to, f.value, f.conditional_logic,
                 to_iso(f.created_at), to_iso(f.modified_at))
                for i, f in enumerate(fields)
            ],
        )

    @staticmethod
    def _write_signers(conn, document_id: str, signers: Sequence[Signer]) -> None:
        conn.executemany(
            "INSERT INTO signers(id, document_id, name, email, user_id, signing_order, status, viewed_at, "
            "completed_at, declined_at, decline_reason) VALUES (?,?,?,?,?,?,?,?,?,?,?)",
            [
                (s.id, document_id, s.name, s.email, s.user_id, s.order, s.status.value,
                 to_iso(s.viewed_at), to_iso(s.completed_at), to_iso(s.declined_at), s.decline_reason)
                for s in signers
            ],
        )

    @staticmethod
    def _row_to_document(r) -> Document:
        return Document(
            id=r["id"],
            title=r["title"],
            author_id=r["author_id"],
            description=r["description"] or "",
            document_type=DocumentType(r["document_type"]),
            lifecycle_state=LifecycleState(r["lifecycle_state"]),
            created_at=_dt(r["created_at"]),
            updated_at=_dt(r["updated_at"]),
            prepared_at=_dt(r["prepared_at"]),
            signed_at=_dt(r["signed_at"]),
            declined_at=_dt(r["declined_at"]),
            expires_at=_dt(r["expires_at"]),
            due_date=_dt(r["due_date"]),
            page_count=r["page_count"],
        )

    @staticmethod
    def _row_to_field(r) -> Field:
        try:
            options = tuple(json.loads(r["options"] or "[]"))
        except ValueError:
            logger.warning("field %s has unreadable options", r["id"])
            options = ()
        return Field(
            id=r["id"],
            document_id=r["document_id"],
            field_type=FieldType.parse(r["field_type"]),
            page_number=int(r["page_number"]),
            position=FieldBox(r["x"], r["y"], r["width"], r["height"]),
            required=bool(r["required"]),
            label=r["label"] or "",
            placeholder=r["placeholder"] or "",
            options=options,
            validation_rule=r["validation_rule"] or "",
            assigned_to=r["assigned_to"],
            value=r["value"],
            conditional_logic=r["conditional_logic"] or "",
            created_at=_dt(r["created_at"]),
            modified_at=_dt(r["modified_at"]),
        )

    @staticmethod
    def _row_to_signer(r) -> Signer:
        return Signer(
            id=r["id"],
            document_id=r["document_id"],
            name=r["name"],
            email=r["email"],
            user_id=r["user_id"],
            order=int(r["signing_order"]),
            status=SignerStatus(r["status"]),
            viewed_at=_dt(r["viewed_at"]),
            completed_at=_dt(r["completed_at"]),
            declined_at=_dt(r["declined_at"]),
            decline_reason=r["decline_reason"],
        )
