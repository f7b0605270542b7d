"""
Progress backup / resume.

Snapshots the in-progress value map of one (document, signer) pair into a
session-scoped key/value store under ``signing-backup-<documentId>:<signerId>``.
On resume the snapshot is merged into the current values: restored non-empty
values win over defaults, but a value the user already re-entered in this
session is never overwritten. Snapshots older than the TTL (24h by default)
are discarded instead of offered.

Snapshot payload (JSON)::

    {"documentId": "...", "signerId": "...", "fieldValues": {...}, "timestamp": "ISO-8601"}
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Iterable, Mapping, Optional, Tuple

from cryptography.fernet import InvalidToken

from core.contracts.session import ISessionStore
from core.helpers.date_time_helper import Clock, ensure_utc, parse_iso_datetime, utc_now
from core.helpers.encryption import KeyringCipher
from documents.models.document_models import coerce_value

logger = logging.getLogger(__name__)

KEY_PREFIX = "signing-backup-"
DEFAULT_TTL_HOURS = 24


def backup_key(document_id: str, signer_id: str) -> str:
    return f"{KEY_PREFIX}{document_id}:{signer_id}"


@dataclass(frozen=True)
class RestoreResult:
    """Outcome of a resume attempt."""
    values: Dict[str, str]
    restored_field_ids: Tuple[str, ...] = ()
    saved_at: Optional[datetime] = None
    discarded: bool = False
    reason: Optional[str] = None

    @property
    def restored(self) -> bool:
        return bool(self.restored_field_ids)


@dataclass
class ProgressBackup:
    store: ISessionStore
    ttl_hours: float = DEFAULT_TTL_HOURS
    clock: Clock = utc_now
    cipher: Optional[KeyringCipher] = None
    _ttl: timedelta = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._ttl = timedelta(hours=self.ttl_hours)

    # ------------------------------------------------------------------ #
    #  Backup
    # ------------------------------------------------------------------ #
    def backup(self, document_id: str, signer_id: str, values: Mapping[str, object]) -> datetime:
        now = ensure_utc(self.clock())
        payload = {
            "documentId": document_id,
            "signerId": signer_id,
            "fieldValues": {k: coerce_value(v) for k, v in values.items()},
            "timestamp": now.isoformat(),
        }
        raw = json.dumps(payload, ensure_ascii=False)
        if self.cipher is not None:
            raw = self.cipher.encrypt_text(raw)
        self.store.set(backup_key(document_id, signer_id), raw)
        logger.debug("backup saved for %s/%s (%d values)", document_id, signer_id, len(payload["fieldValues"]))
        return now

    def clear(self, document_id: str, signer_id: str) -> None:
        self.store.remove(backup_key(document_id, signer_id))

    def clear_all(self, document_id: str, signer_ids: Iterable[str]) -> None:
        for signer_id in signer_ids:
            self.clear(document_id, signer_id)

    # ------------------------------------------------------------------ #
    #  Restore
    # ------------------------------------------------------------------ #
    def load(self, document_id: str, signer_id: str) -> Optional[dict]:
        """Decoded snapshot, or None when missing or unreadable (unreadable ones are removed)."""
        raw = self.store.get(backup_key(document_id, signer_id))
        if raw is None:
            return None
        try:
            if self.cipher is not None:
                raw = self.cipher.decrypt_text(raw)
            payload = json.loads(raw)
        except (InvalidToken, ValueError) as ex:
            logger.warning("discarding unreadable backup for %s/%s: %s", document_id, signer_id, ex)
            self.clear(document_id, signer_id)
            return None
        if not isinstance(payload, dict):
            self.clear(document_id, signer_id)
            return None
        return payload

    def restore(
        self,
        document_id: str,
        signer_id: str,
        current_values: Mapping[str, object],
        touched: Iterable[str] = (),
    ) -> RestoreResult:
        """
        Merge a stored snapshot into *current_values*.

        *touched* names the fields the user has already edited in this
        session; those keep their current value.
        """
        current = {k: coerce_value(v) for k, v in current_values.items()}
        payload = self.load(document_id, signer_id)
        if payload is None:
            return RestoreResult(values=current, reason="missing")

        if payload.get("signerId") != signer_id or payload.get("documentId") != document_id:
            return RestoreResult(values=current, reason="other_signer")

        saved_at = parse_iso_datetime(str(payload.get("timestamp") or ""))
        now = ensure_utc(self.clock())
        if saved_at is None or now - saved_at > self._ttl:
            logger.info("discarding stale backup for %s/%s", document_id, signer_id)
            self.clear(document_id, signer_id)
            return RestoreResult(values=current, saved_at=saved_at, discarded=True, reason="stale")

        stored = payload.get("fieldValues")
        if not isinstance(stored, dict):
            stored = {}
        keep = set(touched)
        merged = dict(current)
        restored = []
        for field_id, raw_value in stored.items():
            value = raw_value if isinstance(raw_value, str) else ""
            if not value.strip() or field_id in keep:
                continue
            if merged.get(field_id, "") == value:
                continue
            merged[field_id] = value
            restored.append(field_id)
        return RestoreResult(values=merged, restored_field_ids=tuple(restored), saved_at=saved_at)
