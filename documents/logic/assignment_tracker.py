"""
Signer assignment tracker.

Maps fields to signers, computes completion over *required, visible* fields
and answers signing-order questions. A required field counts as completed
only when its value is non-empty and passes validation without blocking
errors. Unassigned fields block no one.
"""

from __future__ import annotations

from datetime import date
from typing import Iterable, List, Mapping, Optional, Sequence

from documents.dto.completion import CompletionReport, SignerCompletion
from documents.enum.signer_status import SignerStatus
from documents.logic.conditional_logic import is_field_visible
from documents.logic.validation_engine import resolve_values, validate_field
from documents.models.document_models import Field, Signer


def fields_for_signer(fields: Iterable[Field], signer_id: str) -> List[Field]:
    """Fields assigned to *signer_id*, in input order."""
    return [f for f in fields if f.assigned_to == signer_id]


def _percentage(completed: int, total: int) -> int:
    if total == 0:
        return 100
    return int(round(completed / total * 100))


def _completion(
    signer_id: str,
    fields: Sequence[Field],
    all_values: Mapping[str, str],
    today: Optional[date],
) -> SignerCompletion:
    total = 0
    done = 0
    missing: List[str] = []
    for f in fields:
        if not f.required or not is_field_visible(f, all_values):
            continue
        total += 1
        value = all_values.get(f.id, "")
        if value.strip() and not any(e.is_blocking for e in validate_field(f, value, today=today)):
            done += 1
        else:
            missing.append(f.id)
    return SignerCompletion(
        signer_id=signer_id,
        completed_required=done,
        total_required=total,
        percentage=_percentage(done, total),
        missing_field_ids=tuple(missing),
    )


def compute_completion(
    fields: Iterable[Field],
    values: Optional[Mapping[str, object]] = None,
    signer_id: Optional[str] = None,
    *,
    today: Optional[date] = None,
) -> SignerCompletion:
    """
    Completion percentage across required fields.

    With *signer_id* only fields assigned to that signer count; without it
    every field passed in counts. ``100`` when there are no required fields.
    """
    field_list = list(fields)
    resolved = resolve_values(field_list, values)
    scoped = fields_for_signer(field_list, signer_id) if signer_id is not None else field_list
    return _completion(signer_id or "", scoped, resolved, today)


def document_completion(
    fields: Iterable[Field],
    signers: Iterable[Signer],
    values: Optional[Mapping[str, object]] = None,
    *,
    today: Optional[date] = None,
) -> CompletionReport:
    """Aggregate completion over all signers' assigned required fields."""
    field_list = list(fields)
    resolved = resolve_values(field_list, values)
    per_signer = {
        s.id: _completion(s.id, fields_for_signer(field_list, s.id), resolved, today)
        for s in signers
    }
    done = sum(c.completed_required for c in per_signer.values())
    total = sum(c.total_required for c in per_signer.values())
    return CompletionReport(
        percentage=_percentage(done, total),
        completed_required=done,
        total_required=total,
        per_signer=per_signer,
    )


def is_last_signer(signers: Iterable[Signer], completing_signer_id: str) -> bool:
    """True iff every signer other than *completing_signer_id* has COMPLETED."""
    return all(
        s.status is SignerStatus.COMPLETED
        for s in signers
        if s.id != completing_signer_id
    )


def next_signer(signers: Iterable[Signer]) -> Optional[Signer]:
    """Lowest-order signer that has not completed yet (None when all done or one declined)."""
    ordered = sorted(signers, key=lambda s: s.order)
    if any(s.status is SignerStatus.DECLINED for s in ordered):
        return None
    for s in ordered:
        if s.status is not SignerStatus.COMPLETED:
            return s
    return None


def may_sign(signers: Iterable[Signer], signer_id: str, *, enforce_order: bool = False) -> bool:
    """
    Whether *signer_id* may submit now.

    Without order enforcement any pending/viewing signer may sign. With it,
    every signer of a lower order must already have completed.
    """
    signer_list = list(signers)
    me = next((s for s in signer_list if s.id == signer_id), None)
    if me is None or me.status in (SignerStatus.COMPLETED, SignerStatus.DECLINED):
        return False
    if not enforce_order:
        return True
    return all(s.status is SignerStatus.COMPLETED for s in signer_list if s.order < me.order)
