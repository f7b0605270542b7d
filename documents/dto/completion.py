"""Completion figures computed by the signer assignment tracker."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Tuple


@dataclass(frozen=True)
class SignerCompletion:
    signer_id: str
    completed_required: int
    total_required: int
    percentage: int
    missing_field_ids: Tuple[str, ...] = ()

    @property
    def is_complete(self) -> bool:
        return self.completed_required == self.total_required


@dataclass(frozen=True)
class CompletionReport:
    """Document-wide completion aggregated over all signers."""
    percentage: int
    completed_required: int
    total_required: int
    per_signer: Dict[str, SignerCompletion] = field(default_factory=dict)
