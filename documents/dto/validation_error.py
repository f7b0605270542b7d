"""Validation error DTO. Transient, computed on demand, never persisted."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class ValidationError:
    field_id: str
    message: str
    severity: Severity = Severity.ERROR
    code: str = "invalid"

    @property
    def is_blocking(self) -> bool:
        return self.severity is Severity.ERROR

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fieldId": self.field_id,
            "message": self.message,
            "severity": self.severity.value,
            "code": self.code,
        }
