"""Document type: whether the signed artifact has been produced."""
from __future__ import annotations

from enum import Enum


class DocumentType(str, Enum):
    UNSIGNED = "UNSIGNED"
    SIGNED = "SIGNED"
