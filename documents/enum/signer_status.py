"""Signer status enumeration."""
from __future__ import annotations

from enum import Enum


class SignerStatus(str, Enum):
    """Progress of a single signer."""

    PENDING = "PENDING"
    VIEWED = "VIEWED"
    COMPLETED = "COMPLETED"
    DECLINED = "DECLINED"
