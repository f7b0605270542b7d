"""documents/enum/document_action.py
================================

Canonical workflow event identifiers accepted by the lifecycle state machine.

Callers should use these ids instead of hardcoding strings.
"""
from __future__ import annotations

from enum import Enum


class DocumentAction(str, Enum):
    """Supported workflow events."""

    PREPARE = "prepare"          # author finalises field placement
    OPEN = "open"                # signer accesses the document
    SUBMIT = "submit"            # signer submits assigned field values
    DECLINE = "decline"          # signer declines
    EDIT_FIELDS = "edit_fields"  # author edits field layout
    CHECK_EXPIRY = "check_expiry"
