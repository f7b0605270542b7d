"""Documents feature exceptions.

Validation failures and illegal transitions are returned as values
(``ValidationError`` / ``TransitionRejection``); the exceptions below are for
programming errors and collaborator failures only.
"""
from __future__ import annotations


class DocumentsError(Exception):
    """Base exception for documents feature."""


class PolicyViolationError(DocumentsError):
    """Raised by the service layer when a rejected transition must abort a call chain."""

    def __init__(self, code: str, message: str) -> None:
        self.code = code
        super().__init__(message)


class FieldTypeImmutableError(DocumentsError):
    """A field's type cannot change after creation."""


class DocumentNotFoundError(DocumentsError):
    """The persistence collaborator does not know the document id."""


class AuditIntegrityError(DocumentsError):
    """An attempt to append an audit event for another document or out of order."""


class DuplicateSubmissionError(DocumentsError):
    """A signer's submission is already in flight or has already completed."""

    def __init__(self, key: tuple, *, in_flight: bool) -> None:
        self.key = key
        self.in_flight = in_flight
        state = "in progress" if in_flight else "already completed"
        super().__init__(f"submission {key} is {state}")
