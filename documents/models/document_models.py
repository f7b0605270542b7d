"""
Document domain models for the signing workflow.

Keeps the data layer independent from UI and storage details. The engine
receives these objects from the persistence collaborator and hands updated
copies back; it never talks to storage itself.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional, Tuple

from core.helpers.date_time_helper import utc_now
from documents.enum.document_type import DocumentType
from documents.enum.field_type import FieldType
from documents.enum.lifecycle_state import LifecycleState
from documents.enum.document_status import DocumentStatus
from documents.enum.signer_status import SignerStatus
from documents.exceptions.errors import FieldTypeImmutableError
from documents.models.validation_rules import RuleDirective, parse_validation_rule


#: Value stored for a signature/initial field whose canvas was left blank.
EMPTY_SIGNATURE = "data:,"


def coerce_value(value: Any) -> str:
    """
    Normalise a raw field value to the stored string form.

    None and values of unexpected shape become ``""``; booleans become
    ``"true"``/``"false"``; numbers use ``str()``.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return ""


@dataclass(frozen=True)
class FieldBox:
    """Position and size in document-relative units, origin top-left of the page."""
    x: float
    y: float
    width: float
    height: float


@dataclass
class Field:
    id: str
    document_id: str
    field_type: FieldType
    page_number: int
    position: FieldBox
    required: bool = False
    label: str = ""
    placeholder: str = ""
    options: Tuple[str, ...] = ()
    validation_rule: str = ""
    assigned_to: Optional[str] = None
    value: str = ""
    conditional_logic: str = ""
    created_at: datetime = field(default_factory=utc_now)
    modified_at: datetime = field(default_factory=utc_now)
    rules: Tuple[RuleDirective, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.page_number < 1:
            raise ValueError(f"page_number must be >= 1, got {self.page_number}")
        self.options = tuple(str(o) for o in (self.options or ()))

    def __setattr__(self, name: str, value: Any) -> None:
        if name == "field_type":
            if "field_type" in self.__dict__:
                raise FieldTypeImmutableError(f"Field {self.id}: type cannot change after creation")
            value = FieldType.parse(value)
        elif name == "value":
            value = coerce_value(value)
        elif name == "validation_rule":
            value = value or ""
            object.__setattr__(self, "rules", parse_validation_rule(value))
        elif name == "rules":
            raise AttributeError("rules are derived from validation_rule")
        object.__setattr__(self, name, value)

    @property
    def is_empty(self) -> bool:
        return not self.value.strip()


@dataclass
class Signer:
    id: str
    document_id: str
    name: str
    email: str
    user_id: Optional[str] = None
    order: int = 0
    status: SignerStatus = SignerStatus.PENDING
    viewed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    declined_at: Optional[datetime] = None
    decline_reason: Optional[str] = None


@dataclass
class Document:
    id: str
    title: str
    author_id: str
    description: str = ""
    document_type: DocumentType = DocumentType.UNSIGNED
    lifecycle_state: LifecycleState = LifecycleState.DRAFT
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
    prepared_at: Optional[datetime] = None
    signed_at: Optional[datetime] = None
    declined_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    due_date: Optional[datetime] = None
    page_count: Optional[int] = None

    @property
    def status(self) -> DocumentStatus:
        return self.lifecycle_state.document_status

    @property
    def is_terminal(self) -> bool:
        return self.lifecycle_state.is_terminal
