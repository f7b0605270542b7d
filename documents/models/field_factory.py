"""
Pure constructor for placeable fields with type-appropriate defaults.

No business logic beyond structural shape: default width/height and
placeholder per field type.
"""

from __future__ import annotations

import uuid
from typing import Dict, Iterable, Optional, Tuple

from core.helpers.date_time_helper import Clock, utc_now
from documents.enum.field_type import FieldType
from documents.models.document_models import Field, FieldBox

# width, height in document units (PDF points at 100% zoom)
_DEFAULT_SIZE: Dict[FieldType, Tuple[float, float]] = {
    FieldType.SIGNATURE: (200.0, 80.0),
    FieldType.INITIAL: (100.0, 60.0),
    FieldType.CHECKBOX: (24.0, 24.0),
    FieldType.RADIO: (24.0, 24.0),
    FieldType.DATE: (120.0, 30.0),
    FieldType.TEXTAREA: (200.0, 80.0),
    FieldType.IMAGE: (150.0, 100.0),
}
_FALLBACK_SIZE = (150.0, 30.0)

_DEFAULT_PLACEHOLDER: Dict[FieldType, str] = {
    FieldType.TEXT: "Enter text here",
    FieldType.TEXTAREA: "Enter text here",
    FieldType.NAME: "Enter your full name",
    FieldType.EMAIL: "Enter your email address",
    FieldType.PHONE: "Enter your phone number",
    FieldType.NUMBER: "Enter a number",
    FieldType.DATE: "YYYY-MM-DD",
    FieldType.DROPDOWN: "Select an option",
    FieldType.SIGNATURE: "Sign here",
    FieldType.INITIAL: "Initial here",
    FieldType.IMAGE: "Upload image",
    FieldType.PAYMENT: "Payment",
}

_DEFAULT_LABEL: Dict[FieldType, str] = {
    FieldType.SIGNATURE: "Signature",
    FieldType.INITIAL: "Initials",
    FieldType.NAME: "Full Name",
    FieldType.EMAIL: "Email Address",
    FieldType.PHONE: "Phone Number",
    FieldType.DATE: "Date",
    FieldType.CHECKBOX: "Checkbox",
    FieldType.RADIO: "Radio Group",
    FieldType.DROPDOWN: "Dropdown",
}


def default_size(field_type: FieldType | str) -> Tuple[float, float]:
    return _DEFAULT_SIZE.get(FieldType.parse(field_type), _FALLBACK_SIZE)


def default_placeholder(field_type: FieldType | str) -> str:
    return _DEFAULT_PLACEHOLDER.get(FieldType.parse(field_type), "")


def create_field(
    field_type: FieldType | str,
    page_number: int,
    *,
    document_id: str,
    x: float = 0.0,
    y: float = 0.0,
    width: Optional[float] = None,
    height: Optional[float] = None,
    field_id: Optional[str] = None,
    required: bool = False,
    label: Optional[str] = None,
    placeholder: Optional[str] = None,
    options: Iterable[str] = (),
    validation_rule: str = "",
    assigned_to: Optional[str] = None,
    conditional_logic: str = "",
    clock: Clock = utc_now,
) -> Field:
    """Build a new, empty field of *field_type* on *page_number* (1-based)."""
    ftype = FieldType.parse(field_type)
    dw, dh = default_size(ftype)
    now = clock()
    return Field(
        id=field_id or uuid.uuid4().hex,
        document_id=document_id,
        field_type=ftype,
        page_number=page_number,
        position=FieldBox(x=float(x), y=float(y),
                          width=float(width if width is not None else dw),
                          height=float(height if height is not None else dh)),
        required=required,
        label=label if label is not None else _DEFAULT_LABEL.get(ftype, "Field"),
        placeholder=placeholder if placeholder is not None else default_placeholder(ftype),
        options=tuple(options),
        validation_rule=validation_rule,
        assigned_to=assigned_to,
        conditional_logic=conditional_logic,
        created_at=now,
        modified_at=now,
    )
