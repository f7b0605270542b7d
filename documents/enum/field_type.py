"""documents/enum/field_type.py
===========================

Closed set of placeable field types.
"""
from __future__ import annotations

from enum import Enum


class FieldType(str, Enum):
    TEXT = "text"
    TEXTAREA = "textarea"
    EMAIL = "email"
    PHONE = "phone"
    NUMBER = "number"
    DATE = "date"
    CHECKBOX = "checkbox"
    RADIO = "radio"
    DROPDOWN = "dropdown"
    SIGNATURE = "signature"
    INITIAL = "initial"
    NAME = "name"
    IMAGE = "image"
    FORMULA = "formula"
    PAYMENT = "payment"

    @classmethod
    def parse(cls, value: "FieldType | str") -> "FieldType":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValueError(f"Unknown field type: {value!r}") from None

    @property
    def is_signature_like(self) -> bool:
        return self in (FieldType.SIGNATURE, FieldType.INITIAL)

    @property
    def is_choice(self) -> bool:
        return self in (FieldType.RADIO, FieldType.DROPDOWN)
