"""
Validation engine.

Pure functions that check field values against their field definitions.
Validation errors are values, never exceptions: ``validate`` returns a list
of :class:`ValidationError` in a stable order (field order of the input,
then a fixed check order per field).

Per field:

1. hidden by conditional logic -> skipped
2. required and blank -> ``required`` error, no further checks
3. optional and blank -> skipped
4. type-specific check
5. rule directives from ``validation_rule`` (minLength, maxLength, regex, range)
"""

from __future__ import annotations

import logging
import math
import re
from datetime import date
from typing import Dict, Iterable, List, Mapping, Optional

from core.helpers.date_time_helper import parse_calendar_date, utc_now
from documents.dto.validation_error import Severity, ValidationError
from documents.enum.field_type import FieldType
from documents.logic.conditional_logic import is_field_visible
from documents.models.document_models import EMPTY_SIGNATURE, Field, coerce_value
from documents.models.validation_rules import (
    InvalidDirective,
    MaxLength,
    MinLength,
    Range,
    Regex,
)

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
PHONE_RE = re.compile(r"^[\d\s\-+().]{10,}$")
PHONE_MIN_DIGITS = 10
NUMBER_RE = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?$")
URL_RE = re.compile(r"^https?://\S+$", re.IGNORECASE)
IMAGE_DATA_RE = re.compile(r"^data:image/[a-z0-9.+-]+(;[a-z0-9=.+-]+)*,.+", re.IGNORECASE | re.DOTALL)

CHECKBOX_VALUES = frozenset({"true", "false", "checked", "unchecked"})
PAYMENT_DONE = "completed"
FORMULA_ERROR = "error"


def _name(field: Field) -> str:
    return field.label or field.placeholder or field.id


def _error(field: Field, message: str, code: str) -> ValidationError:
    return ValidationError(field_id=field.id, message=message, severity=Severity.ERROR, code=code)


def _warning(field: Field, message: str, code: str) -> ValidationError:
    return ValidationError(field_id=field.id, message=message, severity=Severity.WARNING, code=code)


def is_image_data(value: str) -> bool:
    return bool(IMAGE_DATA_RE.match(value))


def parse_number(value: str) -> Optional[float]:
    text = value.strip()
    if not NUMBER_RE.match(text):
        return None
    number = float(text)
    return number if math.isfinite(number) else None


# --------------------------------------------------------------------------- #
#  Type checks
# --------------------------------------------------------------------------- #
def _check_type(field: Field, value: str) -> List[ValidationError]:
    ftype = field.field_type
    name = _name(field)

    if ftype is FieldType.EMAIL:
        if not EMAIL_RE.match(value.strip()):
            return [_error(field, f'"{name}" must be a valid email address', "format")]
    elif ftype is FieldType.PHONE:
        if not PHONE_RE.match(value.strip()) or sum(ch.isdigit() for ch in value) < PHONE_MIN_DIGITS:
            return [_error(field, f'"{name}" must be a valid phone number', "format")]
    elif ftype is FieldType.DATE:
        if parse_calendar_date(value) is None:
            return [_error(field, f'"{name}" must be a valid date', "format")]
    elif ftype is FieldType.NUMBER:
        if parse_number(value) is None:
            return [_error(field, f'"{name}" must be a valid number', "format")]
    elif ftype is FieldType.IMAGE:
        if not (is_image_data(value) or URL_RE.match(value.strip())):
            return [_error(field, f'"{name}" must be an uploaded image or image URL', "format")]
    elif ftype is FieldType.PAYMENT:
        if value.strip() != PAYMENT_DONE:
            return [_error(field, f'Payment for "{name}" has not been completed', "payment")]
    elif ftype is FieldType.FORMULA:
        if value.strip() == FORMULA_ERROR:
            return [_warning(field, f'Formula "{name}" could not be calculated', "formula")]
    elif ftype.is_signature_like:
        if value == EMPTY_SIGNATURE or not is_image_data(value):
            kind = "Signature" if ftype is FieldType.SIGNATURE else "Initials"
            return [_error(field, f'{kind} for "{name}" must be drawn or typed', "signature")]
    elif ftype is FieldType.CHECKBOX:
        if value.strip().lower() not in CHECKBOX_VALUES:
            return [_error(field, f'"{name}" has an invalid checkbox value', "format")]
    elif ftype.is_choice:
        if field.options and value not in field.options:
            return [_error(field, f'"{name}" must be one of the offered options', "option")]
    return []


# --------------------------------------------------------------------------- #
#  Rule directives
# --------------------------------------------------------------------------- #
def _range_bound_date(bound: Optional[str], today: date) -> Optional[date]:
    if bound is None:
        return None
    if bound.lower() == "today":
        return today
    return parse_calendar_date(bound)


def _check_range(field: Field, value: str, rule: Range, today: date) -> List[ValidationError]:
    name = _name(field)
    if field.field_type is FieldType.NUMBER:
        number = parse_number(value)
        if number is None:
            return []  # already reported by the type check
        lo = parse_number(rule.minimum) if rule.minimum is not None else None
        hi = parse_number(rule.maximum) if rule.maximum is not None else None
        if (lo is not None and number < lo) or (hi is not None and number > hi):
            return [_error(field, f'"{name}" must be between {rule.minimum or "-inf"} '
                                  f'and {rule.maximum or "inf"}', "range")]
        return []
    if field.field_type is FieldType.DATE:
        day = parse_calendar_date(value)
        if day is None:
            return []
        lo_d = _range_bound_date(rule.minimum, today)
        hi_d = _range_bound_date(rule.maximum, today)
        out: List[ValidationError] = []
        if lo_d is not None and day < lo_d:
            out.append(_error(field, f'"{name}" must be on or after {lo_d.isoformat()}', "range"))
        if hi_d is not None and day > hi_d:
            out.append(_error(field, f'"{name}" must be on or before {hi_d.isoformat()}', "range"))
        return out
    logger.debug("range directive ignored for %s field %s", field.field_type.value, field.id)
    return []


def _check_directives(field: Field, value: str, today: date) -> List[ValidationError]:
    out: List[ValidationError] = []
    name = _name(field)
    for rule in field.rules:
        if isinstance(rule, MinLength):
            if len(value) < rule.value:
                out.append(_error(field, f'"{name}" must be at least {rule.value} characters', "length"))
        elif isinstance(rule, MaxLength):
            if len(value) > rule.value:
                out.append(_error(field, f'"{name}" cannot exceed {rule.value} characters', "length"))
        elif isinstance(rule, Regex):
            if rule.compiled.search(value) is None:
                out.append(_error(field, f'"{name}" does not match the required format', "pattern"))
        elif isinstance(rule, Range):
            out.extend(_check_range(field, value, rule, today))
        elif isinstance(rule, InvalidDirective):
            out.append(_warning(field, f'Validation rule "{rule.raw}" ignored: {rule.reason}', "rule"))
    return out


# --------------------------------------------------------------------------- #
#  Public API
# --------------------------------------------------------------------------- #
def resolve_values(fields: Iterable[Field], values: Optional[Mapping[str, object]] = None) -> Dict[str, str]:
    """Merge a value map over the fields' stored values; everything becomes a string."""
    supplied = values or {}
    return {f.id: coerce_value(supplied[f.id]) if f.id in supplied else f.value for f in fields}


def validate_field(field: Field, value: object, *, today: Optional[date] = None) -> List[ValidationError]:
    text = coerce_value(value)
    if not text.strip():
        if field.required:
            return [_error(field, f'Required field "{_name(field)}" must be completed', "required")]
        return []
    day = today or utc_now().date()
    return _check_type(field, text) + _check_directives(field, text, day)


def validate(
    fields: Iterable[Field],
    values: Optional[Mapping[str, object]] = None,
    *,
    today: Optional[date] = None,
) -> List[ValidationError]:
    """
    Validate *values* (keyed by field id) against *fields*.

    Fields missing from *values* are validated with their stored value.
    Same input, same output, same order.
    """
    field_list = list(fields)
    resolved = resolve_values(field_list, values)
    day = today or utc_now().date()
    errors: List[ValidationError] = []
    for field in field_list:
        if not is_field_visible(field, resolved):
            continue
        errors.extend(validate_field(field, resolved[field.id], today=day))
    return errors


def has_blocking_errors(errors: Iterable[ValidationError]) -> bool:
    return any(e.is_blocking for e in errors)


def errors_by_field(errors: Iterable[ValidationError]) -> Dict[str, List[ValidationError]]:
    grouped: Dict[str, List[ValidationError]] = {}
    for e in errors:
        grouped.setdefault(e.field_id, []).append(e)
    return grouped
