"""
Conditional field visibility.

A field's ``conditional_logic`` is a JSON object::

    {"condition": {"type": "equals", "fieldId": "f1", "value": "yes"},
     "action": {"type": "show"}, "targetFieldId": "f2", "isVisible": null}

``condition`` may be compound: ``{"operator": "and"|"or", "conditions": [...]}``.
An explicit ``isVisible`` true/false overrides the condition. Fields without
(or with unparsable) logic are always visible.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Mapping, Optional

from documents.models.document_models import Field

logger = logging.getLogger(__name__)

_CHECKED = {"true", "checked"}


def parse_conditional_logic(text: Optional[str]) -> Optional[dict]:
    if not text:
        return None
    try:
        logic = json.loads(text)
    except ValueError:
        logger.warning("Unparsable conditional logic: %r", text)
        return None
    if not isinstance(logic, dict) or not isinstance(logic.get("condition"), dict):
        return None
    return logic


def _as_number(text: str) -> Optional[float]:
    try:
        return float(text)
    except (TypeError, ValueError):
        return None


def _compare(a: str, b: str, op) -> bool:
    x, y = _as_number(a), _as_number(b)
    return x is not None and y is not None and op(x, y)


def evaluate_condition(condition: Mapping[str, Any], values: Mapping[str, str]) -> bool:
    """Evaluate a simple or compound condition against field values by id."""
    operator = condition.get("operator")
    if operator in ("and", "or"):
        parts = [evaluate_condition(c, values) for c in condition.get("conditions") or []]
        return all(parts) if operator == "and" else any(parts)

    field_id = condition.get("fieldId")
    if not field_id:
        return True

    kind = condition.get("type")
    value = values.get(field_id) or ""
    expected = str(condition.get("value") or "")

    if kind == "isEmpty":
        return not value.strip()
    if kind == "isNotEmpty":
        return bool(value.strip())
    if kind == "isNotChecked":
        return value not in _CHECKED
    if not value:
        return False

    if kind == "equals":
        return value == expected
    if kind == "notEquals":
        return value != expected
    if kind == "contains":
        return expected in value
    if kind == "notContains":
        return expected not in value
    if kind == "startsWith":
        return value.startswith(expected)
    if kind == "endsWith":
        return value.endswith(expected)
    if kind == "greaterThan":
        return _compare(value, expected, lambda a, b: a > b)
    if kind == "lessThan":
        return _compare(value, expected, lambda a, b: a < b)
    if kind == "greaterThanOrEqual":
        return _compare(value, expected, lambda a, b: a >= b)
    if kind == "lessThanOrEqual":
        return _compare(value, expected, lambda a, b: a <= b)
    if kind == "isChecked":
        return value in _CHECKED
    if kind == "matchesRegex":
        try:
            return re.search(expected, value) is not None
        except re.error:
            return False
    logger.debug("Unknown condition type %r", kind)
    return False


def is_field_visible(field: Field, values: Mapping[str, str]) -> bool:
    logic = parse_conditional_logic(field.conditional_logic)
    if logic is None:
        return True
    forced = logic.get("isVisible")
    if forced is True or forced is False:
        return forced
    return evaluate_condition(logic.get("condition") or {}, values)
