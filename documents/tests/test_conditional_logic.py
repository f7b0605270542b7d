from __future__ import annotations

import json

import pytest

from documents.logic.conditional_logic import evaluate_condition, is_field_visible, parse_conditional_logic
from documents.tests.builders import make_field


@pytest.mark.parametrize("kind, value, expected, visible", [
    ("equals", "yes", "yes", True),
    ("notEquals", "no", "yes", True),
    ("contains", "hello world", "world", True),
    ("notContains", "hello", "world", True),
    ("startsWith", "ACME Corp", "ACME", True),
    ("endsWith", "file.pdf", ".pdf", True),
    ("greaterThan", "10", "5", True),
    ("lessThan", "10", "5", False),
    ("greaterThanOrEqual", "5", "5", True),
    ("lessThanOrEqual", "abc", "5", False),
    ("isEmpty", "", None, True),
    ("isNotEmpty", "x", None, True),
    ("isChecked", "checked", None, True),
    ("isNotChecked", "false", None, True),
    ("matchesRegex", "AB12", "^[A-Z]{2}\\d+$", True),
    ("matchesRegex", "AB12", "([", False),
])
def test_simple_conditions(kind, value, expected, visible) -> None:
    cond = {"type": kind, "fieldId": "src", "value": expected}
    assert evaluate_condition(cond, {"src": value}) is visible


def test_compound_conditions() -> None:
    cond = {
        "operator": "and",
        "conditions": [
            {"type": "equals", "fieldId": "a", "value": "1"},
            {"operator": "or", "conditions": [
                {"type": "isChecked", "fieldId": "b"},
                {"type": "isNotEmpty", "fieldId": "c"},
            ]},
        ],
    }
    assert evaluate_condition(cond, {"a": "1", "b": "false", "c": "x"})
    assert not evaluate_condition(cond, {"a": "1", "b": "false", "c": ""})
    assert not evaluate_condition(cond, {"a": "2", "b": "true", "c": "x"})


def test_is_visible_override_and_garbage() -> None:
    logic = {"condition": {"type": "equals", "fieldId": "a", "value": "1"}, "isVisible": True}
    f = make_field("text", "t", conditional_logic=json.dumps(logic))
    assert is_field_visible(f, {"a": "2"})
    broken = make_field("text", "u", conditional_logic="{not json")
    assert is_field_visible(broken, {})
    assert parse_conditional_logic("[]") is None
    assert parse_conditional_logic("") is None
