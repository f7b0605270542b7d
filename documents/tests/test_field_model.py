from __future__ import annotations

import pytest

from documents.enum.field_type import FieldType
from documents.exceptions.errors import FieldTypeImmutableError
from documents.models.document_models import coerce_value
from documents.models.field_factory import create_field, default_size
from documents.models.validation_rules import (
    InvalidDirective,
    MaxLength,
    MinLength,
    Range,
    Regex,
    parse_validation_rule,
)


def test_signature_defaults_larger_than_text() -> None:
    sw, sh = default_size("signature")
    tw, th = default_size("text")
    assert sw * sh > tw * th
    assert default_size(FieldType.CHECKBOX) == default_size(FieldType.RADIO)
    cw, ch = default_size("checkbox")
    assert cw == ch


def test_create_field_defaults() -> None:
    f = create_field("email", 2, document_id="d1")
    assert f.field_type is FieldType.EMAIL
    assert f.page_number == 2
    assert f.value == ""
    assert f.placeholder
    assert (f.position.width, f.position.height) == default_size("email")
    assert f.id


def test_create_field_rejects_unknown_type_and_page_zero() -> None:
    with pytest.raises(ValueError):
        create_field("hologram", 1, document_id="d1")
    with pytest.raises(ValueError):
        create_field("text", 0, document_id="d1")


def test_field_type_is_immutable() -> None:
    f = create_field("text", 1, document_id="d1")
    with pytest.raises(FieldTypeImmutableError):
        f.field_type = FieldType.NUMBER
    assert f.field_type is FieldType.TEXT


def test_value_is_never_none() -> None:
    f = create_field("checkbox", 1, document_id="d1")
    f.value = None
    assert f.value == ""
    f.value = True
    assert f.value == "true"
    f.value = 12
    assert f.value == "12"
    f.value = {"unexpected": "shape"}
    assert f.value == ""


@pytest.mark.parametrize("raw, expected", [
    (None, ""), ("x", "x"), (False, "false"), (1.5, "1.5"), (b"bytes", ""), ([1], ""),
])
def test_coerce_value(raw, expected) -> None:
    assert coerce_value(raw) == expected


def test_rules_parsed_once_on_assignment() -> None:
    f = create_field("text", 1, document_id="d1", validation_rule="minLength:2; maxLength:5")
    assert f.rules == (MinLength(2), MaxLength(5))
    f.validation_rule = "maxLength:9"
    assert f.rules == (MaxLength(9),)
    with pytest.raises(AttributeError):
        f.rules = ()


def test_parse_regex_consumes_rest() -> None:
    rules = parse_validation_rule("maxLength:12; regex:^[A-Z];[0-9]+$")
    assert isinstance(rules[0], MaxLength)
    assert isinstance(rules[1], Regex)
    assert rules[1].pattern == "^[A-Z];[0-9]+$"
    assert len(rules) == 2


def test_parse_regex_slash_notation() -> None:
    (rule,) = parse_validation_rule("regex:/^abc$/i")
    assert isinstance(rule, Regex)
    assert rule.compiled.match("ABC")


def test_parse_range_and_invalid_directives() -> None:
    rules = parse_validation_rule("range:1,none; minLength:x; color:red; regex:([")
    assert rules[0] == Range("1", None)
    assert isinstance(rules[1], InvalidDirective)
    assert isinstance(rules[2], InvalidDirective)
    assert isinstance(rules[3], InvalidDirective)


def test_empty_rule() -> None:
    assert parse_validation_rule("") == ()
    assert parse_validation_rule(None) == ()
