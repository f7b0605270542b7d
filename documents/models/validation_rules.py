"""
Validation rule directives.

A field's free-text ``validation_rule`` is parsed once, when the field is
loaded, into a tuple of tagged directives. Directives are separated by ``;``.
``regex:`` consumes the rest of the string so patterns may contain ``;``.

    minLength:3; maxLength:40
    range:1,100
    range:today,none
    maxLength:12; regex:^[A-Z]{2}\\d+$
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Optional, Pattern, Tuple, Union

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MinLength:
    value: int
    kind: str = "minLength"


@dataclass(frozen=True)
class MaxLength:
    value: int
    kind: str = "maxLength"


@dataclass(frozen=True)
class Regex:
    pattern: str
    compiled: Pattern[str]
    kind: str = "regex"


@dataclass(frozen=True)
class Range:
    """Bounds kept as text: numbers for number fields, ISO dates/'today' for dates."""
    minimum: Optional[str]
    maximum: Optional[str]
    kind: str = "range"


@dataclass(frozen=True)
class InvalidDirective:
    """A directive that could not be parsed; reported as a warning on validation."""
    raw: str
    reason: str
    kind: str = "invalid"


RuleDirective = Union[MinLength, MaxLength, Regex, Range, InvalidDirective]

_REGEX_PREFIX = "regex:"


def _parse_length(directive_cls, raw: str, arg: str) -> RuleDirective:
    try:
        n = int(arg.strip())
    except ValueError:
        return InvalidDirective(raw=raw, reason=f"'{arg.strip()}' is not an integer")
    if n < 0:
        return InvalidDirective(raw=raw, reason="length must not be negative")
    return directive_cls(value=n)


def _parse_regex(raw: str, pattern: str) -> RuleDirective:
    # accept the /pattern/flags notation as well as a bare pattern
    flags = 0
    body = pattern
    m = re.fullmatch(r"/(.+)/([imsx]*)", pattern)
    if m:
        body = m.group(1)
        for ch in m.group(2):
            flags |= {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL, "x": re.VERBOSE}[ch]
    try:
        return Regex(pattern=body, compiled=re.compile(body, flags))
    except re.error as ex:
        return InvalidDirective(raw=raw, reason=f"invalid pattern: {ex}")


def _parse_range(raw: str, arg: str) -> RuleDirective:
    parts = [p.strip() for p in arg.split(",")]
    if len(parts) != 2:
        return InvalidDirective(raw=raw, reason="range needs '<min>,<max>'")
    lo, hi = (None if p.lower() in ("", "none") else p for p in parts)
    return Range(minimum=lo, maximum=hi)


def parse_validation_rule(text: Optional[str]) -> Tuple[RuleDirective, ...]:
    """Parse a ``validation_rule`` string into directives (order preserved)."""
    source = (text or "").strip()
    if not source:
        return ()

    directives: list[RuleDirective] = []
    rest = source
    while rest:
        rest = rest.lstrip(" ;")
        if not rest:
            break
        if rest.startswith(_REGEX_PREFIX):
            directives.append(_parse_regex(rest, rest[len(_REGEX_PREFIX):].strip()))
            break
        chunk, _, rest = rest.partition(";")
        chunk = chunk.strip()
        name, sep, arg = chunk.partition(":")
        key = name.strip()
        if not sep:
            directives.append(InvalidDirective(raw=chunk, reason="missing ':'"))
        elif key == "minLength":
            directives.append(_parse_length(MinLength, chunk, arg))
        elif key == "maxLength":
            directives.append(_parse_length(MaxLength, chunk, arg))
        elif key == "range":
            directives.append(_parse_range(chunk, arg))
        else:
            logger.debug("Ignoring unknown validation directive %r", chunk)
            directives.append(InvalidDirective(raw=chunk, reason=f"unknown directive '{key}'"))

    return tuple(directives)
