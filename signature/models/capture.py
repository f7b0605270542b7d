# signature/models/capture.py
"""Raw signature input in the two capture modes."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Optional, Tuple, Union

from .signature_enums import CaptureMode

Point = Tuple[float, float]
Stroke = Tuple[Point, ...]


@dataclass(frozen=True)
class DrawnSignature:
    """Pointer strokes in canvas pixels (origin top-left)."""
    strokes: Tuple[Stroke, ...] = ()
    color: Optional[str] = None
    width: Optional[int] = None
    size: Optional[Tuple[int, int]] = None
    mode: CaptureMode = field(default=CaptureMode.DRAWN, init=False)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "strokes", tuple(tuple((float(x), float(y)) for x, y in s) for s in self.strokes)
        )


@dataclass(frozen=True)
class TypedSignature:
    text: str
    font: str = "Dancing Script"
    color: Optional[str] = None
    include_timestamp: bool = False
    date: Optional[date] = None     # defaults to today when the stamp is rendered
    mode: CaptureMode = field(default=CaptureMode.TYPED, init=False)


SignatureCapture = Union[DrawnSignature, TypedSignature]
