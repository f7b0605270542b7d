# signature/models/signature_enums.py
from __future__ import annotations
from enum import Enum


class CaptureMode(str, Enum):
    """How a signature was captured."""
    DRAWN = "draw"
    TYPED = "type"


class SignatureFont(str, Enum):
    """Decorative fonts offered for typed signatures (looked up as <fonts_dir>/<file>)."""
    DANCING_SCRIPT = "Dancing Script"
    PACIFICO = "Pacifico"
    SATISFY = "Satisfy"
    ALEX_BRUSH = "Alex Brush"
    GREAT_VIBES = "Great Vibes"
    SACRAMENTO = "Sacramento"

    @property
    def file_name(self) -> str:
        return self.value.replace(" ", "") + "-Regular.ttf"
