# signature/models/signature_config.py
from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from core.config.config_service import ConfigService


@dataclass
class SignatureConfig:
    """
    Rendering options of the signature normalizer.
    Built from the ``[Signature]`` config section via :meth:`from_config`.
    """
    canvas_width: int = 600
    canvas_height: int = 200
    stroke_width: int = 3
    stroke_color: str = "#000000"
    history_limit: int = 50
    fonts_dir: Optional[Path] = None
    date_format: str = "%Y-%m-%d"

    # typed mode
    font_size: int = 48
    date_font_size: int = 12
    date_offset: int = 60     # px below the centre line

    @classmethod
    def from_config(cls, config: ConfigService) -> "SignatureConfig":
        s = config.signature
        return cls(
            canvas_width=s.canvas_width,
            canvas_height=s.canvas_height,
            stroke_width=s.stroke_width,
            stroke_color=s.stroke_color,
            history_limit=s.history_limit,
            fonts_dir=s.fonts_dir,
            date_format=s.date_format,
        )

    @property
    def size(self) -> tuple[int, int]:
        return (self.canvas_width, self.canvas_height)
