# signature/logic/signature_normalizer.py
"""
Signature normalizer.

Turns raw signature input into one canonical artifact: a PNG data URI.

- Drawn: strokes rendered onto a transparent canvas at the reference size.
- Typed: text rendered centred in a decorative font, with an optional date
  stamp beneath it.

A blank canvas or blank text gives ``EMPTY_SIGNATURE`` ("data:,"), never an
image and never None.
"""
from __future__ import annotations

import base64
import binascii
import io
import logging
import re
from datetime import date
from pathlib import Path
from typing import Callable, Optional, Sequence, Tuple

from PIL import Image, ImageDraw, ImageFont

from core.helpers.date_time_helper import utc_now
from documents.models.document_models import EMPTY_SIGNATURE
from ..exceptions.errors import SignatureRenderError
from ..models.capture import DrawnSignature, SignatureCapture, Stroke, TypedSignature
from ..models.signature_config import SignatureConfig
from ..models.signature_enums import SignatureFont

logger = logging.getLogger(__name__)

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)?(?P<b64>;base64)?,(?P<data>.*)$", re.DOTALL)


def hex_to_rgb(hexstr: str) -> Tuple[int, int, int]:
    """
    Convert hex color (#RRGGBB or #RGB) into an RGB tuple for PIL.
    """
    s = (hexstr or "#000000").strip()
    if not s.startswith("#"):
        s = "#" + s
    try:
        if len(s) == 4:
            return (int(s[1] * 2, 16), int(s[2] * 2, 16), int(s[3] * 2, 16))
        if len(s) == 7:
            return (int(s[1:3], 16), int(s[3:5], 16), int(s[5:7], 16))
    except ValueError:
        pass
    raise SignatureRenderError(f"Invalid colour: {hexstr!r}")


def png_data_uri(png: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png).decode("ascii")


def decode_data_uri(uri: str) -> bytes:
    """Payload bytes of a ``data:`` URI."""
    m = _DATA_URI_RE.match(uri or "")
    if not m or not m.group("data"):
        raise SignatureRenderError("Not a data URI with a payload")
    if m.group("b64"):
        try:
            return base64.b64decode(m.group("data"), validate=False)
        except (binascii.Error, ValueError) as ex:
            raise SignatureRenderError(f"Invalid base64 payload: {ex}") from ex
    return m.group("data").encode("utf-8")


def is_blank(img: Image.Image) -> bool:
    """True when no pixel of the canvas has any opacity."""
    return img.convert("RGBA").getchannel("A").getbbox() is None


class SignatureNormalizer:
    """Stateless renderer; one instance per configuration."""

    def __init__(self, config: Optional[SignatureConfig] = None, *,
                 today: Callable[[], date] = lambda: utc_now().date()) -> None:
        self.config = config or SignatureConfig()
        self._today = today

    # -------- Public API ----------------------------------------------------
    def normalize(self, capture: SignatureCapture) -> str:
        if isinstance(capture, DrawnSignature):
            return self._normalize_drawn(capture)
        if isinstance(capture, TypedSignature):
            return self._normalize_typed(capture)
        raise TypeError(f"Unsupported signature capture: {type(capture).__name__}")

    # -------- Canvas strokes -> PNG -----------------------------------------
    def render_strokes(self, strokes: Sequence[Stroke], *, size: Optional[Tuple[int, int]] = None,
                       color: Optional[str] = None, width: Optional[int] = None) -> Image.Image:
        """
        Convert freehand strokes into a transparent RGBA image.
        """
        w, h = size or self.config.size
        rgb = hex_to_rgb(color or self.config.stroke_color)
        stroke_width = max(1, int(width or self.config.stroke_width))
        img = Image.new("RGBA", (int(w), int(h)), (0, 0, 0, 0))
        drw = ImageDraw.Draw(img)
        for poly in strokes:
            if len(poly) >= 2:
                drw.line(list(poly), fill=rgb + (255,), width=stroke_width, joint="curve")
            elif len(poly) == 1:
                # a tap leaves a dot
                x, y = poly[0]
                r = stroke_width / 2
                drw.ellipse((x - r, y - r, x + r, y + r), fill=rgb + (255,))
        return img

    def _normalize_drawn(self, capture: DrawnSignature) -> str:
        if not any(capture.strokes):
            return EMPTY_SIGNATURE
        img = self.render_strokes(capture.strokes, size=capture.size, color=capture.color, width=capture.width)
        if is_blank(img):
            return EMPTY_SIGNATURE
        return png_data_uri(_png_bytes(img))

    # -------- Typed text -> PNG ---------------------------------------------
    def _normalize_typed(self, capture: TypedSignature) -> str:
        text = (capture.text or "").strip()
        if not text:
            return EMPTY_SIGNATURE
        w, h = self.config.size
        fill = hex_to_rgb(capture.color or self.config.stroke_color) + (255,)
        img = Image.new("RGBA", (w, h), (0, 0, 0, 0))
        drw = ImageDraw.Draw(img)

        font = self.load_font(capture.font, self.config.font_size)
        _draw_centered(drw, text, font, (w / 2, h / 2), fill)

        if capture.include_timestamp:
            stamp = (capture.date or self._today()).strftime(self.config.date_format)
            small = self.load_font(None, self.config.date_font_size)
            _draw_centered(drw, stamp, small, (w / 2, h / 2 + self.config.date_offset), fill)

        if is_blank(img):
            raise SignatureRenderError(f"Typed signature rendered blank (font {capture.font!r})")
        return png_data_uri(_png_bytes(img))

    def load_font(self, name: Optional[str], size: int):
        """Decorative font from ``fonts_dir``, then a system font of that name, then Pillow's default."""
        for candidate in self._font_candidates(name):
            try:
                return ImageFont.truetype(str(candidate), size)
            except OSError:
                continue
        if name:
            logger.debug("font %r not found, using default font", name)
        return ImageFont.load_default(size=size)

    def _font_candidates(self, name: Optional[str]):
        if not name:
            return []
        out = []
        fonts_dir = Path(self.config.fonts_dir) if self.config.fonts_dir else None
        try:
            known = SignatureFont(name)
        except ValueError:
            known = None
        if fonts_dir is not None:
            if known is not None:
                out.append(fonts_dir / known.file_name)
            out.append(fonts_dir / f"{name}.ttf")
        out.append(Path(name))
        return [p for p in out if p.suffix or p.exists()]


def _draw_centered(drw: ImageDraw.ImageDraw, text: str, font, centre: Tuple[float, float], fill) -> None:
    left, top, right, bottom = drw.textbbox((0, 0), text, font=font)
    cx, cy = centre
    drw.text((cx - (right - left) / 2 - left, cy - (bottom - top) / 2 - top), text, font=font, fill=fill)


def _png_bytes(img: Image.Image) -> bytes:
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def normalize_signature(capture: SignatureCapture, config: Optional[SignatureConfig] = None) -> str:
    """Module-level shortcut for ``SignatureNormalizer(config).normalize(capture)``."""
    return SignatureNormalizer(config).normalize(capture)
