from __future__ import annotations
import logging
from collections import defaultdict
from io import BytesIO
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from pypdf import PdfReader, PdfWriter
from pypdf.errors import PdfReadError
from PIL import Image, UnidentifiedImageError
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from documents.enum.field_type import FieldType
from documents.logic.conditional_logic import is_field_visible
from documents.logic.validation_engine import is_image_data, resolve_values
from documents.models.document_models import EMPTY_SIGNATURE, Field
from ..exceptions.errors import SignatureRenderError
from ..models.signature_placement import SignaturePlacement
from .signature_normalizer import decode_data_uri

logger = logging.getLogger(__name__)

_CHECKED = {"true", "checked"}


def read_page_geometry(pdf_bytes: bytes) -> Dict[int, Tuple[float, float]]:
    """Page sizes in points keyed by 1-based page number."""
    try:
        reader = PdfReader(BytesIO(pdf_bytes))
        return {
            i: (float(page.mediabox.width), float(page.mediabox.height))
            for i, page in enumerate(reader.pages, start=1)
        }
    except (PdfReadError, ValueError) as ex:
        raise SignatureRenderError(f"Unreadable PDF: {ex}") from ex


class PdfFieldStamper:
    """
    Merges completed field values onto the original PDF:
      • images for signature/initial/image data URIs (aspect kept, centred)
      • a check mark for checked checkboxes
      • text (ellipsised to the box) for everything else
    Hidden and empty fields are skipped.
    """

    def __init__(self, *, font_name: str = "Helvetica", font_size: float = 10.0,
                 color_rgb: Tuple[int, int, int] = (0, 0, 0)) -> None:
        self.font_name = font_name
        self.font_size = font_size
        self.color_rgb = color_rgb

    def stamp(self, pdf_bytes: bytes, fields: Iterable[Field],
              values: Optional[Mapping[str, object]] = None) -> bytes:
        field_list = list(fields)
        resolved = resolve_values(field_list, values)
        try:
            reader = PdfReader(BytesIO(pdf_bytes))
        except (PdfReadError, ValueError) as ex:
            raise SignatureRenderError(f"Unreadable PDF: {ex}") from ex

        per_page: Dict[int, List[Field]] = defaultdict(list)
        for f in field_list:
            value = resolved.get(f.id, "")
            if not value.strip() or value == EMPTY_SIGNATURE or not is_field_visible(f, resolved):
                continue
            if f.page_number > len(reader.pages):
                logger.warning("field %s is on page %d of a %d page PDF, skipped",
                               f.id, f.page_number, len(reader.pages))
                continue
            per_page[f.page_number].append(f)

        writer = PdfWriter()
        for i, page in enumerate(reader.pages, start=1):
            if per_page.get(i):
                box = page.mediabox
                w, h = float(box.width), float(box.height)
                overlay_pdf = self._make_overlay(w, h, per_page[i], resolved)
                overlay_reader = PdfReader(BytesIO(overlay_pdf))
                page.merge_page(overlay_reader.pages[0])
            writer.add_page(page)

        out = BytesIO()
        writer.write(out)
        return out.getvalue()

    # -------- Overlay -------------------------------------------------------
    def _make_overlay(self, page_w: float, page_h: float, fields: List[Field],
                      values: Mapping[str, str]) -> bytes:
        """Overlay page of the same size as the target page."""
        buf = BytesIO()
        c = canvas.Canvas(buf, pagesize=(page_w, page_h))
        r, g, b = self.color_rgb
        c.setFillColorRGB(r / 255.0, g / 255.0, b / 255.0)
        c.setStrokeColorRGB(r / 255.0, g / 255.0, b / 255.0)
        for f in fields:
            rect = SignaturePlacement.from_field_box(f.page_number, f.position, page_h)
            value = values[f.id]
            if f.field_type.is_signature_like or f.field_type is FieldType.IMAGE:
                if is_image_data(value):
                    self._draw_image(c, value, rect)
                else:
                    logger.debug("field %s: external image %s not embedded", f.id, value[:40])
            elif f.field_type is FieldType.CHECKBOX:
                if value.strip().lower() in _CHECKED:
                    self._draw_check(c, rect)
            else:
                self._draw_text(c, value, rect)
        c.save()
        return buf.getvalue()

    @staticmethod
    def _draw_image(c: canvas.Canvas, data_uri: str, rect: SignaturePlacement) -> None:
        try:
            img = Image.open(BytesIO(decode_data_uri(data_uri))).convert("RGBA")
        except (UnidentifiedImageError, OSError) as ex:
            raise SignatureRenderError(f"Undecodable image: {ex}") from ex
        if img.width == 0 or img.height == 0:
            return
        scale = min(rect.width / img.width, rect.height / img.height)
        w, h = img.width * scale, img.height * scale
        x = rect.x + (rect.width - w) / 2
        y = rect.y + (rect.height - h) / 2
        c.drawImage(ImageReader(img), x, y, width=w, height=h, mask="auto")

    @staticmethod
    def _draw_check(c: canvas.Canvas, rect: SignaturePlacement) -> None:
        c.setLineWidth(max(1.0, min(rect.width, rect.height) / 8))
        path = c.beginPath()
        path.moveTo(rect.x + rect.width * 0.2, rect.y + rect.height * 0.5)
        path.lineTo(rect.x + rect.width * 0.42, rect.y + rect.height * 0.25)
        path.lineTo(rect.x + rect.width * 0.8, rect.y + rect.height * 0.8)
        c.drawPath(path, stroke=1, fill=0)

    def _draw_text(self, c: canvas.Canvas, text: str, rect: SignaturePlacement) -> None:
        size = min(self.font_size, max(4.0, rect.height * 0.7))
        line = " ".join(text.split())
        line = self._ellipsize(line, rect.width - 4, size)
        c.setFont(self.font_name, size)
        c.drawString(rect.x + 2, rect.y + (rect.height - size) / 2 + size * 0.2, line)

    def _ellipsize(self, text: str, max_width: float, size: float) -> str:
        if stringWidth(text, self.font_name, size) <= max_width:
            return text
        while text and stringWidth(text + "...", self.font_name, size) > max_width:
            text = text[:-1]
        return text + "..." if text else ""
