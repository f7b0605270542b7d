from __future__ import annotations
from dataclasses import dataclass

from documents.models.document_models import FieldBox


@dataclass(frozen=True)
class SignaturePlacement:
    """
    Absolute placement on a PDF page (points; 1 pt = 1/72 inch), origin bottom-left.
    """
    page_index: int
    x: float
    y: float
    width: float
    height: float

    @classmethod
    def from_field_box(cls, page_number: int, box: FieldBox, page_height: float) -> "SignaturePlacement":
        """Field boxes are top-left based; PDF space is bottom-left based."""
        return cls(
            page_index=page_number - 1,
            x=box.x,
            y=page_height - box.y - box.height,
            width=box.width,
            height=box.height,
        )
