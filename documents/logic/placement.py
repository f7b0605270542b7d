"""Field placement check against the page geometry of the rendered document."""

from __future__ import annotations

from typing import Iterable, List, Mapping, Optional, Tuple

from documents.dto.validation_error import ValidationError
from documents.models.document_models import Field

PageSize = Tuple[float, float]


def check_placement(
    fields: Iterable[Field],
    page_sizes: Mapping[int, PageSize],
    *,
    page_count: Optional[int] = None,
) -> List[ValidationError]:
    """
    Verify every field sits on an existing page and inside its bounds.

    *page_sizes* maps 1-based page numbers to ``(width, height)`` in the same
    units as the field positions. *page_count* defaults to the number of
    known pages.
    """
    pages = page_count if page_count is not None else len(page_sizes)
    errors: List[ValidationError] = []
    for f in fields:
        if f.page_number > pages:
            errors.append(ValidationError(
                field_id=f.id,
                message=f"Field is on page {f.page_number} but the document has {pages} page(s)",
                code="placement",
            ))
            continue
        size = page_sizes.get(f.page_number)
        if size is None:
            continue
        width, height = size
        box = f.position
        if box.width <= 0 or box.height <= 0:
            errors.append(ValidationError(field_id=f.id, message="Field has no area", code="placement"))
        elif box.x < 0 or box.y < 0 or box.x + box.width > width or box.y + box.height > height:
            errors.append(ValidationError(
                field_id=f.id,
                message=f"Field exceeds the bounds of page {f.page_number} ({width:g} x {height:g})",
                code="placement",
            ))
    return errors
