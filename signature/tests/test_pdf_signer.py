from __future__ import annotations

from io import BytesIO

import pytest
from pypdf import PdfReader
from reportlab.pdfgen import canvas

from documents.models.document_models import EMPTY_SIGNATURE
from documents.models.field_factory import create_field
from signature.exceptions.errors import SignatureRenderError
from signature.logic.pdf_signer import PdfFieldStamper, read_page_geometry
from signature.models.signature_placement import SignaturePlacement

SIGNATURE_PNG = "data:image/png;base64,iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mNkYPhfDwAChwGA60e6kgAAAABJRU5ErkJggg=="


def _pdf(*sizes) -> bytes:
    buf = BytesIO()
    c = canvas.Canvas(buf)
    for size in sizes:
        c.setPageSize(size)
        c.drawString(40, 40, "page")
        c.showPage()
    c.save()
    return buf.getvalue()


def _field(ftype, fid, page=1, **kwargs):
    return create_field(ftype, page, document_id="doc-1", field_id=fid, x=50, y=50, **kwargs)


def test_page_geometry() -> None:
    geometry = read_page_geometry(_pdf((612, 792), (842, 595)))
    assert geometry == {1: (612.0, 792.0), 2: (842.0, 595.0)}


def test_unreadable_pdf() -> None:
    with pytest.raises(SignatureRenderError):
        read_page_geometry(b"not a pdf")


def test_placement_flips_y_axis() -> None:
    field = _field("text", "t", width=100, height=20)
    rect = SignaturePlacement.from_field_box(1, field.position, 792)
    assert (rect.page_index, rect.x, rect.y) == (0, 50, 792 - 50 - 20)


def test_stamp_writes_overlay_text_and_image() -> None:
    original = _pdf((612, 792), (612, 792))
    name = _field("text", "name")
    name.value = "Jane Doe"
    sig = _field("signature", "sig", page=2)
    sig.value = SIGNATURE_PNG
    agree = _field("checkbox", "agree")
    agree.value = "true"

    out = PdfFieldStamper().stamp(original, [name, sig, agree])
    reader = PdfReader(BytesIO(out))
    assert len(reader.pages) == 2
    assert "Jane Doe" in reader.pages[0].extract_text()
    assert "/XObject" in reader.pages[1]["/Resources"]


def test_long_text_is_ellipsized() -> None:
    text = PdfFieldStamper()._ellipsize("A very long company name indeed", 56, 10)
    assert text.endswith("...")
    assert len(text) < 31


def test_values_override_and_empty_fields_skipped() -> None:
    original = _pdf((612, 792))
    fields = [_field("text", "name"), _field("signature", "sig")]
    out = PdfFieldStamper().stamp(original, fields, {"name": "", "sig": EMPTY_SIGNATURE})
    page = PdfReader(BytesIO(out)).pages[0]
    assert "Jane" not in page.extract_text()

    out = PdfFieldStamper().stamp(original, fields, {"name": "Jane"})
    assert "Jane" in PdfReader(BytesIO(out)).pages[0].extract_text()


def test_hidden_field_is_not_stamped() -> None:
    original = _pdf((612, 792))
    toggle = _field("checkbox", "toggle", required=False)
    secret = _field("text", "secret",
                    conditional_logic='{"condition": {"type": "isChecked", "fieldId": "toggle"}}')
    out = PdfFieldStamper().stamp(original, [toggle, secret], {"toggle": "false", "secret": "Hidden"})
    assert "Hidden" not in PdfReader(BytesIO(out)).pages[0].extract_text()


def test_field_on_missing_page_is_skipped() -> None:
    original = _pdf((612, 792))
    field = _field("text", "p3", page=3)
    out = PdfFieldStamper().stamp(original, [field], {"p3": "x"})
    assert len(PdfReader(BytesIO(out)).pages) == 1
