from __future__ import annotations

import io
import logging
from pathlib import Path

import pytest
from PIL import Image
from pypdf import PdfReader
from reportlab.lib.pagesizes import A4, LETTER
from reportlab.pdfgen.canvas import Canvas

from receipts.core.context import resolve_context
from receipts.core.errors import ImageLoadError, InvalidTableShapeError, MissingRequiredFieldError, ReceiptError
from receipts.core.models import Company
from receipts.core.settings import TemplateDefaults
from receipts.pdf.document import Base, Invoice, Receipt, Statement, page_size_for
from receipts.pdf.fonts import HELVETICA, resolve_fonts
from receipts.pdf.page import Page
from receipts.pdf.pdf_draw import draw_header


def _attrs(**overrides):
    attrs = dict(
        company={"name": "Acme", "email": "a@acme.com"},
        details=[["No.", "INV-1"]],
        recipient=["Bob", "55 Main St"],
        line_items=[["Item", "Qty"], ["Widget", "2"]],
        total_items=[["Subtotal", "$20"], ["Total", "$20"]],
        total_text="$20.00",
        payment_link={"url": "https://pay/1", "text": "Pay now"},
    )
    attrs.update(overrides)
    return attrs


def _text(pdf: bytes) -> str:
    reader = PdfReader(io.BytesIO(pdf))
    return "\n".join(page.extract_text() or "" for page in reader.pages)


def _png(path: Path, size=(40, 20)) -> Path:
    Image.new("RGB", size, (200, 30, 30)).save(path, format="PNG")
    return path


def test_receipt_contains_every_section(tmp_path: Path) -> None:
    out = Receipt(**_attrs()).render_file(tmp_path / "out" / "receipt.pdf")

    reader = PdfReader(str(out))
    assert len(reader.pages) == 1
    width = float(reader.pages[0].mediabox.width)
    assert width == pytest.approx(LETTER[0], abs=1.0)

    text = reader.pages[0].extract_text() or ""
    for expected in ("Receipt", "Acme", "Bob", "55 Main St", "No.", "INV-1", "Widget", "Pay now", "Subtotal", "$20.00"):
        assert expected in text
    assert "Contact us:" in text and "a@acme.com" in text
    assert reader.metadata.title == "Receipt"
    assert reader.metadata.author == "Acme"


def test_rendering_is_deterministic() -> None:
    first = Invoice(**_attrs()).render()
    second = Invoice(**_attrs()).render()
    assert first == second
    assert first.startswith(b"%PDF")


def test_render_is_repeatable_on_one_document() -> None:
    doc = Receipt(**_attrs())
    assert doc.render() is doc.render()


def test_payment_link_is_a_pdf_link() -> None:
    reader = PdfReader(io.BytesIO(Receipt(**_attrs()).render()))
    uris = [
        annot.get_object()["/A"]["/URI"]
        for annot in reader.pages[0].get("/Annots", [])
        if "/A" in annot.get_object()
    ]
    assert "https://pay/1" in uris
    assert "mailto:a@acme.com" in uris


def test_explicit_footer_replaces_contact_line() -> None:
    text = _text(Receipt(**_attrs(footer="Thanks for <b>shopping</b>!")).render())
    assert "Thanks for" in text and "shopping" in text
    assert "Contact us" not in text


def test_no_footer_without_email() -> None:
    text = _text(Receipt(**_attrs(company={"name": "Acme"})).render())
    assert "Contact us" not in text
    assert "Widget" in text


def test_optional_text_sections() -> None:
    company = {
        "name": "Acme",
        "seller_key": "Seller",
        "iban_text": "IBAN: DE00 1234",
        "collection_signature_text": "Received by",
        "issuer_full_name": "<b>Jane Doe</b>",
        "issuer_signature_text": "Issued by",
    }
    text = _text(Receipt(**_attrs(company=company, subtitle="Paid", total_text_in_words="Twenty dollars")).render())
    for expected in ("Seller", "IBAN: DE00 1234", "Received by", "Jane Doe", "Issued by", "Paid", "Twenty dollars"):
        assert expected in text


def test_template_defaults_and_overrides() -> None:
    assert Invoice().title == "Invoice"
    assert Statement().title == "Statement"
    assert Invoice(title="Credit note").title == "Credit note"

    Proforma = Invoice.with_defaults(TemplateDefaults(title="Proforma", currency="EUR", total_text="See above"))
    doc = Proforma(amount_gross="12.10")
    assert (doc.title, doc.currency, doc.total_text) == ("Proforma", "EUR", "See above")
    assert str(doc.amount_gross) == "12.10"
    assert issubclass(Proforma, Invoice)
    with pytest.raises(AttributeError):
        doc.not_a_field


def test_empty_mode_renders_a_blank_page() -> None:
    doc = Invoice(subtitle="Later")
    reader = PdfReader(io.BytesIO(doc.render()))
    assert len(reader.pages) == 1
    assert (reader.pages[0].extract_text() or "").strip() == ""
    assert doc.subtitle == "Later"


def test_missing_content_fields_fail_before_drawing() -> None:
    attrs = _attrs()
    del attrs["details"]
    with pytest.raises(MissingRequiredFieldError) as exc:
        Receipt(**attrs)
    assert exc.value.field == "details"

    with pytest.raises(MissingRequiredFieldError) as exc:
        Base(**_attrs())
    assert exc.value.field == "title"

    with pytest.raises(MissingRequiredFieldError) as exc:
        Receipt(**_attrs(payment_link=None))
    assert exc.value.field == "payment_link"

    with pytest.raises(MissingRequiredFieldError) as exc:
        Receipt(**_attrs(total_text=None))
    assert exc.value.field == "total_text"


@pytest.mark.parametrize("key", ["line_items", "total_items"])
def test_one_row_tables_are_rejected(key: str) -> None:
    with pytest.raises(InvalidTableShapeError) as exc:
        Receipt(**_attrs(**{key: [["Only", "header"]]}))
    assert exc.value.table == key


@pytest.mark.parametrize(
    "key, table, hints",
    [("column_widths", "line_items", [600]), ("total_items_column_widths", "total_items", [300])],
)
def test_column_widths_wider_than_the_table_are_rejected(key: str, table: str, hints) -> None:
    with pytest.raises(InvalidTableShapeError) as exc:
        Receipt(**_attrs(**{key: hints}))
    assert isinstance(exc.value, ReceiptError)
    assert exc.value.table == table


def test_zero_logo_height_is_kept() -> None:
    heights = []

    class Recorded(Receipt):
        def header(self, company, height=16):
            heights.append(height)
            super().header(company, height)

    Recorded(**_attrs(logo_height=0))
    Recorded(**_attrs())
    assert heights == [0, 16]


def test_company_name_with_angle_brackets_renders_as_text() -> None:
    pdf = Receipt(**_attrs(company={"name": "Fish </b> Chips", "seller_key": "Seller <i>"})).render()
    assert "Chips" in _text(pdf)


def test_logo_replaces_company_name_in_header(tmp_path: Path) -> None:
    ctx = resolve_context({"title": "Receipt"}, TemplateDefaults())

    def header_text(company: Company) -> str:
        buf = io.BytesIO()
        c = Canvas(buf, pagesize=LETTER, invariant=1)
        draw_header(Page(c, LETTER), HELVETICA, company, ctx)
        c.save()
        return _text(buf.getvalue())

    assert "Acme" in header_text(Company(name="Acme"))
    with_logo = header_text(Company(name="Acme", logo=_png(tmp_path / "logo.png")))
    assert "Acme" not in with_logo
    assert "Receipt" in with_logo


def test_logo_sources(tmp_path: Path) -> None:
    path = _png(tmp_path / "logo.png")
    for logo in (str(path), path, path.read_bytes(), io.BytesIO(path.read_bytes()), Image.open(path)):
        doc = Receipt(**_attrs(company={"name": "Acme", "logo": logo}), logo_height=24)
        assert doc.render().startswith(b"%PDF")


def test_broken_logo_raises(tmp_path: Path) -> None:
    with pytest.raises(ImageLoadError):
        Receipt(**_attrs(company={"name": "Acme", "logo": str(tmp_path / "missing.png")}))

    bad = tmp_path / "bad.png"
    bad.write_bytes(b"not an image")
    with pytest.raises(ImageLoadError) as exc:
        Receipt(**_attrs(company={"name": "Acme", "logo": str(bad)}))
    assert exc.value.source == str(bad)


def test_long_tables_continue_on_new_pages() -> None:
    rows = [["Item", "Qty"]] + [[f"Line {i}", str(i)] for i in range(120)]
    doc = Receipt(**_attrs(line_items=rows))
    reader = PdfReader(io.BytesIO(doc.render()))

    assert doc.page_count > 1
    assert len(reader.pages) == doc.page_count
    second = reader.pages[1].extract_text() or ""
    # Header row repeats
    assert "Item" in second
    assert "Line 119" in _text(doc.render())


def test_page_size_option() -> None:
    assert page_size_for(None) == LETTER
    assert page_size_for("a4") == A4
    assert page_size_for((300, 400)) == (300.0, 400.0)
    with pytest.raises(ValueError):
        page_size_for("postcard")

    reader = PdfReader(io.BytesIO(Receipt(page_size="A4", **_attrs()).render()))
    assert float(reader.pages[0].mediabox.height) == pytest.approx(A4[1], abs=1.0)


def test_named_and_missing_fonts(caplog: pytest.LogCaptureFixture) -> None:
    times = resolve_fonts("Times-Roman")
    assert (times.regular, times.bold) == ("Times-Roman", "Times-Bold")

    with caplog.at_level(logging.WARNING, logger="receipts.pdf.fonts"):
        assert resolve_fonts({"normal": "/nonexistent/font.ttf"}) == HELVETICA
    assert "falling back to Helvetica" in caplog.text

    text = _text(Receipt(font="Courier", **_attrs()).render())
    assert "Widget" in text
