"""
Receipt and invoice documents.

    pdf = Invoice(
        company={"name": "Acme", "email": "billing@acme.com"},
        details=[["Invoice No.", "INV-1"], ["Date", "2026-10-18"]],
        recipient=["Bob", "55 Main St"],
        line_items=[["Item", "Qty", "Amount"], ["Widget", "2", "$20.00"]],
        total_items=[["Subtotal", "$20.00"], ["Total", "$20.00"]],
        total_text="$20.00",
        payment_link={"url": "https://pay.example.com/1", "text": "Pay now"},
    )
    pdf.render_file("invoice.pdf")

The whole document is drawn when the object is built. Built with none of
the content keys, it stays a blank page; that is how a template is
configured and inspected before use.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Any, ClassVar, Mapping, Optional, Sequence, Tuple, Union

from reportlab.lib import pagesizes
from reportlab.pdfgen.canvas import Canvas

from receipts.core.context import CONTEXT_FIELDS, ResolvedContext, resolve_context
from receipts.core.errors import MissingRequiredFieldError
from receipts.core.models import Company, Row, recipient_lines, table_rows
from receipts.core.settings import TemplateDefaults
from receipts.pdf import markup, pdf_draw
from receipts.pdf.fonts import BASE_FONT_SIZE, resolve_fonts
from receipts.pdf.page import Page
from receipts.pdf.table_layout import TOTALS_WIDTH_RATIO, ColumnWidths, check_column_widths

logger = logging.getLogger(__name__)

PageSize = Union[str, Tuple[float, float]]

DEFAULT_PAGE_SIZE = "LETTER"
CONTENT_KEYS = ("company", "details", "recipient", "line_items", "total_items")


def page_size_for(value: Optional[PageSize]) -> Tuple[float, float]:
    """'LETTER', 'a4', ... (reportlab.lib.pagesizes names) or an explicit (width, height)."""
    if value is None:
        value = DEFAULT_PAGE_SIZE
    if isinstance(value, str):
        size = getattr(pagesizes, value.strip().upper(), None)
        if not (isinstance(size, tuple) and len(size) == 2):
            raise ValueError(f"Unknown page size: {value!r}")
        return size
    width, height = value
    return float(width), float(height)


def _fetch(attributes: Mapping[str, Any], key: str, section: str) -> Any:
    value = attributes.get(key)
    if value is None:
        raise MissingRequiredFieldError(key, section)
    return value


class Base:
    defaults: ClassVar[TemplateDefaults] = TemplateDefaults()

    def __init__(self, **attributes: Any):
        attributes = dict(attributes)
        self.page_size = page_size_for(attributes.pop("page_size", None))
        self.context: ResolvedContext = resolve_context(attributes, type(self).defaults)
        self.fonts = resolve_fonts(self.context.font)

        self._buffer = io.BytesIO()
        self._pdf: Optional[bytes] = None
        # invariant: no timestamps or random ids, so equal input gives equal bytes
        self.canvas = Canvas(self._buffer, pagesize=self.page_size, invariant=1)
        self.canvas.setFont(self.fonts.regular, BASE_FONT_SIZE)
        if self.context.title:
            self.canvas.setTitle(self.context.title)
        self.page = Page(self.canvas, self.page_size)
        self.generate_from(attributes)

    def __getattr__(self, name: str) -> Any:
        # title, subtitle, amount_gross, ... read straight from the resolved context
        context = self.__dict__.get("context")
        if context is not None and name in CONTEXT_FIELDS:
            return getattr(context, name)
        raise AttributeError(f"{type(self).__name__!s} has no attribute {name!r}")

    @classmethod
    def with_defaults(cls, defaults: TemplateDefaults, name: Optional[str] = None) -> type:
        """A subclass of this document using the given template defaults."""
        return type(name or f"{cls.__name__}Template", (cls,), {"defaults": defaults})

    # ===== Pipeline =====
    def generate_from(self, attributes: Mapping[str, Any]) -> None:
        if all(attributes.get(k) is None for k in CONTENT_KEYS):
            logger.debug("%s built without content; nothing drawn", type(self).__name__)
            return

        # Validate everything before the first drawing call
        company = Company.coerce(_fetch(attributes, "company", "header"))
        details = table_rows("details", _fetch(attributes, "details", "details"), minimum=1)
        recipient = recipient_lines(_fetch(attributes, "recipient", "billing"))
        line_items = table_rows("line_items", _fetch(attributes, "line_items", "line_items"))
        total_items = table_rows("total_items", _fetch(attributes, "total_items", "totals"))
        self.context.require("title", "header")
        self.context.require("total_text", "totals")
        self.context.require("payment_link", "totals")
        check_column_widths("line_items", line_items, attributes.get("column_widths"), self.page.width)
        check_column_widths("total_items", total_items, attributes.get("total_items_column_widths"), self.page.width * TOTALS_WIDTH_RATIO)
        logo_height = attributes.get("logo_height")
        footer = attributes.get("footer")
        message = markup.parse(footer) if footer is not None else pdf_draw.default_footer(company)

        self.canvas.setAuthor(company.name)
        self.header(company, height=pdf_draw.LOGO_HEIGHT if logo_height is None else logo_height)
        self.render_details(details)
        self.render_billing_details(company, recipient)
        self.render_line_items(line_items, column_widths=attributes.get("column_widths"))
        self.render_totals(total_items, column_widths=attributes.get("total_items_column_widths"))
        self.render_signature(company)
        self.render_footer(message)

    def header(self, company: Company, height: float = pdf_draw.LOGO_HEIGHT) -> None:
        pdf_draw.draw_header(self.page, self.fonts, company, self.context, height)
        logger.debug("Drew header, cursor at %.1f", self.page.y)

    def render_details(self, details: Sequence[Row], margin_top: float = 16) -> None:
        pdf_draw.draw_details(self.page, self.fonts, list(details), margin_top)
        logger.debug("Drew details, cursor at %.1f", self.page.y)

    def render_billing_details(self, company: Company, recipient: Sequence[str], margin_top: float = 16) -> None:
        pdf_draw.draw_billing(self.page, self.fonts, company, recipient, margin_top)
        logger.debug("Drew billing details, cursor at %.1f", self.page.y)

    def render_line_items(self, line_items: Sequence[Row], column_widths: ColumnWidths = None, margin_top: float = 30) -> None:
        pdf_draw.draw_line_items(self.page, self.fonts, list(line_items), column_widths, margin_top)
        logger.debug("Drew %d line item rows, cursor at %.1f", len(line_items), self.page.y)

    def render_totals(self, total_items: Sequence[Row], column_widths: ColumnWidths = None, margin_top: float = 30) -> None:
        pdf_draw.draw_totals(self.page, self.fonts, list(total_items), self.context, column_widths, margin_top)
        logger.debug("Drew totals, cursor at %.1f", self.page.y)

    def render_signature(self, company: Company, margin_top: float = 30) -> None:
        pdf_draw.draw_signature(self.page, self.fonts, company, margin_top)

    def render_footer(self, message: Sequence[markup.Node], margin_top: float = 30) -> None:
        pdf_draw.draw_footer(self.page, self.fonts, list(message), margin_top)

    # ===== Output =====
    @property
    def page_count(self) -> int:
        return self.page.page_count

    def render(self) -> bytes:
        """The finished PDF. The canvas is closed on the first call."""
        if self._pdf is None:
            self.canvas.save()
            self._pdf = self._buffer.getvalue()
            logger.info("Rendered %s: %d page(s), %d bytes", type(self).__name__, self.page_count, len(self._pdf))
        return self._pdf

    def render_file(self, path: Union[str, Path]) -> Path:
        out = Path(path)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_bytes(self.render())
        return out


class Receipt(Base):
    defaults = TemplateDefaults(title="Receipt")


class Invoice(Base):
    defaults = TemplateDefaults(title="Invoice")


class Statement(Base):
    defaults = TemplateDefaults(title="Statement")
