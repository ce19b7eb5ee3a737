from __future__ import annotations

from typing import List, Optional, Sequence

from reportlab.lib import colors
from reportlab.lib.enums import TA_LEFT, TA_RIGHT
from reportlab.platypus import KeepInFrame, Paragraph

from receipts.core.context import ResolvedContext
from receipts.core.models import Company, Logo, Row, header_identity
from receipts.pdf import markup
from receipts.pdf.fonts import BASE_FONT_SIZE, FontSet
from receipts.pdf.images import load_image, scaled_size
from receipts.pdf.page import Page
from receipts.pdf.table_layout import (
    LINK_RGB,
    TOTALS_WIDTH_RATIO,
    ColumnWidths,
    build_billing_table,
    build_details_table,
    build_line_items_table,
    build_payment_table,
    build_totals_table,
    text_style,
)


# ===== Layout constants =====
LOGO_HEIGHT = 16
NAME_FONT_SIZE = 16
TITLE_FONT_SIZE = 32
SUBTITLE_FONT_SIZE = 16
TOTAL_FONT_SIZE = 16
WORDS_FONT_SIZE = 10
ISSUER_FONT_SIZE = 8

NAME_COLOR = colors.HexColor("#4B5563")
DARK_TEXT = colors.HexColor("#333333")
SHADE_RGB = "F5F4F3"

PAYMENT_INDENT = 20
# Totals table is pulled up beside the payment button
TOTALS_OVERLAP = 50

SIGN_BOX_H = 50
SIGN_BOX_GAP = 20
SIGN_TEXT_H = 20
SIGN_TEXT_X = 8
SIGN_TEXT_TOP = 18
ISSUER_NAME_TOP = 35


def _para(nodes: List[markup.Node], style) -> Paragraph:
    return Paragraph(markup.to_paragraph_markup(nodes), style)


def _text_box(page: Page, nodes: List[markup.Node], x: float, top: float, width: float, style) -> None:
    """Draw text inside a fixed area whose top-left corner is (x, top); overflow is cut."""
    frame = KeepInFrame(width, SIGN_TEXT_H, [_para(nodes, style)], mode="truncate")
    _w, h = frame.wrapOn(page.canvas, width, SIGN_TEXT_H)
    frame.drawOn(page.canvas, x, top - h)


def draw_header(page: Page, fonts: FontSet, company: Company, ctx: ResolvedContext, height: float = LOGO_HEIGHT) -> None:
    """Company logo (or name) on the right, then title and subtitle on the left.

    The cursor goes back up by `height` after the identity so the title sits
    beside it.
    """
    identity = header_identity(company)
    if isinstance(identity, Logo):
        reader = load_image(identity.source)
        w, h = scaled_size(reader, height)
        page.ensure_room(h)
        page.canvas.drawImage(reader, page.left + page.width - w, page.y - h, width=w, height=h, mask="auto")
        page.move_down(h)
    else:
        style = text_style(fonts, NAME_FONT_SIZE, bold=True, color=NAME_COLOR, align=TA_RIGHT, name="company")
        page.flow(_para(markup.literal(identity.text), style))

    page.move_up(height)
    page.flow(_para(markup.literal(ctx.require("title", "header")), text_style(fonts, TITLE_FONT_SIZE, bold=True, name="title")))
    if ctx.subtitle:
        style = text_style(fonts, SUBTITLE_FONT_SIZE, bold=True, color=DARK_TEXT, name="subtitle")
        page.flow(_para(markup.literal(ctx.subtitle), style))


def draw_details(page: Page, fonts: FontSet, rows: List[Row], margin_top: float = 16) -> None:
    page.move_down(margin_top)
    page.flow(build_details_table(rows, fonts, page.width))


def draw_billing(page: Page, fonts: FontSet, company: Company, recipient: Sequence[str], margin_top: float = 16) -> None:
    page.move_down(margin_top)
    page.flow(build_billing_table(company, recipient, fonts, page.width))


def draw_line_items(page: Page, fonts: FontSet, rows: List[Row], widths: ColumnWidths = None, margin_top: float = 30) -> None:
    page.move_down(margin_top)
    page.flow(build_line_items_table(rows, fonts, page.width, widths))


def draw_totals(page: Page, fonts: FontSet, rows: List[Row], ctx: ResolvedContext, widths: ColumnWidths = None, margin_top: float = 30) -> None:
    """Payment button, totals table beside it, then the total amount and its words line."""
    link = ctx.require("payment_link", "totals")
    total_text = ctx.require("total_text", "totals")

    page.move_down(margin_top)
    page.flow(build_payment_table(link, fonts), x=PAYMENT_INDENT)

    page.move_up(TOTALS_OVERLAP)
    width = page.width * TOTALS_WIDTH_RATIO
    page.flow(build_totals_table(rows, fonts, width, widths), x=page.width - width, width=width)

    # Shading is applied per text run, not as a box around the lines
    page.move_down(margin_top)
    style = text_style(fonts, TOTAL_FONT_SIZE, bold=True, color=DARK_TEXT, align=TA_RIGHT, name="total")
    page.flow(_para([markup.Highlight(SHADE_RGB, markup.literal(total_text))], style))
    page.move_down(2)
    if ctx.total_text_in_words:
        style = text_style(fonts, WORDS_FONT_SIZE, color=DARK_TEXT, align=TA_RIGHT, name="total-words")
        page.flow(_para([markup.Highlight(SHADE_RGB, markup.literal(ctx.total_text_in_words))], style))


def draw_signature(page: Page, fonts: FontSet, company: Company, margin_top: float = 30) -> None:
    """Two bordered boxes side by side: collection signature left, issuer right."""
    page.move_down(margin_top)
    page.ensure_room(SIGN_BOX_H)

    c = page.canvas
    box_w = page.width / 2 - SIGN_BOX_GAP / 2
    left_x = page.left
    right_x = page.left + page.width / 2 + SIGN_BOX_GAP / 2
    # Both boxes hang from the same cursor position
    y_top = page.y
    bottom = y_top - SIGN_BOX_H

    c.setStrokeColor(colors.black)
    c.setLineWidth(1)
    c.rect(left_x, bottom, box_w, SIGN_BOX_H, stroke=1, fill=0)
    c.rect(right_x, bottom, box_w, SIGN_BOX_H, stroke=1, fill=0)

    base = text_style(fonts, BASE_FONT_SIZE, align=TA_LEFT, name="signature")
    if company.collection_signature_text:
        _text_box(page, markup.literal(company.collection_signature_text), left_x + SIGN_TEXT_X, bottom + SIGN_TEXT_TOP, box_w, base)
    if company.issuer_full_name:
        style = text_style(fonts, ISSUER_FONT_SIZE, name="issuer")
        _text_box(page, markup.parse(company.issuer_full_name), right_x + SIGN_TEXT_X, bottom + ISSUER_NAME_TOP, box_w - 10, style)
    if company.issuer_signature_text:
        _text_box(page, markup.parse(company.issuer_signature_text), right_x + SIGN_TEXT_X, bottom + SIGN_TEXT_TOP, box_w - 10, base)

    page.y = bottom


def default_footer(company: Company) -> List[markup.Node]:
    """'<contact text> <email link>' when the company has an email, otherwise nothing."""
    if not company.has_email:
        return []
    email = company.email.strip()
    link = markup.Color(LINK_RGB, [markup.Link(f"mailto:{email}", [markup.Bold([markup.Text(email)])])])
    return markup.parse(company.contact_text) + [markup.Text(" "), link]


def draw_footer(page: Page, fonts: FontSet, message: Optional[List[markup.Node]], margin_top: float = 30) -> None:
    if not message:
        return
    page.move_down(margin_top)
    page.flow(_para(message, text_style(fonts, name="footer")))
