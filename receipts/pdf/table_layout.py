# receipts/pdf/table_layout.py
from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_LEFT, TA_RIGHT
from reportlab.lib.styles import ParagraphStyle
from reportlab.pdfbase import pdfmetrics
from reportlab.platypus import Paragraph, Table, TableStyle

from receipts.core.errors import InvalidTableShapeError
from receipts.core.models import Cell, Company, PaymentLink, Row, bordered_rows
from receipts.pdf import markup
from receipts.pdf.fonts import BASE_FONT_SIZE, FontSet

# Padding is (top, right, bottom, left)
Padding = Tuple[float, float, float, float]

LEADING_RATIO = 1.2

DETAILS_PADDING: Padding = (2, 8, 3, 2)
BILLING_PADDING: Padding = (2, 12, 3, 2)
ITEMS_PADDING: Padding = (6, 6, 6, 6)
PAYMENT_PADDING: Padding = (10, 10, 10, 10)

PAYMENT_BUTTON_W = 100
TOTALS_WIDTH_RATIO = 0.41

BORDER_W = 1
BORDER_COLOR = colors.HexColor("#EEEEEE")
HEADER_BG = colors.HexColor("#3C3D3A")
HEADER_TEXT = colors.HexColor("#FFFFFF")
TOTALS_HEADER_TEXT = colors.HexColor("#333333")
SHADE = colors.HexColor("#F5F4F3")
LINK_RGB = "326D92"

_ALIGN = {"left": TA_LEFT, "center": TA_CENTER, "right": TA_RIGHT}

ColumnWidths = Union[None, Sequence[Optional[float]], Mapping[int, float]]


def text_style(
    fonts: FontSet,
    size: float = BASE_FONT_SIZE,
    bold: bool = False,
    color: Optional[colors.Color] = None,
    align: int = TA_LEFT,
    name: str = "receipt",
) -> ParagraphStyle:
    return ParagraphStyle(
        name,
        fontName=fonts.bold if bold else fonts.regular,
        fontSize=size,
        leading=size * LEADING_RATIO,
        textColor=color or colors.black,
        alignment=align,
    )


def _pad(padding: Union[None, float, Sequence[float]], default: Padding) -> Padding:
    if padding is None:
        return default
    if isinstance(padding, (int, float)):
        return (padding, padding, padding, padding)
    if len(padding) == 2:
        v, h = padding
        return (v, h, v, h)
    top, right, bottom, left = padding
    return (top, right, bottom, left)


def _add_padding(ts: TableStyle, padding: Padding, start: Tuple[int, int], stop: Tuple[int, int]) -> None:
    top, right, bottom, left = padding
    ts.add("TOPPADDING", start, stop, top)
    ts.add("RIGHTPADDING", start, stop, right)
    ts.add("BOTTOMPADDING", start, stop, bottom)
    ts.add("LEFTPADDING", start, stop, left)


def cell_paragraph(cell: Cell, base: ParagraphStyle, fonts: FontSet) -> Paragraph:
    style = base
    if cell.bold or cell.align or cell.text_color:
        style = ParagraphStyle(
            f"{base.name}-cell",
            parent=base,
            fontName=fonts.bold if cell.bold else base.fontName,
            textColor=colors.HexColor("#" + markup.normalize_rgb(cell.text_color)) if cell.text_color else base.textColor,
            alignment=_ALIGN[cell.align.lower()] if cell.align else base.alignment,
        )
    return Paragraph(markup.render(cell.content), style)


def _cells(rows: List[Row], fonts: FontSet, base: ParagraphStyle, row_styles: Optional[Dict[int, ParagraphStyle]] = None) -> List[List[Paragraph]]:
    row_styles = row_styles or {}
    return [[cell_paragraph(c, row_styles.get(i, base), fonts) for c in row] for i, row in enumerate(rows)]


def _cell_overrides(ts: TableStyle, rows: List[Row], default_padding: Padding) -> None:
    for r, row in enumerate(rows):
        for c, cell in enumerate(row):
            if cell.background:
                ts.add("BACKGROUND", (c, r), (c, r), colors.HexColor("#" + markup.normalize_rgb(cell.background)))
            if cell.padding is not None:
                _add_padding(ts, _pad(cell.padding, default_padding), (c, r), (c, r))


def column_widths(hints: ColumnWidths, columns: int, total: float) -> List[float]:
    """Explicit widths where given; the remainder is shared by the other columns."""
    if hints is None:
        widths: List[Optional[float]] = [None] * columns
    elif isinstance(hints, Mapping):
        widths = [hints.get(i) for i in range(columns)]
    else:
        if len(hints) > columns:
            raise ValueError(f"{len(hints)} column widths given for {columns} columns")
        widths = list(hints) + [None] * (columns - len(hints))

    if any(w is not None and float(w) <= 0 for w in widths):
        raise ValueError(f"Column widths must be positive: {hints!r}")
    fixed = sum(float(w) for w in widths if w is not None)
    free = [i for i, w in enumerate(widths) if w is None]
    if free and fixed >= total:
        raise ValueError(f"Column widths take {fixed:g} of {total:g} points and leave nothing for {len(free)} other column(s)")
    if fixed > total + 0.01:
        raise ValueError(f"Column widths add up to {fixed:g}, more than the {total:g} points available")
    share = (total - fixed) / len(free) if free else 0.0
    return [share if w is None else float(w) for w in widths]


def check_column_widths(table: str, rows: List[Row], hints: ColumnWidths, total: float) -> None:
    """Reject width hints that cannot fit, before anything is drawn."""
    try:
        column_widths(hints, len(rows[0]), total)
    except ValueError as e:
        raise InvalidTableShapeError(table, len(rows), reason=f"Table '{table}': {e}") from e


def natural_widths(rows: List[Row], fonts: FontSet, size: float, padding: Padding, max_width: float) -> List[float]:
    """Widest line per column plus padding, scaled down to fit max_width."""
    _top, right, _bottom, left = padding
    widths = [0.0] * len(rows[0])
    for row in rows:
        for c, cell in enumerate(row):
            line = 0.0
            widest = 0.0
            for text, bold in markup.runs(markup.parse(cell.content), bold=cell.bold):
                font = fonts.bold if bold else fonts.regular
                pieces = text.split("\n")
                for j, piece in enumerate(pieces):
                    if j:
                        widest = max(widest, line)
                        line = 0.0
                    line += pdfmetrics.stringWidth(piece, font, size)
            widest = max(widest, line)
            widths[c] = max(widths[c], widest + left + right + 1)
    total = sum(widths)
    if total > max_width:
        widths = [w * max_width / total for w in widths]
    return widths


# ===== Details =====
def build_details_table(rows: List[Row], fonts: FontSet, max_width: float) -> Table:
    base = text_style(fonts, name="details")
    t = Table(_cells(rows, fonts, base), colWidths=natural_widths(rows, fonts, BASE_FONT_SIZE, DETAILS_PADDING, max_width), hAlign="LEFT")
    ts = TableStyle()
    _add_padding(ts, DETAILS_PADDING, (0, 0), (-1, -1))
    ts.add("VALIGN", (0, 0), (-1, -1), "TOP")
    _cell_overrides(ts, rows, DETAILS_PADDING)
    t.setStyle(ts)
    return t


# ===== Billing =====
def seller_block(company: Company) -> List[markup.Node]:
    """Seller column: key and name in bold as plain text, then the selected details and IBAN text."""
    nodes: List[markup.Node] = []
    if company.seller_key:
        nodes += [markup.Bold(markup.literal(company.seller_key)), markup.Text("\n")]
    nodes.append(markup.Bold(markup.literal(company.name)))
    tail = company.details_lines()
    if company.iban_text:
        tail += ["", company.iban_text]
    if tail:
        nodes += markup.parse("\n" + "\n".join(tail))
    return nodes


def build_billing_table(company: Company, recipient: Sequence[str], fonts: FontSet, width: float) -> Table:
    # Rows grow to fit their content; nothing is clipped
    base = text_style(fonts, name="billing")
    row = [
        Paragraph(markup.to_paragraph_markup(seller_block(company)), base),
        cell_paragraph(Cell("\n".join(recipient)), base, fonts),
    ]
    t = Table([row], colWidths=[width / 2, width / 2])
    ts = TableStyle()
    _add_padding(ts, BILLING_PADDING, (0, 0), (-1, -1))
    ts.add("VALIGN", (0, 0), (-1, -1), "TOP")
    t.setStyle(ts)
    return t


# ===== Line items =====
def line_items_style(rows: List[Row]) -> TableStyle:
    last_bordered = bordered_rows(len(rows))[-1]
    ts = TableStyle()
    ts.add("BACKGROUND", (0, 0), (-1, 0), HEADER_BG)
    _add_padding(ts, ITEMS_PADDING, (0, 0), (-1, -1))
    ts.add("VALIGN", (0, 0), (-1, -1), "TOP")
    # Separators under every row but the last
    ts.add("LINEBELOW", (0, 0), (-1, last_bordered), BORDER_W, BORDER_COLOR)
    _cell_overrides(ts, rows, ITEMS_PADDING)
    return ts


def build_line_items_table(rows: List[Row], fonts: FontSet, width: float, widths: ColumnWidths = None) -> Table:
    base = text_style(fonts, name="items")
    header = text_style(fonts, bold=True, color=HEADER_TEXT, name="items-header")
    t = Table(
        _cells(rows, fonts, base, {0: header}),
        colWidths=column_widths(widths, len(rows[0]), width),
        repeatRows=1,
    )
    t.setStyle(line_items_style(rows))
    return t


# ===== Totals =====
def build_payment_table(link: PaymentLink, fonts: FontSet) -> Table:
    label = markup.Link(link.url, [markup.Color(LINK_RGB, [markup.Bold(markup.literal(link.text))])])
    style = text_style(fonts, align=TA_CENTER, name="payment")
    t = Table([[Paragraph(markup.to_paragraph_markup([label]), style)]], colWidths=[PAYMENT_BUTTON_W])
    ts = TableStyle()
    _add_padding(ts, PAYMENT_PADDING, (0, 0), (-1, -1))
    ts.add("BOX", (0, 0), (-1, -1), BORDER_W, colors.black)
    ts.add("ALIGN", (0, 0), (-1, -1), "CENTER")
    ts.add("VALIGN", (0, 0), (-1, -1), "MIDDLE")
    t.setStyle(ts)
    return t


def totals_style(rows: List[Row]) -> TableStyle:
    last_bordered = bordered_rows(len(rows))[-1]
    ts = TableStyle()
    _add_padding(ts, ITEMS_PADDING, (0, 0), (-1, -1))
    ts.add("VALIGN", (0, 0), (-1, -1), "TOP")
    # Grand total row
    ts.add("BACKGROUND", (0, -1), (-1, -1), SHADE)
    ts.add("LINEBELOW", (0, 0), (-1, last_bordered), BORDER_W, BORDER_COLOR)
    _cell_overrides(ts, rows, ITEMS_PADDING)
    return ts


def build_totals_table(rows: List[Row], fonts: FontSet, width: float, widths: ColumnWidths = None) -> Table:
    base = text_style(fonts, name="totals")
    header = text_style(fonts, bold=True, color=TOTALS_HEADER_TEXT, name="totals-header")
    t = Table(_cells(rows, fonts, base, {0: header}), colWidths=column_widths(widths, len(rows[0]), width))
    t.setStyle(totals_style(rows))
    return t
