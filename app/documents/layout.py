# app/documents/layout.py
"""
Page layout for generated documents (US letter, points).

Layout is kept separate from drawing: `layout_document` turns a
DocumentView into a list of pages holding plain drawing operations, and
app.documents.pdf paints them with reportlab. Tests can inspect page
breaks and placed text without parsing PDF bytes. Text is wrapped by a
character budget and then re-split against the measured Helvetica width
of its column (reportlab font metrics, no canvas needed).

Flow rules:
- a 120pt brand header on page 1, continuation pages start near the top
- before any line/row is placed, if it would end below BREAK_THRESHOLD
  a new page is started (rows and wrapped lines are never split)
- the table header row is repeated after a break
- the signature block moves to a new page when less than
  SIGNATURE_MIN_SPACE remains
- every page gets the footer band with "Page n of m"
"""
from __future__ import annotations

import textwrap
from dataclasses import dataclass, field
from typing import Optional, Union

from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth

from .view import DocumentView, TotalLine

PAGE_WIDTH = 612.0
PAGE_HEIGHT = 792.0
MARGIN_X = 60.0
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN_X
PROPERTY_X = 300.0

HEADER_HEIGHT = 120.0
ACCENT_HEIGHT = 4.0
FOOTER_HEIGHT = 40.0

FIRST_PAGE_TOP = PAGE_HEIGHT - 155
CONTINUATION_TOP = PAGE_HEIGHT - 60
BREAK_THRESHOLD = 120.0
SIGNATURE_MIN_SPACE = 200.0

LINE_HEIGHT = 14.0
SMALL_LINE_HEIGHT = 13.0

BODY_WRAP = 95
SCOPE_WRAP = 85
COLUMN_WRAP = 45
DESCRIPTION_WRAP = 44

COLUMN_WIDTHS = (30.0, 250.0, 40.0, 80.0, 90.0)
TABLE_HEADERS = ("#", "Description", "Qty", "Unit Price", "Amount")
CELL_PADDING = 8.0
CELL_LINE_HEIGHT = 11.0
DESCRIPTION_WIDTH = COLUMN_WIDTHS[1] - 2 * CELL_PADDING

BLUE = "#1e3a5f"
GOLD = "#c4a45f"
DARK = "#0f172a"
GRAY = "#64748b"
MUTED = "#94a3b8"
RULE = "#e2e8f0"
STRIPE = "#f8fafc"
WHITE = "#ffffff"


@dataclass(frozen=True)
class TextOp:
    x: float
    y: float
    text: str
    font: str = "Helvetica"
    size: float = 10.0
    color: str = DARK
    align: str = "left"  # left | right | center


@dataclass(frozen=True)
class RectOp:
    x: float
    y: float
    width: float
    height: float
    fill: Optional[str] = None
    stroke: Optional[str] = None


@dataclass(frozen=True)
class LineOp:
    x1: float
    y1: float
    x2: float
    y2: float
    color: str = RULE
    width: float = 0.5


@dataclass(frozen=True)
class ImageOp:
    x: float
    y: float
    width: float
    height: float
    data: bytes


Op = Union[TextOp, RectOp, LineOp, ImageOp]


@dataclass
class Page:
    number: int
    ops: list = field(default_factory=list)

    @property
    def texts(self) -> list[str]:
        return [op.text for op in self.ops if isinstance(op, TextOp)]


# -----------------------------
# Wrapping
# -----------------------------
def wrap_text(text: str, width: int, indent: str = "") -> list[str]:
    """Wrap each paragraph of `text`; blank lines are kept as "" spacers."""
    out: list[str] = []
    for para in (text or "").splitlines():
        if not para.strip():
            out.append("")
            continue
        out.extend(
            textwrap.wrap(
                para.strip(),
                width=width,
                subsequent_indent=indent,
                break_long_words=True,
                break_on_hyphens=False,
            )
        )
    while out and out[-1] == "":
        out.pop()
    return out


def wrap_scope_item(number: int, text: str) -> list[str]:
    return textwrap.wrap(
        f"{number}. {text}",
        width=SCOPE_WRAP,
        subsequent_indent="    ",
        break_long_words=True,
        break_on_hyphens=False,
    ) or [f"{number}."]


def _split_chars(word: str, font: str, size: float, max_width: float) -> list[str]:
    out: list[str] = []
    current = ""
    for ch in word:
        if current and stringWidth(current + ch, font, size) > max_width:
            out.append(current)
            current = ch
        else:
            current += ch
    out.append(current)
    return out


def fit_lines(lines: list[str], font: str, size: float, max_width: float) -> list[str]:
    """Re-split any line whose drawn width exceeds `max_width` points."""
    out: list[str] = []
    for line in lines:
        if not line or stringWidth(line, font, size) <= max_width:
            out.append(line)
            continue
        for piece in simpleSplit(line, font, size, max_width) or [line]:
            if stringWidth(piece, font, size) <= max_width:
                out.append(piece)
            else:
                out.extend(_split_chars(piece, font, size, max_width))
    return out


def wrap_measured(text: str, width: int, font: str, size: float, max_width: float) -> list[str]:
    return fit_lines(wrap_text(text, width), font, size, max_width)


# -----------------------------
# Flow
# -----------------------------
class _Flow:
    def __init__(self):
        self.pages: list[Page] = []
        self.y = 0.0
        self.new_page()

    @property
    def page(self) -> Page:
        return self.pages[-1]

    def new_page(self) -> None:
        page = Page(number=len(self.pages) + 1)
        self.pages.append(page)
        self.y = FIRST_PAGE_TOP if page.number == 1 else CONTINUATION_TOP

    def at_top(self) -> bool:
        return self.y == (FIRST_PAGE_TOP if self.page.number == 1 else CONTINUATION_TOP)

    def fits(self, height: float) -> bool:
        return self.y - height >= BREAK_THRESHOLD

    def ensure(self, height: float) -> bool:
        """Start a new page unless `height` fits. Returns True on a break."""
        if self.fits(height) or self.at_top():
            return False
        self.new_page()
        return True

    def add(self, op: Op) -> None:
        self.page.ops.append(op)

    def text(self, x: float, text: str, **kw) -> None:
        self.add(TextOp(x=x, y=self.y, text=text, **kw))


def _heading(flow: _Flow, title: str, first_line_height: float = LINE_HEIGHT) -> None:
    # Keep a heading on the same page as its first line.
    flow.ensure(18 + first_line_height)
    flow.text(MARGIN_X, title, font="Helvetica-Bold", size=11, color=BLUE)
    flow.y -= 18


def _paragraph(flow: _Flow, lines: list[str], size: float = 10.0, color: str = DARK,
               line_height: float = LINE_HEIGHT, font: str = "Helvetica") -> None:
    for line in fit_lines(lines, font, size, CONTENT_WIDTH):
        flow.ensure(line_height)
        if line:
            flow.text(MARGIN_X, line, font=font, size=size, color=color)
        flow.y -= line_height


# -----------------------------
# Fixed regions
# -----------------------------
def _draw_header(page: Page, view: DocumentView) -> None:
    c = view.company
    top = PAGE_HEIGHT
    right = PAGE_WIDTH - MARGIN_X
    page.ops.extend([
        RectOp(0, top - HEADER_HEIGHT, PAGE_WIDTH, HEADER_HEIGHT, fill=BLUE),
        TextOp(MARGIN_X, top - 55, c.short_name, font="Helvetica-Bold", size=26, color=WHITE),
        TextOp(MARGIN_X, top - 72, c.legal_name, size=11, color=WHITE),
        TextOp(MARGIN_X, top - 86, c.tagline, size=8, color=GOLD),
        TextOp(MARGIN_X, top - 100, c.contact_line, size=7, color=MUTED),
        TextOp(right, top - 55, view.badge, font="Helvetica-Bold", size=18, color=GOLD, align="right"),
    ])
    if view.number:
        page.ops.append(TextOp(right, top - 75, f"#{view.number}", size=10, color=WHITE, align="right"))
    page.ops.append(RectOp(0, top - HEADER_HEIGHT - ACCENT_HEIGHT, PAGE_WIDTH, ACCENT_HEIGHT, fill=GOLD))


def _draw_continuation_header(page: Page, view: DocumentView) -> None:
    page.ops.append(TextOp(MARGIN_X, PAGE_HEIGHT - 35, view.title, font="Helvetica-Bold", size=9, color=BLUE))
    page.ops.append(LineOp(MARGIN_X, PAGE_HEIGHT - 42, PAGE_WIDTH - MARGIN_X, PAGE_HEIGHT - 42, color=GOLD, width=1))


def _draw_footer(page: Page, view: DocumentView, total_pages: int) -> None:
    c = view.company
    center = PAGE_WIDTH / 2
    page.ops.extend([
        RectOp(0, 0, PAGE_WIDTH, FOOTER_HEIGHT, fill=BLUE),
        TextOp(center, 24, c.footer_line, font="Helvetica-Bold", size=8, color=GOLD, align="center"),
        TextOp(center, 12, f"{c.phone}  |  {c.email}  |  {c.license}", size=7, color=MUTED, align="center"),
        TextOp(PAGE_WIDTH - 20, 12, f"Page {page.number} of {total_pages}", size=7, color=MUTED, align="right"),
    ])


# -----------------------------
# Body sections
# -----------------------------
def _meta(flow: _Flow, view: DocumentView) -> None:
    rows = max(len(view.meta_left), len(view.meta_right))
    for i in range(rows):
        flow.ensure(LINE_HEIGHT)
        if i < len(view.meta_left):
            flow.text(MARGIN_X, view.meta_left[i], size=10, color=GRAY)
        if i < len(view.meta_right):
            flow.text(PAGE_WIDTH - MARGIN_X, view.meta_right[i], size=10, color=GRAY, align="right")
        flow.y -= LINE_HEIGHT
    if rows:
        flow.y -= 16


def _party_column(title: str, name: str, lines: tuple[str, ...], max_width: float) -> list[tuple]:
    # (text, font, size, color, advance)
    out: list[tuple] = [(title, "Helvetica-Bold", 11, BLUE, 16)]
    if name:
        for line in wrap_measured(name, COLUMN_WRAP, "Helvetica-Bold", 12, max_width):
            out.append((line, "Helvetica-Bold", 12, DARK, 15))
    for raw in lines:
        for line in wrap_measured(raw, COLUMN_WRAP, "Helvetica", 10, max_width):
            out.append((line, "Helvetica", 10, GRAY, LINE_HEIGHT))
    return out


def _parties(flow: _Flow, view: DocumentView) -> None:
    # Both columns advance together so a page break never splits a line pair.
    left = _party_column("CLIENT", view.client_name, view.client_lines, PROPERTY_X - MARGIN_X - 10)
    right = []
    if view.property_lines:
        right = _party_column("PROPERTY", "", view.property_lines, PAGE_WIDTH - MARGIN_X - PROPERTY_X)

    for i in range(max(len(left), len(right))):
        cells = [(x, col[i]) for x, col in ((MARGIN_X, left), (PROPERTY_X, right)) if i < len(col)]
        advance = max(cell[4] for _, cell in cells)
        flow.ensure(advance)
        for x, (text, font, size, color, _) in cells:
            flow.text(x, text, font=font, size=size, color=color)
        flow.y -= advance
    flow.y -= 10

    if view.project:
        project_lines = wrap_text(view.project, BODY_WRAP)
        _heading(flow, "PROJECT")
        _paragraph(flow, project_lines, size=11, font="Helvetica-Bold")
        flow.y -= 12


def _row_height(line_count: int) -> float:
    return 2 * CELL_PADDING + max(line_count, 1) * CELL_LINE_HEIGHT


def _table_row(flow: _Flow, cells: tuple[list[str], ...], fill: str, header: bool = False) -> None:
    height = _row_height(max(len(c) for c in cells))
    top = flow.y
    x = MARGIN_X
    font = "Helvetica-Bold" if header else "Helvetica"
    color = WHITE if header else DARK
    for col, (width, lines) in enumerate(zip(COLUMN_WIDTHS, cells)):
        flow.add(RectOp(x, top - height, width, height, fill=fill, stroke=RULE))
        for i, line in enumerate(lines):
            baseline = top - CELL_PADDING - 8 - i * CELL_LINE_HEIGHT
            if col == 0:
                flow.add(TextOp(x + width / 2, baseline, line, font=font, size=9, color=color, align="center"))
            elif col == 1:
                flow.add(TextOp(x + CELL_PADDING, baseline, line, font=font, size=9, color=color))
            else:
                flow.add(TextOp(x + width - CELL_PADDING, baseline, line, font=font, size=9, color=color, align="right"))
        x += width
    flow.y = top - height


def _row_chunks(lines: list[str]) -> list[list[str]]:
    # A description taller than a whole page continues in a follow-on row.
    per_page = int((CONTINUATION_TOP - BREAK_THRESHOLD - _row_height(1) - 2 * CELL_PADDING) // CELL_LINE_HEIGHT)
    return [lines[i:i + per_page] for i in range(0, len(lines), per_page)] or [[""]]


def _items_table(flow: _Flow, view: DocumentView) -> None:
    header_cells = tuple([h] for h in TABLE_HEADERS)
    header_height = _row_height(1)

    body: list[tuple[list[str], ...]] = []
    for row in view.rows:
        lines = wrap_measured(row.description, DESCRIPTION_WRAP, "Helvetica", 9, DESCRIPTION_WIDTH)
        chunks = _row_chunks(lines or [""])
        body.append(([row.index], chunks[0], [row.quantity], [row.unit_price], [row.amount]))
        for extra in chunks[1:]:
            body.append(([""], extra, [""], [""], [""]))
    if not body:
        body.append(([""], ["(No items)"], [""], [""], [""]))

    first_height = _row_height(max(len(c) for c in body[0]))
    flow.ensure(header_height + first_height)
    _table_row(flow, header_cells, BLUE, header=True)

    for i, cells in enumerate(body):
        height = _row_height(max(len(c) for c in cells))
        if not flow.fits(height):
            flow.new_page()
            _table_row(flow, header_cells, BLUE, header=True)
        _table_row(flow, cells, WHITE if i % 2 == 0 else STRIPE)
    flow.y -= 15


def _total_lines(flow: _Flow, lines: tuple[TotalLine, ...]) -> None:
    right = PAGE_WIDTH - MARGIN_X
    needed = sum(35 if line.emphasis else 16 for line in lines)
    flow.ensure(needed)
    for line in lines:
        if line.emphasis:
            flow.add(RectOp(right - 220, flow.y - 9, 220, 26, fill=BLUE))
            flow.text(right - 8, f"{line.label}:  {line.value}", font="Helvetica-Bold", size=13, color=WHITE, align="right")
            flow.y -= 35
        else:
            flow.text(right, f"{line.label}:  {line.value}", size=10, color=GRAY, align="right")
            flow.y -= 16


def _summary(flow: _Flow, lines: tuple[TotalLine, ...]) -> None:
    _heading(flow, "CHANGE ORDER SUMMARY")
    for line in lines:
        flow.ensure(LINE_HEIGHT)
        font = "Helvetica-Bold" if line.emphasis else "Helvetica"
        flow.text(MARGIN_X, f"{line.label.upper()}:", font=font, size=10, color=DARK)
        flow.text(PAGE_WIDTH - MARGIN_X, line.value, font=font, size=10, color=DARK, align="right")
        flow.y -= LINE_HEIGHT + 2
    flow.y -= 10


def _scope(flow: _Flow, view: DocumentView) -> None:
    _heading(flow, "SCOPE OF WORK")
    for i, item in enumerate(view.scope_items, start=1):
        _paragraph(flow, wrap_scope_item(i, item), size=10)
        flow.y -= 4
    flow.y -= 8


def _signature_block(flow: _Flow, view: DocumentView, signature_image: Optional[bytes]) -> None:
    if flow.y < SIGNATURE_MIN_SPACE:
        flow.new_page()

    flow.y -= 20
    flow.add(LineOp(MARGIN_X, flow.y, PAGE_WIDTH - MARGIN_X, flow.y, color=RULE, width=1))
    flow.y -= 25

    left_x = MARGIN_X
    right_x = 330.0
    label_y = flow.y
    rule_y = label_y - 50

    flow.add(TextOp(left_x, label_y, view.provider_label, font="Helvetica-Bold", size=10, color=DARK))
    flow.add(TextOp(right_x, label_y, view.client_label, font="Helvetica-Bold", size=10, color=DARK))

    if signature_image:
        flow.add(ImageOp(left_x, rule_y + 2, 150, 40, signature_image))

    flow.add(LineOp(left_x, rule_y, left_x + 200, rule_y, color=DARK, width=0.75))
    flow.add(LineOp(right_x, rule_y, PAGE_WIDTH - MARGIN_X, rule_y, color=DARK, width=0.75))

    y = rule_y - 14
    flow.add(TextOp(left_x, y, view.company.signer_name, font="Helvetica-Bold", size=10, color=DARK))
    if view.client_name:
        flow.add(TextOp(right_x, y, view.client_name, font="Helvetica-Bold", size=10, color=DARK))
    y -= 13
    flow.add(TextOp(left_x, y, view.company.signer_title, size=9, color=GRAY))
    flow.add(TextOp(right_x, y, "Date: ____________________", size=9, color=GRAY))
    y -= 13
    flow.add(TextOp(left_x, y, "Date: ____________________", size=9, color=GRAY))
    flow.y = y - 10


def layout_document(view: DocumentView, signature_image: Optional[bytes] = None) -> list[Page]:
    flow = _Flow()
    _draw_header(flow.page, view)

    _meta(flow, view)
    _parties(flow, view)

    if view.priced:
        _items_table(flow, view)
        _total_lines(flow, view.totals)
        if view.summary:
            _summary(flow, view.summary)
    else:
        _scope(flow, view)
        if view.scope_note:
            _paragraph(flow, wrap_text(view.scope_note, BODY_WRAP), size=9.5)
            flow.y -= 12
        if view.payment_lines:
            _heading(flow, "PAYMENT STRUCTURE")
            _paragraph(flow, wrap_text("\n".join(view.payment_lines), BODY_WRAP), size=9.5)
            flow.y -= 12
        if view.terms:
            _heading(flow, "TERMS & CONDITIONS", SMALL_LINE_HEIGHT)
            _paragraph(flow, wrap_text(view.terms, BODY_WRAP), size=8.5, color=GRAY,
                       line_height=SMALL_LINE_HEIGHT)
            flow.y -= 12

    if view.notes:
        _heading(flow, "NOTES", SMALL_LINE_HEIGHT)
        _paragraph(flow, wrap_text(view.notes, BODY_WRAP), size=9, color=GRAY, line_height=SMALL_LINE_HEIGHT)
        flow.y -= 8

    _signature_block(flow, view, signature_image)

    total = len(flow.pages)
    for page in flow.pages:
        if page.number > 1:
            _draw_continuation_header(page, view)
        _draw_footer(page, view, total)
    return flow.pages
