# app/documents/pdf.py

from __future__ import annotations

import io

from reportlab.lib import colors
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from .errors import RenderError
from .layout import PAGE_HEIGHT, PAGE_WIDTH, ImageOp, LineOp, Page, RectOp, TextOp


def _draw(c: canvas.Canvas, op) -> None:
    if isinstance(op, RectOp):
        if op.fill:
            c.setFillColor(colors.HexColor(op.fill))
        if op.stroke:
            c.setStrokeColor(colors.HexColor(op.stroke))
            c.setLineWidth(0.5)
        c.rect(op.x, op.y, op.width, op.height, stroke=1 if op.stroke else 0, fill=1 if op.fill else 0)

    elif isinstance(op, TextOp):
        c.setFillColor(colors.HexColor(op.color))
        c.setFont(op.font, op.size)
        if op.align == "right":
            c.drawRightString(op.x, op.y, op.text)
        elif op.align == "center":
            c.drawCentredString(op.x, op.y, op.text)
        else:
            c.drawString(op.x, op.y, op.text)

    elif isinstance(op, LineOp):
        c.setStrokeColor(colors.HexColor(op.color))
        c.setLineWidth(op.width)
        c.line(op.x1, op.y1, op.x2, op.y2)

    elif isinstance(op, ImageOp):
        img = ImageReader(io.BytesIO(op.data))
        c.drawImage(
            img, op.x, op.y, width=op.width, height=op.height,
            preserveAspectRatio=True, anchor="sw", mask="auto",
        )

    else:
        raise TypeError(f"Unknown drawing op: {type(op).__name__}")


def render_pdf(pages: list[Page], title: str = "", author: str = "") -> bytes:
    """
    Paint laid-out pages onto a reportlab canvas (NO DB writes).
    Returns PDF bytes.
    """
    try:
        buf = io.BytesIO()
        c = canvas.Canvas(buf, pagesize=(PAGE_WIDTH, PAGE_HEIGHT))
        c.setTitle(title)
        c.setAuthor(author)

        for page in pages:
            for op in page.ops:
                _draw(c, op)
            c.showPage()

        c.save()
        return buf.getvalue()
    except Exception as exc:
        raise RenderError(f"PDF generation failed: {exc}") from exc
