# app/exports/pdf_export.py
"""
Single-invoice PDF rendered with the reportlab canvas.

Positions are given in millimetres from the top-left corner of an A4 page and
converted to reportlab's bottom-left point coordinates by ``_y``.
"""

from datetime import date
from pathlib import Path
from typing import Optional

from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

from app.db.store import Store
from app.formatting import file_safe, format_currency, format_date
from app.notifications.dispatcher import Dispatcher

from .files import ExportResult, atomic_output, fetch_invoice, finish_export, resolve_target

PAGE_WIDTH, PAGE_HEIGHT = A4
BODY_FONT = "Helvetica"
BOLD_FONT = "Helvetica-Bold"
ITALIC_FONT = "Helvetica-Oblique"

# Below this many mm from the top a new page is started
PAGE_BOTTOM = 270
LINE = 7


def _y(top_mm: float) -> float:
    return PAGE_HEIGHT - top_mm * mm


class _NumberedCanvas(canvas.Canvas):
    """Canvas that stamps "Page i of n" on every page when saved."""

    def __init__(self, *args, generated_on: date, **kwargs):
        super().__init__(*args, **kwargs)
        self._generated_on = generated_on
        self._page_states = []

    def showPage(self):
        self._page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        page_count = len(self._page_states)
        for number, state in enumerate(self._page_states, start=1):
            self.__dict__.update(state)
            self.setFont(ITALIC_FONT, 10)
            self.drawCentredString(
                PAGE_WIDTH / 2,
                _y(290),
                f"Generated on {format_date(self._generated_on)} - Page {number} of {page_count}",
            )
            super().showPage()
        super().save()


def _draw_header(c: canvas.Canvas, invoice, title: str) -> None:
    c.setFont(BOLD_FONT, 20)
    c.drawCentredString(PAGE_WIDTH / 2, _y(20), title)

    c.setFont(BODY_FONT, 12)
    c.drawString(15 * mm, _y(40), f"Invoice #: {invoice['invoice_number']}")
    c.drawString(15 * mm, _y(47), f"Issue Date: {format_date(invoice['issue_date'])}")
    c.drawString(15 * mm, _y(54), f"Due Date: {format_date(invoice['due_date'])}")
    c.drawString(15 * mm, _y(61), f"Status: {invoice['status']}")

    c.setFont(BOLD_FONT, 12)
    c.drawString(120 * mm, _y(40), "Bill To:")
    c.setFont(BODY_FONT, 12)
    c.drawString(120 * mm, _y(47), invoice["customer_name"] or "N/A")

    top = 54
    for line in (invoice["customer_address"] or "").splitlines():
        c.drawString(120 * mm, _y(top), line)
        top += LINE
    if invoice["customer_email"]:
        c.drawString(120 * mm, _y(max(top, 75)), f"Email: {invoice['customer_email']}")
        top = max(top, 75) + LINE
    if invoice["customer_phone"]:
        c.drawString(120 * mm, _y(max(top, 82)), f"Phone: {invoice['customer_phone']}")


def _draw_items_header(c: canvas.Canvas, top: float) -> None:
    c.setFillColorRGB(240 / 255, 240 / 255, 240 / 255)
    c.rect(15 * mm, _y(top + 10), 180 * mm, 10 * mm, stroke=0, fill=1)
    c.setFillColorRGB(0, 0, 0)
    c.setFont(BOLD_FONT, 12)
    c.drawString(20 * mm, _y(top + 7), "Description")
    c.drawString(100 * mm, _y(top + 7), "Quantity")
    c.drawString(130 * mm, _y(top + 7), "Unit Price")
    c.drawString(170 * mm, _y(top + 7), "Amount")


def _new_page(c: canvas.Canvas) -> float:
    c.showPage()
    c.setFont(BODY_FONT, 12)
    return 20


def _quantity(value) -> str:
    # 2.0000 -> 2, 1.5000 -> 1.5
    text = format(value, "f")
    return text.rstrip("0").rstrip(".") if "." in text else text


def render_invoice_pdf(c: canvas.Canvas, invoice, items, title: str) -> None:
    _draw_header(c, invoice, title)
    _draw_items_header(c, 95)

    top = 115
    c.setFont(BODY_FONT, 12)
    if not items:
        c.drawString(20 * mm, _y(top), "No items on this invoice")
        top += 10

    for item in items:
        lines = simpleSplit(item["description"], BODY_FONT, 12, 70 * mm)
        for offset, line in enumerate(lines):
            c.drawString(20 * mm, _y(top + offset * LINE), line)
        c.drawString(100 * mm, _y(top), _quantity(item["quantity"]))
        c.drawString(130 * mm, _y(top), format_currency(item["unit_price"]))
        c.drawString(170 * mm, _y(top), format_currency(item["amount"]))

        top += max(len(lines) * LINE, 10)
        if top > PAGE_BOTTOM:
            top = _new_page(c)

    # Totals block needs about 30mm
    if top + 30 > PAGE_BOTTOM:
        top = _new_page(c)

    top += 10
    c.line(15 * mm, _y(top - 5), 195 * mm, _y(top - 5))
    c.setFont(BODY_FONT, 12)
    c.drawString(130 * mm, _y(top + 5), "Subtotal:")
    c.drawString(170 * mm, _y(top + 5), format_currency(invoice["subtotal"]))
    c.drawString(130 * mm, _y(top + 15), f"Tax ({_quantity(invoice['tax_rate'])}%):")
    c.drawString(170 * mm, _y(top + 15), format_currency(invoice["tax_amount"]))
    c.setFont(BOLD_FONT, 12)
    c.drawString(130 * mm, _y(top + 25), "Total:")
    c.drawString(170 * mm, _y(top + 25), format_currency(invoice["total_amount"]))

    if invoice["notes"]:
        top += 40
        note_lines = simpleSplit(invoice["notes"], BODY_FONT, 12, 180 * mm)
        if top + 10 + len(note_lines) * LINE > PAGE_BOTTOM:
            top = _new_page(c)
        c.setFont(BOLD_FONT, 12)
        c.drawString(15 * mm, _y(top), "Notes:")
        c.setFont(BODY_FONT, 12)
        for offset, line in enumerate(note_lines):
            c.drawString(15 * mm, _y(top + 10 + offset * LINE), line)

    c.showPage()


def export_invoice_pdf(
    store: Store,
    dispatcher: Optional[Dispatcher],
    invoice_id: int,
    target_dir: Path,
    file_name: Optional[str] = None,
    title: str = "Personal Invoice Manager",
    today: Optional[date] = None,
) -> ExportResult:
    invoice, items = fetch_invoice(store, invoice_id)

    target = resolve_target(
        target_dir, file_name, f"Invoice_{file_safe(invoice['invoice_number'])}.pdf"
    )
    with atomic_output(target, "wb") as fh:
        c = _NumberedCanvas(fh, pagesize=A4, generated_on=today or date.today())
        c.setTitle(f"Invoice {invoice['invoice_number']}")
        render_invoice_pdf(c, invoice, items, title)
        c.save()

    return finish_export(dispatcher, "PDF", target)
