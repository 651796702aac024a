# app/exports/csv_export.py

import csv
from datetime import date
from pathlib import Path
from typing import Optional

from app.db.store import Store
from app.errors import ExportError
from app.formatting import file_safe
from app.notifications.dispatcher import Dispatcher

from .files import (
    ExportResult,
    atomic_output,
    fetch_all_invoices,
    fetch_invoice,
    finish_export,
    resolve_target,
)

# (column in the query, header in the file)
INVOICE_COLUMNS = [
    ("invoice_number", "Invoice Number"),
    ("customer_name", "Customer Name"),
    ("customer_email", "Customer Email"),
    ("customer_phone", "Customer Phone"),
    ("issue_date", "Issue Date"),
    ("due_date", "Due Date"),
    ("status", "Status"),
    ("subtotal", "Subtotal"),
    ("tax_rate", "Tax Rate (%)"),
    ("tax_amount", "Tax Amount"),
    ("total_amount", "Total Amount"),
    ("notes", "Notes"),
]

ITEM_COLUMNS = [
    ("invoice_number", "Invoice Number"),
    ("description", "Description"),
    ("quantity", "Quantity"),
    ("unit_price", "Unit Price"),
    ("amount", "Amount"),
]


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def _write_csv(target: Path, columns, records) -> None:
    with atomic_output(target, "w", newline="", encoding="utf-8") as fh:
        writer = csv.writer(fh)
        writer.writerow([title for _, title in columns])
        for record in records:
            writer.writerow([_cell(record.get(key)) for key, _ in columns])


def export_invoices_csv(
    store: Store,
    dispatcher: Optional[Dispatcher],
    target_dir: Path,
    file_name: Optional[str] = None,
    today: Optional[date] = None,
) -> ExportResult:
    """Every invoice, newest first, one row each."""
    rows = fetch_all_invoices(store)
    if not rows:
        raise ExportError("No invoices found to export")

    today = today or date.today()
    target = resolve_target(
        target_dir, file_name, f"Invoices_Export_{today:%Y%m%d}.csv"
    )
    _write_csv(target, INVOICE_COLUMNS, rows)
    return finish_export(dispatcher, "CSV", target)


def export_invoice_items_csv(
    store: Store,
    dispatcher: Optional[Dispatcher],
    invoice_id: int,
    target_dir: Path,
    file_name: Optional[str] = None,
) -> ExportResult:
    """The line items of one invoice."""
    invoice, items = fetch_invoice(store, invoice_id)
    if not items:
        raise ExportError("No items found for this invoice")

    target = resolve_target(
        target_dir, file_name, f"Invoice_{file_safe(invoice['invoice_number'])}_Items.csv"
    )
    records = [
        {**item, "invoice_number": invoice["invoice_number"]}
        for item in items
    ]
    _write_csv(target, ITEM_COLUMNS, records)
    return finish_export(dispatcher, "CSV", target)
