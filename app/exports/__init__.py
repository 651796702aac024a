# app/exports/__init__.py
"""
File exports of invoice data. Exports only read from the store.
"""

from .csv_export import export_invoice_items_csv, export_invoices_csv
from .files import ExportResult
from .pdf_export import export_invoice_pdf

__all__ = [
    "ExportResult",
    "export_invoice_items_csv",
    "export_invoice_pdf",
    "export_invoices_csv",
]
