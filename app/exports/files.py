# app/exports/files.py

import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from pydantic import BaseModel
from sqlalchemy import select
from sqlalchemy.engine import RowMapping

from app.db.schema import customers, invoice_items, invoices
from app.db.store import Store
from app.errors import ExportError, StoreError
from app.notifications.dispatcher import Dispatcher, notify_safely
from app.notifications.events import ExportCompleted

logger = logging.getLogger(__name__)


class ExportResult(BaseModel):
    kind: str
    path: str
    file_name: str


def resolve_target(target_dir: Path, file_name: Optional[str], default_name: str) -> Path:
    """Target file inside ``target_dir``; any directory part of ``file_name`` is ignored."""
    name = Path(file_name).name if file_name else default_name
    if not name:
        name = default_name
    return Path(target_dir) / name


@contextmanager
def atomic_output(target: Path, mode: str = "w", **open_kwargs) -> Iterator:
    """
    Write to a temporary file next to ``target`` and move it into place only
    if the block succeeds. Nothing is left behind on failure.
    """
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=target.parent, prefix=f".{target.name}.", suffix=".part"
        )
    except OSError as exc:
        raise ExportError(f"Cannot write to {target.parent}: {exc}") from exc

    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, mode, **open_kwargs) as fh:
            yield fh
        os.replace(tmp_path, target)
    except OSError as exc:
        tmp_path.unlink(missing_ok=True)
        raise ExportError(f"Failed to save {target.name}: {exc}") from exc
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise


def finish_export(dispatcher: Optional[Dispatcher], kind: str, target: Path) -> ExportResult:
    logger.info("%s export saved to %s", kind, target)
    notify_safely(dispatcher, ExportCompleted(kind=kind, file_name=target.name))
    return ExportResult(kind=kind, path=str(target), file_name=target.name)


# ---- Read-only queries ----

def fetch_invoice(store: Store, invoice_id: int) -> Tuple[RowMapping, List[RowMapping]]:
    """Invoice joined with its customer's contact details, plus its items."""
    try:
        invoice = store.get_one(
            select(
                invoices,
                customers.c.name.label("customer_name"),
                customers.c.email.label("customer_email"),
                customers.c.phone.label("customer_phone"),
                customers.c.address.label("customer_address"),
            )
            .select_from(invoices.outerjoin(customers))
            .where(invoices.c.id == invoice_id)
        )
        if invoice is None:
            raise ExportError(f"Invoice with ID {invoice_id} not found")

        items = store.get_many(
            select(invoice_items)
            .where(invoice_items.c.invoice_id == invoice_id)
            .order_by(invoice_items.c.id)
        )
    except StoreError as exc:
        raise ExportError(f"Could not read invoice {invoice_id}: {exc}") from exc

    return invoice, items


def fetch_all_invoices(store: Store) -> List[RowMapping]:
    try:
        return store.get_many(
            select(
                invoices,
                customers.c.name.label("customer_name"),
                customers.c.email.label("customer_email"),
                customers.c.phone.label("customer_phone"),
            )
            .select_from(invoices.outerjoin(customers))
            .order_by(invoices.c.issue_date.desc(), invoices.c.id.desc())
        )
    except StoreError as exc:
        raise ExportError(f"Could not read invoices: {exc}") from exc
