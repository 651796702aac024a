# app/services/invoices.py
"""
The invoice aggregate: an invoice together with its line items.

All writes to ``invoices`` and ``invoice_items`` go through ``InvoiceService``.
Each write runs in a single transaction, and stored money columns are always
recomputed from the submitted items (see ``app.services.totals``).
Lifecycle notifications are sent only after the transaction has committed.
"""

import logging
from typing import List, Optional, Sequence

from sqlalchemy import or_, select, func

from app.db.schema import customers, invoice_items, invoice_notifications, invoices
from app.db.store import Store, StoreTransaction
from app.errors import NotFoundError, StoreError
from app.models.invoices import (
    InvoiceDetailOut,
    InvoiceIn,
    InvoiceItemIn,
    InvoiceItemOut,
    InvoiceListItem,
    InvoiceStatus,
    TotalsOut,
)
from app.notifications.dispatcher import Dispatcher, notify_safely
from app.notifications.events import InvoiceCreated, InvoicePaid
from app.services.totals import Totals, compute_totals, submitted_totals_disagree

logger = logging.getLogger(__name__)

# Used in notifications when the invoice's customer can't be found
PLACEHOLDER_CUSTOMER_NAME = "Customer"


class InvoiceService:
    def __init__(self, store: Store, dispatcher: Optional[Dispatcher] = None) -> None:
        self.store = store
        self.dispatcher = dispatcher

    # ---- Writes ----

    def create_invoice(self, invoice: InvoiceIn) -> int:
        totals = self._totals_for(invoice)

        with self.store.transaction() as tx:
            result = tx.execute(
                invoices.insert().values(**_invoice_values(invoice, totals))
            )
            invoice_id = result.inserted_id
            _insert_items(tx, invoice_id, invoice.items, totals)

        logger.info(
            "Invoice %s created with ID %s (%d items)",
            invoice.invoice_number, invoice_id, len(invoice.items),
        )

        notify_safely(
            self.dispatcher,
            InvoiceCreated(
                invoice_number=invoice.invoice_number,
                customer_name=self._customer_name(invoice.customer_id),
                amount=totals.total_amount,
            ),
        )
        return invoice_id

    def update_invoice(self, invoice_id: int, invoice: InvoiceIn) -> int:
        """
        Overwrite the invoice's fields and replace its whole item set.

        Raises NotFoundError (and changes nothing) when the invoice doesn't exist.
        """
        totals = self._totals_for(invoice)

        with self.store.transaction() as tx:
            previous = tx.get_one(
                select(invoices.c.status, invoices.c.customer_id, invoices.c.due_date)
                .where(invoices.c.id == invoice_id)
            )

            result = tx.execute(
                invoices.update()
                .where(invoices.c.id == invoice_id)
                .values(**_invoice_values(invoice, totals))
            )
            if previous is None or result.rows_affected == 0:
                raise NotFoundError(f"Invoice with ID {invoice_id} not found")

            tx.execute(
                invoice_items.delete().where(invoice_items.c.invoice_id == invoice_id)
            )
            _insert_items(tx, invoice_id, invoice.items, totals)

            # Let the due-date scan flag a rescheduled or reopened invoice again
            if (
                previous["due_date"] != invoice.due_date
                or previous["status"] != invoice.status.value
            ):
                tx.execute(
                    invoice_notifications.delete()
                    .where(invoice_notifications.c.invoice_id == invoice_id)
                )

        logger.info(
            "Invoice %s updated (ID %s, %d items)",
            invoice.invoice_number, invoice_id, len(invoice.items),
        )

        became_paid = (
            previous["status"] != InvoiceStatus.PAID.value
            and invoice.status == InvoiceStatus.PAID
        )
        if became_paid:
            notify_safely(
                self.dispatcher,
                InvoicePaid(
                    invoice_number=invoice.invoice_number,
                    customer_name=self._customer_name(invoice.customer_id),
                    amount=totals.total_amount,
                ),
            )

        return invoice_id

    def delete_invoice(self, invoice_id: int) -> bool:
        """Delete an invoice and its items. Unknown ids are not an error."""
        with self.store.transaction() as tx:
            # Explicit child deletes keep things tidy when FK cascades are off
            items = tx.execute(
                invoice_items.delete().where(invoice_items.c.invoice_id == invoice_id)
            )
            tx.execute(
                invoice_notifications.delete()
                .where(invoice_notifications.c.invoice_id == invoice_id)
            )
            result = tx.execute(invoices.delete().where(invoices.c.id == invoice_id))

        if result.rows_affected:
            logger.info("Invoice %s deleted with %d items", invoice_id, items.rows_affected)
        else:
            logger.info("Invoice %s not found, nothing deleted", invoice_id)
        return True

    # ---- Queries ----

    def get_invoice_with_items(self, invoice_id: int) -> InvoiceDetailOut:
        row = self.store.get_one(
            select(
                invoices,
                customers.c.name.label("customer_name"),
            )
            .select_from(invoices.outerjoin(customers))
            .where(invoices.c.id == invoice_id)
        )
        if row is None:
            raise NotFoundError(f"Invoice with ID {invoice_id} not found")

        items = self.store.get_many(
            select(
                invoice_items.c.id,
                invoice_items.c.description,
                invoice_items.c.quantity,
                invoice_items.c.unit_price,
                invoice_items.c.amount,
            )
            .where(invoice_items.c.invoice_id == invoice_id)
            .order_by(invoice_items.c.id)
        )

        return InvoiceDetailOut(
            **row,
            items=[InvoiceItemOut(**item) for item in items],
        )

    def list_invoices(self, search: Optional[str] = None) -> List[InvoiceListItem]:
        """
        All invoices with their customer's name, newest issue date first.

        ``search`` is a case-insensitive substring matched against the invoice
        number and the customer name.
        """
        stmt = (
            select(
                invoices.c.id,
                invoices.c.invoice_number,
                customers.c.name.label("customer_name"),
                invoices.c.issue_date,
                invoices.c.due_date,
                invoices.c.status,
                invoices.c.total_amount,
            )
            .select_from(invoices.outerjoin(customers))
            .order_by(invoices.c.issue_date.desc(), invoices.c.id.desc())
        )

        if search and search.strip():
            term = search.strip().lower()
            stmt = stmt.where(
                or_(
                    func.lower(invoices.c.invoice_number).contains(term, autoescape=True),
                    func.lower(customers.c.name).contains(term, autoescape=True),
                )
            )

        return [InvoiceListItem(**row) for row in self.store.get_many(stmt)]

    def preview_totals(self, items: Sequence[InvoiceItemIn], tax_rate) -> TotalsOut:
        return compute_totals(items, tax_rate).to_out()

    # ---- Helpers ----

    def _totals_for(self, invoice: InvoiceIn) -> Totals:
        totals = compute_totals(invoice.items, invoice.tax_rate)
        if submitted_totals_disagree(invoice, totals):
            logger.debug(
                "Invoice %s: submitted totals ignored, stored subtotal=%s tax=%s total=%s",
                invoice.invoice_number, totals.subtotal, totals.tax_amount, totals.total_amount,
            )
        return totals

    def _customer_name(self, customer_id: Optional[int]) -> str:
        # Only feeds notifications, so a failed lookup falls back to the placeholder
        if customer_id is None:
            return PLACEHOLDER_CUSTOMER_NAME
        try:
            row = self.store.get_one(
                select(customers.c.name).where(customers.c.id == customer_id)
            )
        except StoreError as exc:
            logger.warning("Customer lookup for notification failed: %s", exc)
            return PLACEHOLDER_CUSTOMER_NAME
        return row["name"] if row else PLACEHOLDER_CUSTOMER_NAME


def _invoice_values(invoice: InvoiceIn, totals: Totals) -> dict:
    return {
        "customer_id": invoice.customer_id,
        "invoice_number": invoice.invoice_number,
        "issue_date": invoice.issue_date,
        "due_date": invoice.due_date,
        "status": invoice.status.value,
        "notes": invoice.notes,
        "subtotal": totals.subtotal,
        "tax_rate": invoice.tax_rate,
        "tax_amount": totals.tax_amount,
        "total_amount": totals.total_amount,
    }


def _insert_items(
    tx: StoreTransaction,
    invoice_id: int,
    items: Sequence[InvoiceItemIn],
    totals: Totals,
) -> None:
    # One statement per item, in submission order, so ids follow that order
    for item, amount in zip(items, totals.item_amounts):
        tx.execute(
            invoice_items.insert().values(
                invoice_id=invoice_id,
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                amount=amount,
            )
        )
