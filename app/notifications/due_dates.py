# app/notifications/due_dates.py
"""
Due-date scan: flags pending invoices that are due soon or already overdue.

The scan never changes an invoice's status. Each (invoice, condition) pair is
notified once; the pairs already announced are kept in
``invoice_notifications``. The scheduler runs a scan at start-up and then on a
fixed interval on its own thread.
"""

import logging
import threading
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy import and_, select
from sqlalchemy.dialects.sqlite import insert as sqlite_insert

from app.db.schema import customers, invoice_notifications, invoices
from app.db.store import Store
from app.errors import StoreError
from app.models.invoices import InvoiceStatus
from app.notifications.dispatcher import Dispatcher, notify_safely
from app.notifications.events import InvoiceDueSoon, InvoiceOverdue
from app.services.invoices import PLACEHOLDER_CUSTOMER_NAME

logger = logging.getLogger(__name__)

DUE_SOON = "due_soon"
OVERDUE = "overdue"


@dataclass
class ScanResult:
    due_soon: List[InvoiceDueSoon] = field(default_factory=list)
    overdue: List[InvoiceOverdue] = field(default_factory=list)


class DueDateScanner:
    def __init__(
        self,
        store: Store,
        dispatcher: Optional[Dispatcher],
        due_soon_days: int = 3,
    ) -> None:
        self.store = store
        self.dispatcher = dispatcher
        self.due_soon_days = due_soon_days

    def scan(self, today: Optional[date] = None) -> ScanResult:
        """
        Notify about pending invoices due within ``due_soon_days`` (today
        included) or due before today. Failures are logged, never raised.
        """
        if today is None:
            today = date.today()
        horizon = today + timedelta(days=self.due_soon_days)

        try:
            due_soon_rows = self._unnotified(
                DUE_SOON, invoices.c.due_date.between(today, horizon)
            )
            overdue_rows = self._unnotified(OVERDUE, invoices.c.due_date < today)
        except StoreError:
            logger.exception("Due-date scan failed")
            return ScanResult()

        result = ScanResult()
        for row in due_soon_rows:
            event = InvoiceDueSoon(**_event_fields(row))
            if self._announce(row["id"], DUE_SOON, event, today):
                result.due_soon.append(event)

        for row in overdue_rows:
            event = InvoiceOverdue(**_event_fields(row))
            if self._announce(row["id"], OVERDUE, event, today):
                result.overdue.append(event)

        logger.info(
            "Due-date scan for %s: %d due soon, %d overdue",
            today, len(result.due_soon), len(result.overdue),
        )
        return result

    def _unnotified(self, condition: str, due_clause):
        already_notified = and_(
            invoice_notifications.c.invoice_id == invoices.c.id,
            invoice_notifications.c.condition == condition,
        )
        stmt = (
            select(
                invoices.c.id,
                invoices.c.invoice_number,
                invoices.c.due_date,
                invoices.c.total_amount,
                customers.c.name.label("customer_name"),
            )
            .select_from(
                invoices
                .outerjoin(customers)
                .outerjoin(invoice_notifications, already_notified)
            )
            .where(
                invoices.c.status == InvoiceStatus.PENDING.value,
                due_clause,
                invoice_notifications.c.invoice_id.is_(None),
            )
            .order_by(invoices.c.due_date, invoices.c.id)
        )
        return self.store.get_many(stmt)

    def _announce(self, invoice_id: int, condition: str, event, today: date) -> bool:
        if not notify_safely(self.dispatcher, event):
            # Not recorded, so the next scan tries again
            return False

        stmt = (
            sqlite_insert(invoice_notifications)
            .values(invoice_id=invoice_id, condition=condition, notified_on=today)
            .on_conflict_do_nothing(
                index_elements=[
                    invoice_notifications.c.invoice_id,
                    invoice_notifications.c.condition,
                ]
            )
        )
        try:
            self.store.execute(stmt)
        except StoreError:
            logger.exception(
                "Could not record %s notification for invoice %s", condition, invoice_id
            )
        return True


def _event_fields(row) -> dict:
    return {
        "invoice_number": row["invoice_number"],
        "customer_name": row["customer_name"] or PLACEHOLDER_CUSTOMER_NAME,
        "due_date": row["due_date"],
        "amount": row["total_amount"],
    }


class DueDateScheduler:
    """Runs ``scanner.scan()`` at start and then every ``interval_seconds``."""

    def __init__(self, scanner: DueDateScanner, interval_seconds: float = 24 * 60 * 60) -> None:
        self.scanner = scanner
        self.interval_seconds = interval_seconds
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="due-date-scan", daemon=True
        )
        self._thread.start()
        logger.info("Due-date scan scheduled every %s seconds", self.interval_seconds)

    def stop(self, timeout: float = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self.scanner.scan()
            except Exception:
                # Runs unattended; keep the timer alive
                logger.exception("Unexpected error in due-date scan")
            if self._stop.wait(self.interval_seconds):
                break
