# app/notifications/events.py
"""
Lifecycle events handed to the notification dispatcher.

Each event knows how to render its own title and message.
"""

from datetime import date
from decimal import Decimal
from typing import ClassVar

from pydantic import BaseModel

from app.formatting import format_currency, format_date


class NotificationEvent(BaseModel):
    title: ClassVar[str] = "Notification"

    @property
    def message(self) -> str:
        raise NotImplementedError


class InvoiceEvent(NotificationEvent):
    invoice_number: str
    customer_name: str
    amount: Decimal


class InvoiceCreated(InvoiceEvent):
    title: ClassVar[str] = "Invoice Created"

    @property
    def message(self) -> str:
        return (
            f"Invoice #{self.invoice_number} for {self.customer_name} has been created.\n"
            f"Amount: {format_currency(self.amount)}"
        )


class InvoicePaid(InvoiceEvent):
    title: ClassVar[str] = "Payment Received"

    @property
    def message(self) -> str:
        return (
            f"Invoice #{self.invoice_number} for {self.customer_name} has been marked as paid.\n"
            f"Amount: {format_currency(self.amount)}"
        )


class InvoiceDueSoon(InvoiceEvent):
    title: ClassVar[str] = "Invoice Due Soon"
    due_date: date

    @property
    def message(self) -> str:
        return (
            f"Invoice #{self.invoice_number} for {self.customer_name} is due on "
            f"{format_date(self.due_date)}.\nAmount: {format_currency(self.amount)}"
        )


class InvoiceOverdue(InvoiceEvent):
    title: ClassVar[str] = "Invoice Overdue"
    due_date: date

    @property
    def message(self) -> str:
        return (
            f"Invoice #{self.invoice_number} for {self.customer_name} was due on "
            f"{format_date(self.due_date)}.\nAmount: {format_currency(self.amount)}"
        )


class ExportCompleted(NotificationEvent):
    title: ClassVar[str] = "Export Completed"
    kind: str
    file_name: str

    @property
    def message(self) -> str:
        return f"Your {self.kind} export has been saved as {self.file_name}"
