"""Shared fixtures: a throwaway SQLite store per test and a recording dispatcher."""

from datetime import date
from decimal import Decimal
from typing import List

import pytest

from app.db.engine import get_engine
from app.db.store import Store
from app.errors import NotificationError
from app.models.customers import CustomerIn
from app.models.invoices import InvoiceIn, InvoiceItemIn
from app.services.customers import CustomerService
from app.services.invoices import InvoiceService


class RecordingDispatcher:
    """Keeps every event instead of showing it."""

    def __init__(self) -> None:
        self.events: List = []

    def dispatch(self, event) -> None:
        self.events.append(event)

    def of_type(self, event_type) -> List:
        return [event for event in self.events if isinstance(event, event_type)]


class FailingDispatcher:
    def __init__(self) -> None:
        self.attempts = 0

    def dispatch(self, event) -> None:
        self.attempts += 1
        raise NotificationError("no notification daemon")


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'invoices.db'}"


@pytest.fixture
def store(db_url):
    store = Store(get_engine(db_url))
    store.create_schema()
    yield store
    store.dispose()


@pytest.fixture
def dispatcher() -> RecordingDispatcher:
    return RecordingDispatcher()


@pytest.fixture
def invoice_service(store: Store, dispatcher: RecordingDispatcher) -> InvoiceService:
    return InvoiceService(store, dispatcher)


@pytest.fixture
def customer_service(store: Store) -> CustomerService:
    return CustomerService(store)


@pytest.fixture
def customer_id(customer_service: CustomerService) -> int:
    return customer_service.create_customer(
        CustomerIn(
            name="Acme Corp",
            email="billing@acme.com",
            phone="555-0100",
            address="1 Main Street\nSpringfield",
        )
    )


@pytest.fixture
def make_invoice(customer_id: int):
    """Build an InvoiceIn; keyword arguments override the INV-100 defaults."""

    def _make(**overrides) -> InvoiceIn:
        fields = {
            "customer_id": customer_id,
            "invoice_number": "INV-100",
            "issue_date": date(2024, 1, 1),
            "due_date": date(2024, 1, 31),
            "status": "Pending",
            "subtotal": Decimal("100"),
            "tax_rate": Decimal("10"),
            "tax_amount": Decimal("10"),
            "total_amount": Decimal("110"),
            "items": [
                InvoiceItemIn(
                    description="Widget",
                    quantity=Decimal("2"),
                    unit_price=Decimal("50"),
                    amount=Decimal("100"),
                )
            ],
        }
        fields.update(overrides)
        return InvoiceIn(**fields)

    return _make
