"""Unit tests for the invoice aggregate service."""

from datetime import date
from decimal import Decimal

import pytest
from pydantic import ValidationError
from sqlalchemy import func, select

from app.db.engine import get_engine
from app.db.schema import invoice_items, invoices
from app.db.store import Store
from app.errors import NotFoundError, StoreError
from app.models.customers import CustomerIn
from app.models.invoices import InvoiceItemIn, InvoiceStatus
from app.notifications.events import InvoiceCreated, InvoicePaid
from app.services.invoices import PLACEHOLDER_CUSTOMER_NAME, InvoiceService

from .conftest import FailingDispatcher, RecordingDispatcher


def _item(description: str, quantity: str, unit_price: str) -> InvoiceItemIn:
    return InvoiceItemIn(
        description=description,
        quantity=Decimal(quantity),
        unit_price=Decimal(unit_price),
    )


def _count(store: Store, table, **where) -> int:
    stmt = select(func.count().label("n")).select_from(table)
    for column, value in where.items():
        stmt = stmt.where(table.c[column] == value)
    return store.get_one(stmt)["n"]


# ---- create ----

def test_create_then_get_round_trip(invoice_service: InvoiceService, make_invoice, customer_id) -> None:
    invoice_id = invoice_service.create_invoice(make_invoice())

    detail = invoice_service.get_invoice_with_items(invoice_id)

    assert detail.id == invoice_id
    assert detail.customer_id == customer_id
    assert detail.customer_name == "Acme Corp"
    assert detail.invoice_number == "INV-100"
    assert detail.issue_date == date(2024, 1, 1)
    assert detail.due_date == date(2024, 1, 31)
    assert detail.status == InvoiceStatus.PENDING
    assert detail.subtotal == Decimal("100")
    assert detail.tax_rate == Decimal("10")
    assert detail.tax_amount == Decimal("10")
    assert detail.total_amount == Decimal("110")

    assert len(detail.items) == 1
    item = detail.items[0]
    assert item.description == "Widget"
    assert item.quantity == Decimal("2")
    assert item.unit_price == Decimal("50")
    assert item.amount == Decimal("100")


def test_create_preserves_item_order(invoice_service: InvoiceService, make_invoice) -> None:
    items = [
        _item("Zeta", "1", "1"),
        _item("Alpha", "2", "2"),
        _item("Mu", "3", "3"),
        _item("Alpha", "1", "9.99"),
    ]
    invoice_id = invoice_service.create_invoice(make_invoice(items=items))

    detail = invoice_service.get_invoice_with_items(invoice_id)

    assert [(i.description, i.quantity, i.unit_price) for i in detail.items] == [
        (i.description, i.quantity, i.unit_price) for i in items
    ]


def test_create_recomputes_totals_from_items(invoice_service: InvoiceService, make_invoice) -> None:
    invoice = make_invoice(
        subtotal=Decimal("1"),
        tax_amount=Decimal("1"),
        total_amount=Decimal("1"),
        items=[
            InvoiceItemIn(
                description="Widget",
                quantity=Decimal("3"),
                unit_price=Decimal("25"),
                amount=Decimal("1"),
            )
        ],
    )

    detail = invoice_service.get_invoice_with_items(invoice_service.create_invoice(invoice))

    assert detail.items[0].amount == Decimal("75")
    assert detail.subtotal == Decimal("75")
    assert detail.tax_amount == Decimal("7.50")
    assert detail.total_amount == Decimal("82.50")


def test_create_without_items_is_allowed(invoice_service: InvoiceService, make_invoice) -> None:
    invoice_id = invoice_service.create_invoice(make_invoice(items=[]))

    detail = invoice_service.get_invoice_with_items(invoice_id)
    assert detail.items == []
    assert detail.total_amount == Decimal("0")


def test_negative_tax_rate_is_stored(invoice_service: InvoiceService, make_invoice) -> None:
    invoice_id = invoice_service.create_invoice(make_invoice(tax_rate=Decimal("-5")))

    detail = invoice_service.get_invoice_with_items(invoice_id)
    assert detail.tax_rate == Decimal("-5")
    assert detail.subtotal == Decimal("100")
    assert detail.tax_amount == Decimal("-5")
    assert detail.total_amount == Decimal("95")


def test_items_come_back_exactly_as_submitted(invoice_service: InvoiceService, make_invoice) -> None:
    invoice_id = invoice_service.create_invoice(
        make_invoice(items=[_item("Consulting", "0.3333", "300.00")], tax_rate=Decimal("0"))
    )

    item = invoice_service.get_invoice_with_items(invoice_id).items[0]
    assert item.quantity == Decimal("0.3333")
    assert item.unit_price == Decimal("300")
    assert item.amount == Decimal("99.99")
    assert item.amount == (item.quantity * item.unit_price).quantize(Decimal("0.01"))


@pytest.mark.parametrize(
    "quantity, unit_price",
    [("0.33333", "300"), ("1", "10.005")],
)
def test_item_precision_beyond_storage_scale_is_rejected(quantity: str, unit_price: str) -> None:
    with pytest.raises(ValidationError):
        _item("Consulting", quantity, unit_price)


def test_create_sends_created_event(
    invoice_service: InvoiceService, dispatcher: RecordingDispatcher, make_invoice
) -> None:
    invoice_service.create_invoice(make_invoice())

    assert dispatcher.events == [
        InvoiceCreated(invoice_number="INV-100", customer_name="Acme Corp", amount=Decimal("110"))
    ]


def test_create_uses_placeholder_for_missing_customer(db_url: str, make_invoice) -> None:
    # Without FK enforcement the store accepts an unknown customer id
    store = Store(get_engine(db_url, foreign_keys=False))
    store.create_schema()
    dispatcher = RecordingDispatcher()
    service = InvoiceService(store, dispatcher)

    invoice_id = service.create_invoice(make_invoice(customer_id=9999))

    assert service.get_invoice_with_items(invoice_id).customer_name is None
    assert dispatcher.events[0].customer_name == PLACEHOLDER_CUSTOMER_NAME
    store.dispose()


def test_unknown_customer_rejected_when_foreign_keys_enforced(
    invoice_service: InvoiceService, store: Store, make_invoice
) -> None:
    with pytest.raises(StoreError):
        invoice_service.create_invoice(make_invoice(customer_id=9999))

    assert _count(store, invoices) == 0


def test_notification_failure_does_not_fail_create(store: Store, make_invoice) -> None:
    failing = FailingDispatcher()
    service = InvoiceService(store, failing)

    invoice_id = service.create_invoice(make_invoice())

    assert failing.attempts == 1
    assert service.get_invoice_with_items(invoice_id).invoice_number == "INV-100"


def test_create_is_atomic_when_an_item_insert_fails(
    invoice_service: InvoiceService,
    store: Store,
    dispatcher: RecordingDispatcher,
    make_invoice,
) -> None:
    invoice = make_invoice()
    # Skips validation so the second insert trips the NOT NULL constraint
    invoice.items.append(
        InvoiceItemIn.model_construct(
            description=None, quantity=Decimal("1"), unit_price=Decimal("5"), amount=None
        )
    )

    with pytest.raises(StoreError):
        invoice_service.create_invoice(invoice)

    assert _count(store, invoices) == 0
    assert _count(store, invoice_items) == 0
    assert dispatcher.events == []


# ---- update ----

def test_update_replaces_all_items(invoice_service: InvoiceService, store: Store, make_invoice) -> None:
    invoice_id = invoice_service.create_invoice(
        make_invoice(items=[_item("A", "1", "1"), _item("B", "1", "2"), _item("C", "1", "3")])
    )

    invoice_service.update_invoice(
        invoice_id, make_invoice(items=[_item("D", "4", "10"), _item("E", "1", "5")])
    )

    detail = invoice_service.get_invoice_with_items(invoice_id)
    assert [item.description for item in detail.items] == ["D", "E"]
    assert _count(store, invoice_items, invoice_id=invoice_id) == 2
    assert detail.subtotal == Decimal("45")
    assert detail.total_amount == Decimal("49.50")


def test_update_overwrites_scalar_fields(invoice_service: InvoiceService, make_invoice) -> None:
    invoice_id = invoice_service.create_invoice(make_invoice())

    invoice_service.update_invoice(
        invoice_id,
        make_invoice(
            invoice_number="INV-100-B",
            due_date=date(2024, 2, 15),
            status="Cancelled",
            notes="Customer cancelled",
            tax_rate=Decimal("0"),
        ),
    )

    detail = invoice_service.get_invoice_with_items(invoice_id)
    assert detail.invoice_number == "INV-100-B"
    assert detail.due_date == date(2024, 2, 15)
    assert detail.status == InvoiceStatus.CANCELLED
    assert detail.notes == "Customer cancelled"
    assert detail.tax_amount == Decimal("0")
    assert detail.total_amount == Decimal("100")


def test_update_missing_invoice_raises_not_found(
    invoice_service: InvoiceService, store: Store, make_invoice
) -> None:
    with pytest.raises(NotFoundError):
        invoice_service.update_invoice(12345, make_invoice())

    assert _count(store, invoice_items) == 0


@pytest.mark.parametrize(
    "before, after, expected_events",
    [
        ("Pending", "Paid", 1),
        ("Paid", "Paid", 0),
        ("Cancelled", "Paid", 1),
        ("Overdue", "Paid", 1),
        ("Paid", "Pending", 0),
        ("Pending", "Cancelled", 0),
    ],
)
def test_paid_event_only_on_transition_into_paid(
    invoice_service: InvoiceService,
    dispatcher: RecordingDispatcher,
    make_invoice,
    before: str,
    after: str,
    expected_events: int,
) -> None:
    invoice_id = invoice_service.create_invoice(make_invoice(status=before))

    invoice_service.update_invoice(invoice_id, make_invoice(status=after))

    paid = dispatcher.of_type(InvoicePaid)
    assert len(paid) == expected_events
    if paid:
        assert paid[0] == InvoicePaid(
            invoice_number="INV-100", customer_name="Acme Corp", amount=Decimal("110")
        )


def test_update_rolls_back_when_new_items_fail(
    invoice_service: InvoiceService, make_invoice
) -> None:
    invoice_id = invoice_service.create_invoice(make_invoice())
    replacement = make_invoice(invoice_number="INV-CHANGED", items=[_item("New", "1", "1")])
    replacement.items.append(
        InvoiceItemIn.model_construct(
            description=None, quantity=Decimal("1"), unit_price=Decimal("1"), amount=None
        )
    )

    with pytest.raises(StoreError):
        invoice_service.update_invoice(invoice_id, replacement)

    detail = invoice_service.get_invoice_with_items(invoice_id)
    assert detail.invoice_number == "INV-100"
    assert [item.description for item in detail.items] == ["Widget"]


# ---- delete ----

def test_delete_removes_invoice_and_items(
    invoice_service: InvoiceService, store: Store, make_invoice
) -> None:
    invoice_id = invoice_service.create_invoice(
        make_invoice(items=[_item("A", "1", "1"), _item("B", "2", "2")])
    )

    assert invoice_service.delete_invoice(invoice_id) is True

    assert _count(store, invoice_items, invoice_id=invoice_id) == 0
    with pytest.raises(NotFoundError):
        invoice_service.get_invoice_with_items(invoice_id)


def test_delete_nonexistent_invoice_succeeds(invoice_service: InvoiceService) -> None:
    assert invoice_service.delete_invoice(987654) is True


def test_delete_leaves_other_invoices_alone(invoice_service: InvoiceService, make_invoice) -> None:
    keep = invoice_service.create_invoice(make_invoice(invoice_number="KEEP"))
    drop = invoice_service.create_invoice(make_invoice(invoice_number="DROP"))

    invoice_service.delete_invoice(drop)

    assert invoice_service.get_invoice_with_items(keep).items[0].description == "Widget"


# ---- queries ----

def test_get_missing_invoice_raises_not_found(invoice_service: InvoiceService) -> None:
    with pytest.raises(NotFoundError):
        invoice_service.get_invoice_with_items(1)


def test_list_orders_by_issue_date_desc(invoice_service: InvoiceService, make_invoice) -> None:
    invoice_service.create_invoice(make_invoice(invoice_number="OLD", issue_date=date(2023, 6, 1)))
    invoice_service.create_invoice(make_invoice(invoice_number="NEW", issue_date=date(2024, 3, 1)))
    invoice_service.create_invoice(make_invoice(invoice_number="MID", issue_date=date(2023, 12, 1)))

    listed = invoice_service.list_invoices()

    assert [row.invoice_number for row in listed] == ["NEW", "MID", "OLD"]
    assert all(row.customer_name == "Acme Corp" for row in listed)
    assert listed[0].total_amount == Decimal("110")


def test_list_search_matches_number_or_customer(
    invoice_service: InvoiceService, customer_service, make_invoice
) -> None:
    globex = customer_service.create_customer(CustomerIn(name="Globex"))
    invoice_service.create_invoice(make_invoice(invoice_number="INV-7"))
    invoice_service.create_invoice(make_invoice(invoice_number="Q-1", customer_id=globex))

    assert [row.invoice_number for row in invoice_service.list_invoices(search="inv")] == ["INV-7"]
    assert [row.invoice_number for row in invoice_service.list_invoices(search="GLOBEX")] == ["Q-1"]
    assert invoice_service.list_invoices(search="%") == []
    assert len(invoice_service.list_invoices(search="  ")) == 2


def test_preview_totals_matches_stored_values(invoice_service: InvoiceService, make_invoice) -> None:
    invoice = make_invoice(items=[_item("A", "1.5", "19.99"), _item("B", "3", "0.33")])

    preview = invoice_service.preview_totals(invoice.items, invoice.tax_rate)
    stored = invoice_service.get_invoice_with_items(invoice_service.create_invoice(invoice))

    assert preview.item_amounts == [item.amount for item in stored.items]
    assert preview.subtotal == stored.subtotal
    assert preview.tax_amount == stored.tax_amount
    assert preview.total_amount == stored.total_amount
