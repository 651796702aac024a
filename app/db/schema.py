# app/db/schema.py

from sqlalchemy import (
    MetaData, Table, Column, Integer, String,
    Numeric, Date, ForeignKey, CheckConstraint, Text, PrimaryKeyConstraint,
)

metadata = MetaData()

customers = Table(
    "customers",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String, nullable=False),
    Column("email", String, nullable=True),
    Column("phone", String, nullable=True),
    Column("address", Text, nullable=True),
)

invoices = Table(
    "invoices",
    metadata,
    Column("id", Integer, primary_key=True),
    # Required by the write contract, nullable in storage
    Column("customer_id", Integer, ForeignKey("customers.id"), nullable=True),
    # Not unique: uniqueness is left to the caller
    Column("invoice_number", Text, nullable=False),
    Column("issue_date", Date, nullable=False),
    Column("due_date", Date, nullable=False),
    Column("status", Text, nullable=False, server_default="Pending"),
    Column("notes", Text),
    Column("subtotal", Numeric(18, 2), nullable=False, server_default="0"),
    Column("tax_rate", Numeric(9, 4), nullable=False, server_default="0"),
    Column("tax_amount", Numeric(18, 2), nullable=False, server_default="0"),
    Column("total_amount", Numeric(18, 2), nullable=False, server_default="0"),
    CheckConstraint("subtotal >= 0", name="ck_invoices_subtotal_nonneg"),
    # tax_rate is not clamped; a negative rate gives a negative tax_amount
)

invoice_items = Table(
    "invoice_items",
    metadata,
    Column("id", Integer, primary_key=True),
    Column(
        "invoice_id",
        Integer,
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("description", Text, nullable=False),
    Column("quantity", Numeric(18, 4), nullable=False),
    Column("unit_price", Numeric(18, 2), nullable=False),
    Column("amount", Numeric(18, 2), nullable=False),
    CheckConstraint("quantity > 0", name="ck_invoice_items_quantity_pos"),
    CheckConstraint("unit_price >= 0", name="ck_invoice_items_unit_price_nonneg"),
)

# (invoice, condition) pairs the due-date scan has already notified about
invoice_notifications = Table(
    "invoice_notifications",
    metadata,
    Column(
        "invoice_id",
        Integer,
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("condition", Text, nullable=False),
    Column("notified_on", Date, nullable=False),
    PrimaryKeyConstraint("invoice_id", "condition", name="pk_invoice_notifications"),
)
