# app/models/invoices.py

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class InvoiceStatus(str, Enum):
    PENDING = "Pending"
    PAID = "Paid"
    OVERDUE = "Overdue"
    CANCELLED = "Cancelled"


class InvoiceItemIn(BaseModel):
    description: str = Field(..., min_length=1)
    # Scales match the invoice_items columns so items are stored as submitted
    quantity: Decimal = Field(..., gt=0, decimal_places=4)
    unit_price: Decimal = Field(..., ge=0, decimal_places=2)
    # Accepted for compatibility; the stored amount is always quantity * unit_price
    amount: Optional[Decimal] = None


class InvoiceIn(BaseModel):
    customer_id: int
    invoice_number: str = Field(..., min_length=1)
    issue_date: date
    due_date: date
    status: InvoiceStatus = InvoiceStatus.PENDING
    notes: Optional[str] = None
    tax_rate: Decimal = Field(
        default=Decimal("0"),
        decimal_places=4,
        description="Percentage, e.g. 10 for 10%",
    )
    # Accepted for compatibility; recomputed from the items and tax_rate
    subtotal: Optional[Decimal] = None
    tax_amount: Optional[Decimal] = None
    total_amount: Optional[Decimal] = None
    items: List[InvoiceItemIn] = Field(default_factory=list)


class InvoiceItemOut(BaseModel):
    id: int
    description: str
    quantity: Decimal
    unit_price: Decimal
    amount: Decimal


class InvoiceDetailOut(BaseModel):
    id: int
    customer_id: Optional[int] = None
    customer_name: Optional[str] = None
    invoice_number: str
    issue_date: date
    due_date: date
    status: InvoiceStatus
    notes: Optional[str] = None
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total_amount: Decimal
    items: List[InvoiceItemOut]


class InvoiceListItem(BaseModel):
    id: int
    invoice_number: str
    customer_name: Optional[str] = None
    issue_date: date
    due_date: date
    status: InvoiceStatus
    total_amount: Decimal


class InvoiceIdOut(BaseModel):
    id: int


class DeleteResult(BaseModel):
    success: bool


class TotalsIn(BaseModel):
    tax_rate: Decimal = Decimal("0")
    items: List[InvoiceItemIn] = Field(default_factory=list)


class TotalsOut(BaseModel):
    item_amounts: List[Decimal]
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal
