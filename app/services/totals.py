# app/services/totals.py
"""
Derived money values of an invoice.

amount       = quantity * unit_price          (per item)
subtotal     = sum(amount)
tax_amount   = subtotal * tax_rate / 100
total_amount = subtotal + tax_amount

Each value is rounded half-up to whole cents as soon as it is produced, so the
stored record and any preview agree to the cent.
"""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Tuple

from app.models.invoices import InvoiceIn, InvoiceItemIn, TotalsOut

CENT = Decimal("0.01")
HUNDRED = Decimal("100")


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() first so floats like 0.1 don't drag their binary error along
    return Decimal(str(value))


def to_money(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def line_amount(quantity, unit_price) -> Decimal:
    return to_money(to_decimal(quantity) * to_decimal(unit_price))


@dataclass(frozen=True)
class Totals:
    item_amounts: Tuple[Decimal, ...]
    subtotal: Decimal
    tax_amount: Decimal
    total_amount: Decimal

    def to_out(self) -> TotalsOut:
        return TotalsOut(
            item_amounts=list(self.item_amounts),
            subtotal=self.subtotal,
            tax_amount=self.tax_amount,
            total_amount=self.total_amount,
        )


def compute_totals(items: Iterable[InvoiceItemIn], tax_rate) -> Totals:
    amounts = tuple(line_amount(item.quantity, item.unit_price) for item in items)
    subtotal = to_money(sum(amounts, Decimal("0")))
    tax_amount = to_money(subtotal * to_decimal(tax_rate) / HUNDRED)
    return Totals(
        item_amounts=amounts,
        subtotal=subtotal,
        tax_amount=tax_amount,
        total_amount=subtotal + tax_amount,
    )


def submitted_totals_disagree(invoice: InvoiceIn, totals: Totals) -> bool:
    """True when the caller sent totals that differ from the recomputed ones."""
    submitted = (
        (invoice.subtotal, totals.subtotal),
        (invoice.tax_amount, totals.tax_amount),
        (invoice.total_amount, totals.total_amount),
    )
    if any(given is not None and to_money(given) != expected for given, expected in submitted):
        return True

    return any(
        item.amount is not None and to_money(item.amount) != expected
        for item, expected in zip(invoice.items, totals.item_amounts)
    )
