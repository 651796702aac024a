# app/api/invoices.py

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from app.api.deps import get_invoice_service
from app.errors import NotFoundError
from app.models.invoices import (
    DeleteResult,
    InvoiceDetailOut,
    InvoiceIdOut,
    InvoiceIn,
    InvoiceListItem,
    TotalsIn,
    TotalsOut,
)
from app.services.invoices import InvoiceService

router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.get("/", response_model=List[InvoiceListItem])
def list_invoices(
    search: Optional[str] = Query(
        default=None,
        description="Case-insensitive match on invoice number or customer name",
    ),
    service: InvoiceService = Depends(get_invoice_service),
) -> List[InvoiceListItem]:
    """
    Returns invoices with their customer name, newest issue date first.
    """
    return service.list_invoices(search=search)


@router.post("/preview-totals", response_model=TotalsOut)
def preview_totals(
    payload: TotalsIn,
    service: InvoiceService = Depends(get_invoice_service),
) -> TotalsOut:
    """
    Totals the server would store for these items and tax rate.
    """
    return service.preview_totals(payload.items, payload.tax_rate)


@router.post("/", response_model=InvoiceIdOut, status_code=status.HTTP_201_CREATED)
def create_invoice(
    invoice: InvoiceIn,
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceIdOut:
    return InvoiceIdOut(id=service.create_invoice(invoice))


@router.get("/{invoice_id}", response_model=InvoiceDetailOut)
def get_invoice(
    invoice_id: int,
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceDetailOut:
    """
    Look up a single invoice with its line items.
    """
    try:
        return service.get_invoice_with_items(invoice_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@router.put("/{invoice_id}", response_model=InvoiceIdOut)
def update_invoice(
    invoice_id: int,
    invoice: InvoiceIn,
    service: InvoiceService = Depends(get_invoice_service),
) -> InvoiceIdOut:
    """
    Replace the invoice's fields and its whole set of items.
    """
    try:
        return InvoiceIdOut(id=service.update_invoice(invoice_id, invoice))
    except NotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc))


@router.delete("/{invoice_id}", response_model=DeleteResult)
def delete_invoice(
    invoice_id: int,
    service: InvoiceService = Depends(get_invoice_service),
) -> DeleteResult:
    return DeleteResult(success=service.delete_invoice(invoice_id))
