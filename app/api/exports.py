# app/api/exports.py

from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_dispatcher, get_settings, get_store
from app.config import Settings
from app.db.store import Store
from app.notifications.dispatcher import Dispatcher
from app.exports import (
    ExportResult,
    export_invoice_items_csv,
    export_invoice_pdf,
    export_invoices_csv,
)

router = APIRouter(prefix="/exports", tags=["exports"])

FileNameQuery = Query(
    default=None,
    description="File name inside the export directory; a default is derived otherwise",
)


@router.post("/invoices/csv", response_model=ExportResult)
def export_all_invoices_csv(
    file_name: Optional[str] = FileNameQuery,
    store: Store = Depends(get_store),
    dispatcher: Optional[Dispatcher] = Depends(get_dispatcher),
    settings: Settings = Depends(get_settings),
) -> ExportResult:
    return export_invoices_csv(store, dispatcher, settings.export_dir, file_name=file_name)


@router.post("/invoices/{invoice_id}/items/csv", response_model=ExportResult)
def export_items_csv(
    invoice_id: int,
    file_name: Optional[str] = FileNameQuery,
    store: Store = Depends(get_store),
    dispatcher: Optional[Dispatcher] = Depends(get_dispatcher),
    settings: Settings = Depends(get_settings),
) -> ExportResult:
    return export_invoice_items_csv(
        store, dispatcher, invoice_id, settings.export_dir, file_name=file_name
    )


@router.post("/invoices/{invoice_id}/pdf", response_model=ExportResult)
def export_pdf(
    invoice_id: int,
    file_name: Optional[str] = FileNameQuery,
    store: Store = Depends(get_store),
    dispatcher: Optional[Dispatcher] = Depends(get_dispatcher),
    settings: Settings = Depends(get_settings),
) -> ExportResult:
    return export_invoice_pdf(
        store,
        dispatcher,
        invoice_id,
        settings.export_dir,
        file_name=file_name,
        title=settings.app_name,
    )
