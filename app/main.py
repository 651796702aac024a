# app/main.py

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.api.customers import router as customers_router
from app.api.exports import router as exports_router
from app.api.invoices import router as invoices_router
from app.config import Settings, get_settings
from app.db.engine import get_engine
from app.db.store import Store
from app.errors import ExportError, StoreError
from app.logging_config import configure_logging
from app.notifications.dispatcher import Dispatcher, NotificationDispatcher
from app.notifications.due_dates import DueDateScanner, DueDateScheduler
from app.services.customers import CustomerService
from app.services.invoices import InvoiceService

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    dispatcher: Optional[Dispatcher] = None,
) -> FastAPI:
    """
    Build the API with its store, services and due-date scheduler.

    Everything is constructed here and reached through ``app.state``.
    """
    settings = settings or get_settings()
    configure_logging(settings)

    store = Store(get_engine(settings.database_url, settings.sqlite_foreign_keys))
    if dispatcher is None:
        dispatcher = NotificationDispatcher.from_settings(settings)
    scheduler = DueDateScheduler(
        DueDateScanner(store, dispatcher, due_soon_days=settings.due_soon_days),
        interval_seconds=settings.due_scan_interval_seconds,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting %s", settings.app_name)
        store.create_schema()
        if settings.due_scan_enabled:
            scheduler.start()

        yield

        logger.info("Shutting down %s", settings.app_name)
        scheduler.stop()
        store.dispose()

    app = FastAPI(
        title=f"{settings.app_name} API",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.store = store
    app.state.dispatcher = dispatcher
    app.state.scheduler = scheduler
    app.state.invoice_service = InvoiceService(store, dispatcher)
    app.state.customer_service = CustomerService(store)

    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    @app.exception_handler(ExportError)
    async def export_error_handler(request: Request, exc: ExportError):
        logger.error("Export failed: %s", exc)
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError):
        return JSONResponse(
            status_code=500,
            content={"detail": f"Database error: {exc}"},
        )

    app.include_router(customers_router)
    app.include_router(invoices_router)
    app.include_router(exports_router)

    return app


app = create_app()
