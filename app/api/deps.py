# app/api/deps.py
"""
FastAPI dependencies resolving the collaborators built in ``create_app``.
"""

from typing import Optional

from fastapi import Request

from app.config import Settings
from app.db.store import Store
from app.notifications.dispatcher import Dispatcher
from app.services.customers import CustomerService
from app.services.invoices import InvoiceService


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_dispatcher(request: Request) -> Optional[Dispatcher]:
    return request.app.state.dispatcher


def get_invoice_service(request: Request) -> InvoiceService:
    return request.app.state.invoice_service


def get_customer_service(request: Request) -> CustomerService:
    return request.app.state.customer_service
