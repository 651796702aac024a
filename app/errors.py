# app/errors.py
"""
Error taxonomy shared by the store, the services and the export adapters.

Input validation (e.g. an empty customer name) is not represented here: it is
rejected by the pydantic request models before a service is ever called.
"""


class InvoiceAppError(Exception):
    """Base class for every error raised by this package."""


class NotFoundError(InvoiceAppError):
    """The requested entity does not exist."""


class StoreError(InvoiceAppError):
    """Constraint violation, I/O failure or malformed statement in the store.

    Always aborts the enclosing transaction.
    """


class ExportError(InvoiceAppError):
    """An export could not be produced or written."""


class NotificationError(InvoiceAppError):
    """A notification could not be delivered.

    Callers must never let this escape past a committed operation.
    """
