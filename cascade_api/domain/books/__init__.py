"""Bookkeeping domain: invoices, expenses and billing clients"""

from .router import clients_router, expenses_router, invoices_router

__all__ = ["invoices_router", "expenses_router", "clients_router"]
