"""Books routers - FastAPI endpoints for invoices, expenses and billing clients"""

from fastapi import APIRouter, Depends, Response
from sqlalchemy.orm import Session

from ...database import get_db
from .schemas import (
    BooksClientPayload,
    BooksClientResponse,
    ExpensePayload,
    ExpenseResponse,
    InvoicePayload,
    InvoiceResponse,
)
from .service import BooksClientService, ExpenseService, InvoiceService

invoices_router = APIRouter(prefix="/invoices", tags=["Invoices"])
expenses_router = APIRouter(prefix="/expenses", tags=["Expenses"])
clients_router = APIRouter(prefix="/clients", tags=["Clients"])


def get_invoice_service(db: Session = Depends(get_db)) -> InvoiceService:
    return InvoiceService(db)


def get_expense_service(db: Session = Depends(get_db)) -> ExpenseService:
    return ExpenseService(db)


def get_books_client_service(db: Session = Depends(get_db)) -> BooksClientService:
    return BooksClientService(db)


# ============================================================================
# INVOICES
# ============================================================================


@invoices_router.get("", response_model=list[InvoiceResponse])
async def list_invoices(service: InvoiceService = Depends(get_invoice_service)):
    """All invoices, newest invoice date first"""
    return service.list_invoices()


@invoices_router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(invoice_id: str, service: InvoiceService = Depends(get_invoice_service)):
    return service.get_invoice(invoice_id)


@invoices_router.post("", response_model=InvoiceResponse, status_code=201)
async def create_invoice(
    data: InvoicePayload, service: InvoiceService = Depends(get_invoice_service)
):
    return service.create_invoice(data)


@invoices_router.put("/{invoice_id}", response_model=InvoiceResponse)
async def replace_invoice(
    invoice_id: str,
    data: InvoicePayload,
    service: InvoiceService = Depends(get_invoice_service),
):
    return service.replace_invoice(invoice_id, data)


@invoices_router.delete("/{invoice_id}", status_code=204)
async def delete_invoice(invoice_id: str, service: InvoiceService = Depends(get_invoice_service)):
    """Idempotent: 204 even when the invoice does not exist"""
    service.delete_invoice(invoice_id)
    return Response(status_code=204)


# ============================================================================
# EXPENSES
# ============================================================================


@expenses_router.get("", response_model=list[ExpenseResponse])
async def list_expenses(service: ExpenseService = Depends(get_expense_service)):
    return service.list_expenses()


@expenses_router.post("", response_model=ExpenseResponse, status_code=201)
async def create_expense(
    data: ExpensePayload, service: ExpenseService = Depends(get_expense_service)
):
    return service.create_expense(data)


@expenses_router.delete("/{expense_id}", status_code=204)
async def delete_expense(expense_id: str, service: ExpenseService = Depends(get_expense_service)):
    service.delete_expense(expense_id)
    return Response(status_code=204)


# ============================================================================
# BILLING CLIENTS
# ============================================================================


@clients_router.get("", response_model=list[BooksClientResponse])
async def list_clients(service: BooksClientService = Depends(get_books_client_service)):
    """All billing clients, alphabetical by company"""
    return service.list_clients()


@clients_router.post("", response_model=BooksClientResponse, status_code=201)
async def create_client(
    data: BooksClientPayload, service: BooksClientService = Depends(get_books_client_service)
):
    return service.create_client(data)


@clients_router.put("/{client_id}", response_model=BooksClientResponse)
async def replace_client(
    client_id: str,
    data: BooksClientPayload,
    service: BooksClientService = Depends(get_books_client_service),
):
    return service.replace_client(client_id, data)


@clients_router.delete("/{client_id}", status_code=204)
async def delete_client(
    client_id: str, service: BooksClientService = Depends(get_books_client_service)
):
    service.delete_client(client_id)
    return Response(status_code=204)
