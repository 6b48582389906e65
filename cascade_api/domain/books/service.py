"""Books service - Business logic for invoices, expenses and billing clients"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import BooksClient, Expense, Invoice
from .repository import BooksClientRepository, ExpenseRepository, InvoiceRepository
from .schemas import (
    BooksClientPayload,
    BooksClientResponse,
    ExpensePayload,
    ExpenseResponse,
    InvoicePayload,
    InvoiceResponse,
)

logger = logging.getLogger(__name__)


def invoice_to_response(row: Invoice) -> InvoiceResponse:
    return InvoiceResponse(
        id=row.id,
        invoiceNumber=row.invoice_number,
        clientName=row.client_name,
        clientEmail=row.client_email or "",
        projectDetails=row.project_details or "",
        paymentLink=row.payment_link or "",
        checkNumber=row.check_number or "",
        date=row.date,
        dueDate=row.due_date,
        datePaid=row.date_paid,
        total=float(row.total),
        status=row.status,
        items=row.items or [],
    )


def expense_to_response(row: Expense) -> ExpenseResponse:
    return ExpenseResponse(
        id=row.id,
        date=row.date,
        payee=row.payee,
        category=row.category,
        amount=float(row.amount),
        description=row.description,
    )


def client_to_response(row: BooksClient) -> BooksClientResponse:
    return BooksClientResponse(
        id=row.id,
        companyName=row.company_name,
        checkPayorName=row.check_payor_name or "",
        email=row.email,
        address=row.address,
        addressLine1=row.address_line1,
        addressLine2=row.address_line2,
        city=row.city,
        state=row.state,
        zip=row.zip,
    )


def _invoice_columns(data: InvoicePayload) -> dict:
    return {
        "invoice_number": data.invoiceNumber,
        "client_name": data.clientName,
        "client_email": data.clientEmail or None,
        "project_details": data.projectDetails or None,
        "payment_link": data.paymentLink or None,
        "check_number": data.checkNumber or None,
        "date": data.date,
        "due_date": data.dueDate,
        "date_paid": data.datePaid,
        "total": data.total,
        "status": data.status,
        "items": [item.model_dump() for item in data.items],
    }


def legacy_address(data: BooksClientPayload) -> str:
    """Single-line address kept for older invoice templates"""
    if data.address:
        return data.address
    return f"{data.addressLine1 or ''} {data.city or ''} {data.state or ''}".strip()


def _client_columns(data: BooksClientPayload) -> dict:
    return {
        "company_name": data.companyName,
        "check_payor_name": data.checkPayorName or None,
        "email": data.email,
        "address_line1": data.addressLine1 or None,
        "address_line2": data.addressLine2 or None,
        "city": data.city or None,
        "state": data.state or None,
        "zip": data.zip or None,
        "address": legacy_address(data),
    }


class InvoiceService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = InvoiceRepository()

    def list_invoices(self) -> list[InvoiceResponse]:
        return [invoice_to_response(row) for row in self.repo.list_invoices(self.db)]

    def get_invoice(self, invoice_id: str) -> InvoiceResponse:
        invoice = self.repo.get_invoice(self.db, invoice_id)
        if not invoice:
            raise HTTPException(status_code=404, detail="Invoice not found")
        return invoice_to_response(invoice)

    def create_invoice(self, data: InvoicePayload) -> InvoiceResponse:
        if not data.id:
            raise HTTPException(status_code=400, detail="Invoice id is required")
        logger.info(f"📥 Creating invoice {data.invoiceNumber} ({data.id})")
        invoice = self.repo.create_invoice(self.db, id=data.id, **_invoice_columns(data))
        return invoice_to_response(invoice)

    def replace_invoice(self, invoice_id: str, data: InvoicePayload) -> InvoiceResponse:
        """Full-row replace; never inserts"""
        invoice = self.repo.get_invoice(self.db, invoice_id)
        if not invoice:
            raise HTTPException(status_code=404, detail="Invoice not found")
        invoice = self.repo.replace_invoice(self.db, invoice, **_invoice_columns(data))
        logger.info(f"✅ Invoice {invoice_id} updated (status={invoice.status})")
        return invoice_to_response(invoice)

    def delete_invoice(self, invoice_id: str) -> None:
        deleted = self.repo.delete_invoice(self.db, invoice_id)
        if deleted:
            logger.info(f"🗑️ Invoice {invoice_id} deleted")


class ExpenseService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = ExpenseRepository()

    def list_expenses(self) -> list[ExpenseResponse]:
        return [expense_to_response(row) for row in self.repo.list_expenses(self.db)]

    def create_expense(self, data: ExpensePayload) -> ExpenseResponse:
        expense = self.repo.create_expense(
            self.db,
            id=data.id,
            date=data.date,
            payee=data.payee,
            category=data.category,
            amount=data.amount,
            description=data.description,
        )
        return expense_to_response(expense)

    def delete_expense(self, expense_id: str) -> None:
        self.repo.delete_expense(self.db, expense_id)


class BooksClientService:
    def __init__(self, db: Session):
        self.db = db
        self.repo = BooksClientRepository()

    def list_clients(self) -> list[BooksClientResponse]:
        return [client_to_response(row) for row in self.repo.list_clients(self.db)]

    def create_client(self, data: BooksClientPayload) -> BooksClientResponse:
        if not data.id:
            raise HTTPException(status_code=400, detail="Client id is required")
        client = self.repo.create_client(self.db, id=data.id, **_client_columns(data))
        return client_to_response(client)

    def replace_client(self, client_id: str, data: BooksClientPayload) -> BooksClientResponse:
        client = self.repo.get_client(self.db, client_id)
        if not client:
            raise HTTPException(status_code=404, detail="Client not found")
        client = self.repo.replace_client(self.db, client, **_client_columns(data))
        return client_to_response(client)

    def delete_client(self, client_id: str) -> None:
        self.repo.delete_client(self.db, client_id)
