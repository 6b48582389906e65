"""Books domain schemas - Pydantic models for validation"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Literal, Optional

from pydantic import BaseModel, field_validator

CENTS = Decimal("0.01")


def quantize_money(value: Decimal) -> Decimal:
    """Round a currency amount to 2 decimal places"""
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


class LineItem(BaseModel):
    id: str
    description: str = ""
    quantity: float = 0
    rate: float = 0
    amount: float = 0


class InvoicePayload(BaseModel):
    """Full invoice as sent by the client for create and replace"""

    id: Optional[str] = None
    invoiceNumber: str
    clientName: str
    clientEmail: Optional[str] = None
    projectDetails: Optional[str] = None
    paymentLink: Optional[str] = None
    checkNumber: Optional[str] = None
    date: date
    dueDate: Optional[date] = None
    datePaid: Optional[date] = None
    total: Decimal
    status: Literal["draft", "sent", "paid"] = "draft"
    items: list[LineItem] = []

    @field_validator("total")
    @classmethod
    def round_total(cls, v):
        return quantize_money(v)


class InvoiceResponse(BaseModel):
    id: str
    invoiceNumber: str
    clientName: str
    clientEmail: str
    projectDetails: str
    paymentLink: str
    checkNumber: str
    date: date
    dueDate: Optional[date] = None
    datePaid: Optional[date] = None
    total: float
    status: str
    items: list[LineItem]


class ExpensePayload(BaseModel):
    id: str
    date: date
    payee: str
    category: str
    amount: Decimal
    description: Optional[str] = None

    @field_validator("amount")
    @classmethod
    def round_amount(cls, v):
        return quantize_money(v)


class ExpenseResponse(BaseModel):
    id: str
    date: date
    payee: str
    category: str
    amount: float
    description: Optional[str] = None


class BooksClientPayload(BaseModel):
    id: Optional[str] = None
    companyName: str
    checkPayorName: Optional[str] = None
    email: Optional[str] = None
    address: Optional[str] = None
    addressLine1: Optional[str] = None
    addressLine2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None


class BooksClientResponse(BaseModel):
    id: str
    companyName: str
    checkPayorName: str
    email: Optional[str] = None
    address: Optional[str] = None
    addressLine1: Optional[str] = None
    addressLine2: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
