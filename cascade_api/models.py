"""
Bookkeeping models: invoices, expenses and the clients they are billed to.
Ids are generated by the browser and stored as given.
"""

from sqlalchemy import JSON, Column, Date, DateTime, Numeric, String, Text
from sqlalchemy.sql import func

from .database import Base


class Invoice(Base):
    __tablename__ = "invoices"

    id = Column(String(64), primary_key=True, index=True)
    invoice_number = Column(String(100), nullable=False)
    client_name = Column(String(255), nullable=False)
    client_email = Column(String(255), nullable=True)
    project_details = Column(Text, nullable=True)
    payment_link = Column(String(1000), nullable=True)  # Square checkout URL
    check_number = Column(String(100), nullable=True)
    date = Column(Date, nullable=False, index=True)
    due_date = Column(Date, nullable=True)
    date_paid = Column(Date, nullable=True)
    total = Column(Numeric(10, 2), nullable=False, default=0)
    status = Column(String(20), nullable=False, default="draft")  # draft, sent, paid
    items = Column(JSON, nullable=False, default=list)  # ordered line items

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())


class Expense(Base):
    __tablename__ = "expenses"

    id = Column(String(64), primary_key=True, index=True)
    date = Column(Date, nullable=False, index=True)
    payee = Column(String(255), nullable=False)
    category = Column(String(100), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False, default=0)
    description = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())


class BooksClient(Base):
    """Billing contact an invoice is addressed to"""

    __tablename__ = "clients"

    id = Column(String(64), primary_key=True, index=True)
    company_name = Column(String(255), nullable=False, index=True)
    check_payor_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    address = Column(Text, nullable=True)  # legacy single-line address
    address_line1 = Column(String(255), nullable=True)
    address_line2 = Column(String(255), nullable=True)
    city = Column(String(100), nullable=True)
    state = Column(String(50), nullable=True)
    zip = Column(String(20), nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
