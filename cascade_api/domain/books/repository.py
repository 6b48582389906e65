"""Books repository - Database operations for invoices, expenses and clients"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import BooksClient, Expense, Invoice


class InvoiceRepository:
    """Repository for invoice database operations"""

    @staticmethod
    def list_invoices(db: Session) -> list[Invoice]:
        return db.query(Invoice).order_by(Invoice.date.desc()).all()

    @staticmethod
    def get_invoice(db: Session, invoice_id: str) -> Optional[Invoice]:
        return db.query(Invoice).filter(Invoice.id == invoice_id).first()

    @staticmethod
    def create_invoice(db: Session, **invoice_data) -> Invoice:
        invoice = Invoice(**invoice_data)
        db.add(invoice)
        db.commit()
        db.refresh(invoice)
        return invoice

    @staticmethod
    def replace_invoice(db: Session, invoice: Invoice, **values) -> Invoice:
        """Overwrite every column, including ones set back to None"""
        for key, value in values.items():
            setattr(invoice, key, value)
        db.commit()
        db.refresh(invoice)
        return invoice

    @staticmethod
    def delete_invoice(db: Session, invoice_id: str) -> int:
        deleted = db.query(Invoice).filter(Invoice.id == invoice_id).delete()
        db.commit()
        return deleted


class ExpenseRepository:
    """Repository for expense database operations"""

    @staticmethod
    def list_expenses(db: Session) -> list[Expense]:
        return db.query(Expense).order_by(Expense.date.desc()).all()

    @staticmethod
    def create_expense(db: Session, **expense_data) -> Expense:
        expense = Expense(**expense_data)
        db.add(expense)
        db.commit()
        db.refresh(expense)
        return expense

    @staticmethod
    def delete_expense(db: Session, expense_id: str) -> int:
        deleted = db.query(Expense).filter(Expense.id == expense_id).delete()
        db.commit()
        return deleted


class BooksClientRepository:
    """Repository for billing client database operations"""

    @staticmethod
    def list_clients(db: Session) -> list[BooksClient]:
        return db.query(BooksClient).order_by(BooksClient.company_name.asc()).all()

    @staticmethod
    def get_client(db: Session, client_id: str) -> Optional[BooksClient]:
        return db.query(BooksClient).filter(BooksClient.id == client_id).first()

    @staticmethod
    def create_client(db: Session, **client_data) -> BooksClient:
        client = BooksClient(**client_data)
        db.add(client)
        db.commit()
        db.refresh(client)
        return client

    @staticmethod
    def replace_client(db: Session, client: BooksClient, **values) -> BooksClient:
        for key, value in values.items():
            setattr(client, key, value)
        db.commit()
        db.refresh(client)
        return client

    @staticmethod
    def delete_client(db: Session, client_id: str) -> int:
        deleted = db.query(BooksClient).filter(BooksClient.id == client_id).delete()
        db.commit()
        return deleted
