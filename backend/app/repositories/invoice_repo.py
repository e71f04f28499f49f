from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy import String, cast, delete, or_, update
from sqlalchemy.orm import Session

from app.models.customer import Customer
from app.models.invoice import Invoice


class InvoiceRepository:
    """Single-statement access to the invoices table. Callers own commit/rollback."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, invoice_id: str) -> Optional[Invoice]:
        return self.db.query(Invoice).filter(Invoice.id == invoice_id).first()

    def insert(
        self, customer_id: str, amount_cents: int, status: str, invoice_date: date
    ) -> Invoice:
        inv = Invoice(
            customer_id=customer_id,
            amount=amount_cents,
            status=status,
            date=invoice_date,
        )
        self.db.add(inv)
        self.db.flush()
        return inv

    def update(
        self, invoice_id: str, customer_id: str, amount_cents: int, status: str
    ) -> int:
        # id and date are deliberately not in the SET clause
        res = self.db.execute(
            update(Invoice)
            .where(Invoice.id == invoice_id)
            .values(customer_id=customer_id, amount=amount_cents, status=status)
            .execution_options(synchronize_session=False)
        )
        return res.rowcount

    def delete(self, invoice_id: str) -> int:
        res = self.db.execute(
            delete(Invoice)
            .where(Invoice.id == invoice_id)
            .execution_options(synchronize_session=False)
        )
        return res.rowcount

    def list_filtered(
        self, q: Optional[str] = None, page: int = 1, size: int = 6
    ) -> Tuple[List[Tuple[Invoice, Customer]], int]:
        query = self.db.query(Invoice, Customer).join(
            Customer, Invoice.customer_id == Customer.id
        )
        if q:
            like = f"%{q}%"
            query = query.filter(
                or_(
                    Customer.name.ilike(like),
                    Customer.email.ilike(like),
                    Invoice.status.ilike(like),
                    cast(Invoice.amount, String).ilike(like),
                    cast(Invoice.date, String).ilike(like),
                )
            )
        total = query.order_by(None).count()
        rows = (
            query.order_by(Invoice.date.desc(), Invoice.id)
            .offset((page - 1) * size)
            .limit(size)
            .all()
        )
        return rows, total
