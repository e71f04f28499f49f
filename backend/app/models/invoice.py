from datetime import date
from uuid import uuid4

from sqlalchemy import CheckConstraint, Column, Date, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from app.db import Base

INVOICE_STATUSES = ("pending", "paid")


class Invoice(Base):
    __tablename__ = "invoices"
    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_invoices_amount_positive"),
        CheckConstraint(
            "status IN ('pending', 'paid')", name="ck_invoices_status"
        ),
    )

    id = Column(String(32), primary_key=True, default=lambda: uuid4().hex)
    customer_id = Column(
        String(32),
        ForeignKey("customers.id"),
        nullable=False,
        index=True,
    )
    amount = Column(Integer, nullable=False)  # cents
    status = Column(String(16), nullable=False, default="pending")
    date = Column(Date, nullable=False, default=date.today)

    customer = relationship("Customer", back_populates="invoices")

    def __repr__(self):
        return f"<Invoice id={self.id} amount={self.amount} status={self.status}>"
