from uuid import uuid4

from sqlalchemy import Column, String
from sqlalchemy.orm import relationship

from app.db import Base


class Customer(Base):
    __tablename__ = "customers"

    id = Column(String(32), primary_key=True, default=lambda: uuid4().hex)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    image_url = Column(String(512), nullable=True)

    invoices = relationship("Invoice", back_populates="customer")

    def __repr__(self):
        return f"<Customer id={self.id} name={self.name}>"
