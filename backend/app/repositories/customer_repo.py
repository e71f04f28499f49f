from typing import List, Optional

from sqlalchemy.orm import Session

from app.models.customer import Customer


class CustomerRepository:
    def __init__(self, db: Session):
        self.db = db

    def get_by_email(self, email: str) -> Optional[Customer]:
        return self.db.query(Customer).filter(Customer.email == email).first()

    def list_all(self) -> List[Customer]:
        return self.db.query(Customer).order_by(Customer.name).all()

    def create_or_update(self, name: str, email: str, image_url: str = None) -> Customer:
        c = self.get_by_email(email)
        if c:
            c.name = name
            c.image_url = image_url
        else:
            c = Customer(name=name, email=email, image_url=image_url)
            self.db.add(c)
        self.db.flush()
        return c
