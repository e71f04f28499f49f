# backend/app/schemas/invoice_schema.py
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

# one message per field, whatever the underlying pydantic error was
FIELD_MESSAGES = {
    "customerId": "Please select a customer.",
    "amount": "Please enter an amount greater than $0.",
    "status": "Please select an invoice status.",
}

CENT = Decimal("1")
# largest dollar amount whose cents still fit a signed 64-bit INTEGER column
MAX_AMOUNT = Decimal("92233720368547758.07")


def to_cents(dollars: Decimal) -> int:
    """Dollars -> integer cents, rounding half up (15.505 -> 1551)."""
    return int((dollars * 100).quantize(CENT, rounding=ROUND_HALF_UP))


class InvoiceForm(BaseModel):
    """Field contract for the create/edit invoice form.

    Values arrive as raw form strings and are coerced here; `id` and `date`
    are never accepted from input, extra keys are ignored.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    customer_id: str = Field(alias="customerId", min_length=1)
    amount: Decimal = Field(gt=0, le=MAX_AMOUNT, allow_inf_nan=False)
    status: Literal["pending", "paid"]

    @field_validator("amount")
    @classmethod
    def _at_least_one_cent(cls, v: Decimal) -> Decimal:
        try:
            cents = to_cents(v)
        except InvalidOperation:
            raise ValueError("amount cannot be expressed in cents")
        if cents < 1:
            raise ValueError("amount rounds to zero cents")
        return v

    @property
    def amount_in_cents(self) -> int:
        return to_cents(self.amount)


class FormState(BaseModel):
    errors: Optional[Dict[str, List[str]]] = None
    message: Optional[str] = None


class CustomerField(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: str
    name: str


class InvoiceRow(BaseModel):
    id: str
    customer_id: str
    name: str
    email: str
    image_url: Optional[str] = None
    amount: int
    status: str
    date: date


class InvoiceEditOut(BaseModel):
    id: str
    customer_id: str
    amount: float  # dollars, as the form shows it
    status: str
    date: date
