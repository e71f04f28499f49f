import enum
import logging
import sys
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Mapping, Optional, Union

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.adapters.navigator import Navigator
from app.adapters.page_cache import PageCache, page_cache
from app.config import settings
from app.repositories.customer_repo import CustomerRepository
from app.repositories.invoice_repo import InvoiceRepository
from app.schemas.invoice_schema import (
    FIELD_MESSAGES,
    CustomerField,
    FormState,
    InvoiceEditOut,
    InvoiceForm,
    InvoiceRow,
)

log = logging.getLogger("invoices")
log.setLevel(settings.LOG_LEVEL.upper())
if not log.handlers:
    h = logging.StreamHandler(sys.stdout)
    h.setFormatter(logging.Formatter("[INVOICES] %(levelname)s %(message)s"))
    log.addHandler(h)

MISSING_FIELDS = "Failed to create invoice. Missing fields."
INVOICE_NOT_FOUND = "Invoice not found."


class InvoiceServiceException(Exception):
    pass


class InvoiceDeleteError(InvoiceServiceException):
    pass


class MutationKind(str, enum.Enum):
    SUCCESS = "success"
    VALIDATION_ERROR = "validation_error"
    PERSISTENCE_ERROR = "persistence_error"
    NOT_FOUND = "not_found"


@dataclass
class MutationResult:
    kind: MutationKind
    state: FormState = field(default_factory=FormState)
    invoice_id: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.kind == MutationKind.SUCCESS

    @classmethod
    def invalid(cls, errors: Dict[str, List[str]]) -> "MutationResult":
        return cls(
            MutationKind.VALIDATION_ERROR,
            FormState(errors=errors, message=MISSING_FIELDS),
        )

    @classmethod
    def failed(cls, message: str, invoice_id: Optional[str] = None) -> "MutationResult":
        return cls(
            MutationKind.PERSISTENCE_ERROR, FormState(message=message), invoice_id
        )

    @classmethod
    def not_found(cls, invoice_id: str) -> "MutationResult":
        return cls(MutationKind.NOT_FOUND, FormState(message=INVOICE_NOT_FOUND), invoice_id)


class InvoiceService:
    """
    Validated create/update/delete of invoices.

    Every mutation is one statement committed on its own. On success the
    invoice list path is invalidated in the page cache and (for create and
    update) the navigator is pointed back at it.

    With swallow_persistence_errors the old log-and-carry-on behaviour is
    kept: database failures are logged and the invalidate/redirect still
    happens. With legacy_delete, delete_invoice always raises and never
    touches the table.
    """

    def __init__(
        self,
        db: Session,
        cache: Optional[PageCache] = None,
        navigator: Optional[Navigator] = None,
        swallow_persistence_errors: Optional[bool] = None,
        legacy_delete: Optional[bool] = None,
        invoices_path: Optional[str] = None,
    ):
        self.db = db
        self.repo = InvoiceRepository(db)
        self.customer_repo = CustomerRepository(db)
        self.cache = cache if cache is not None else page_cache
        self.navigator = navigator if navigator is not None else Navigator()
        self.swallow_persistence_errors = (
            settings.SWALLOW_PERSISTENCE_ERRORS
            if swallow_persistence_errors is None
            else swallow_persistence_errors
        )
        self.legacy_delete = (
            settings.LEGACY_DELETE if legacy_delete is None else legacy_delete
        )
        self.invoices_path = invoices_path or settings.INVOICES_PATH

    def _today(self) -> date:
        return date.today()

    def validate(self, raw: Mapping) -> Union[InvoiceForm, Dict[str, List[str]]]:
        """
        Coerce raw form values into an InvoiceForm, or return
        {field: [message]} for every field that breaks the contract.
        """
        values = {name: raw.get(name) for name in FIELD_MESSAGES}
        try:
            return InvoiceForm.model_validate(values)
        except ValidationError as e:
            errors: Dict[str, List[str]] = {}
            for err in e.errors():
                name = err["loc"][0] if err["loc"] else None
                if name not in FIELD_MESSAGES:
                    raise
                msgs = errors.setdefault(name, [])
                if FIELD_MESSAGES[name] not in msgs:
                    msgs.append(FIELD_MESSAGES[name])
            # keep the form's field order
            return {name: errors[name] for name in FIELD_MESSAGES if name in errors}

    def _revalidate(self) -> None:
        dropped = self.cache.invalidate(self.invoices_path)
        log.debug("invalidated %s (%s cached entries)", self.invoices_path, dropped)

    def create_invoice(self, form: Mapping) -> MutationResult:
        validated = self.validate(form)
        if not isinstance(validated, InvoiceForm):
            return MutationResult.invalid(validated)

        try:
            inv = self.repo.insert(
                validated.customer_id,
                validated.amount_in_cents,
                validated.status,
                self._today(),
            )
            invoice_id = inv.id
            self.db.commit()
            result = MutationResult(MutationKind.SUCCESS, invoice_id=invoice_id)
            log.debug("created invoice %s for customer %s", invoice_id, validated.customer_id)
        except SQLAlchemyError:
            self.db.rollback()
            log.exception("Error creating invoice")
            result = MutationResult.failed("Database Error: Failed to create invoice.")

        if not result.ok and not self.swallow_persistence_errors:
            return result
        self._revalidate()
        self.navigator.redirect_to(self.invoices_path)
        return result

    def update_invoice(self, invoice_id: str, form: Mapping) -> MutationResult:
        validated = self.validate(form)
        if not isinstance(validated, InvoiceForm):
            return MutationResult.invalid(validated)

        result = MutationResult(MutationKind.SUCCESS, invoice_id=invoice_id)
        try:
            count = self.repo.update(
                invoice_id,
                validated.customer_id,
                validated.amount_in_cents,
                validated.status,
            )
            self.db.commit()
            if count == 0:
                result = MutationResult.not_found(invoice_id)
            else:
                log.debug("updated invoice %s", invoice_id)
        except SQLAlchemyError:
            self.db.rollback()
            log.exception("Error updating invoice %s", invoice_id)
            result = MutationResult.failed(
                "Database Error: Failed to update invoice.", invoice_id
            )

        if not result.ok and not self.swallow_persistence_errors:
            return result
        self._revalidate()
        self.navigator.redirect_to(self.invoices_path)
        return result

    def delete_invoice(self, invoice_id: str) -> MutationResult:
        if self.legacy_delete:
            raise InvoiceDeleteError("Error deleting invoice.")

        result = MutationResult(MutationKind.SUCCESS, invoice_id=invoice_id)
        try:
            count = self.repo.delete(invoice_id)
            self.db.commit()
            if count == 0:
                result = MutationResult.not_found(invoice_id)
            else:
                log.debug("deleted invoice %s", invoice_id)
        except SQLAlchemyError:
            self.db.rollback()
            log.exception("Error deleting invoice %s", invoice_id)
            result = MutationResult.failed(
                "Database Error: Failed to delete invoice.", invoice_id
            )

        if not result.ok and not self.swallow_persistence_errors:
            return result
        self._revalidate()
        return result

    # read side used by the dashboard pages

    def list_invoices(self, q: Optional[str] = None, page: int = 1) -> Dict:
        size = settings.ITEMS_PER_PAGE
        rows, total = self.repo.list_filtered(q=q, page=page, size=size)
        items = [
            InvoiceRow(
                id=inv.id,
                customer_id=inv.customer_id,
                name=cust.name,
                email=cust.email,
                image_url=cust.image_url,
                amount=inv.amount,
                status=inv.status,
                date=inv.date,
            )
            for inv, cust in rows
        ]
        return {
            "items": [it.model_dump(mode="json") for it in items],
            "total": total,
            "page": page,
            "total_pages": max(1, -(-total // size)),
        }

    def get_invoice(self, invoice_id: str) -> Optional[InvoiceEditOut]:
        inv = self.repo.get(invoice_id)
        if not inv:
            return None
        return InvoiceEditOut(
            id=inv.id,
            customer_id=inv.customer_id,
            amount=inv.amount / 100,
            status=inv.status,
            date=inv.date,
        )

    def list_customers(self) -> List[CustomerField]:
        return [CustomerField.model_validate(c) for c in self.customer_repo.list_all()]
