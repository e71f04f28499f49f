from datetime import date

import pytest
from sqlalchemy.exc import OperationalError

from app.db import SessionLocal, init_db
from app.models.invoice import Invoice
from app.repositories.customer_repo import CustomerRepository
from app.repositories.invoice_repo import InvoiceRepository
from app.services.invoice_service import (
    InvoiceDeleteError,
    InvoiceService,
    MutationKind,
)

PATH = "/dashboard/invoices"
CUSTOMERS = {}


class RecordingCache:
    def __init__(self):
        self.invalidated = []

    def invalidate(self, path):
        self.invalidated.append(path)
        return 0


class RecordingNavigator:
    def __init__(self):
        self.redirects = []

    def redirect_to(self, path):
        self.redirects.append(path)


def setup_module(module):
    init_db()
    db = SessionLocal()
    try:
        repo = CustomerRepository(db)
        for key, name in (("c1", "Service One"), ("c2", "Service Two")):
            c = repo.create_or_update(name=name, email=f"{key}@service.test")
            CUSTOMERS[key] = c.id
        db.commit()
    finally:
        db.close()


@pytest.fixture
def db():
    s = SessionLocal()
    try:
        yield s
    finally:
        s.close()


def _svc(db, **kw):
    cache = RecordingCache()
    nav = RecordingNavigator()
    return InvoiceService(db, cache=cache, navigator=nav, **kw), cache, nav


def _seed_invoice(db, customer_key="c1", cents=500, status="pending", on=date(2022, 1, 15)):
    inv = InvoiceRepository(db).insert(CUSTOMERS[customer_key], cents, status, on)
    invoice_id = inv.id
    db.commit()
    return invoice_id


def _reload(invoice_id):
    s = SessionLocal()
    try:
        inv = s.query(Invoice).filter(Invoice.id == invoice_id).first()
        if inv is None:
            return None
        return {
            "id": inv.id,
            "customer_id": inv.customer_id,
            "amount": inv.amount,
            "status": inv.status,
            "date": inv.date,
        }
    finally:
        s.close()


def test_create_stores_cents_and_today(db):
    svc, cache, nav = _svc(db)
    res = svc.create_invoice({"customerId": CUSTOMERS["c1"], "amount": "15.50", "status": "paid"})
    assert res.kind == MutationKind.SUCCESS
    row = _reload(res.invoice_id)
    assert row["amount"] == 1550
    assert row["status"] == "paid"
    assert row["customer_id"] == CUSTOMERS["c1"]
    assert row["date"] == date.today()
    assert cache.invalidated == [PATH]
    assert nav.redirects == [PATH]


def test_create_assigns_fresh_ids(db):
    svc, _, _ = _svc(db)
    form = {"customerId": CUSTOMERS["c1"], "amount": "3", "status": "pending"}
    a = svc.create_invoice(form)
    b = svc.create_invoice(form)
    assert a.invoice_id and b.invoice_id
    assert a.invoice_id != b.invoice_id


def test_update_keeps_id_and_date(db):
    invoice_id = _seed_invoice(db)
    svc, cache, nav = _svc(db)
    res = svc.update_invoice(
        invoice_id, {"customerId": CUSTOMERS["c2"], "amount": "20", "status": "pending"}
    )
    assert res.kind == MutationKind.SUCCESS
    row = _reload(invoice_id)
    assert row == {
        "id": invoice_id,
        "customer_id": CUSTOMERS["c2"],
        "amount": 2000,
        "status": "pending",
        "date": date(2022, 1, 15),
    }
    assert cache.invalidated == [PATH]
    assert nav.redirects == [PATH]


def test_update_is_idempotent(db):
    invoice_id = _seed_invoice(db)
    svc, _, _ = _svc(db)
    form = {"customerId": CUSTOMERS["c1"], "amount": "99.99", "status": "paid"}
    svc.update_invoice(invoice_id, form)
    first = _reload(invoice_id)
    svc.update_invoice(invoice_id, form)
    assert _reload(invoice_id) == first
    assert first["amount"] == 9999


def test_update_missing_invoice(db):
    svc, cache, nav = _svc(db)
    res = svc.update_invoice(
        "does-not-exist", {"customerId": CUSTOMERS["c1"], "amount": "1", "status": "paid"}
    )
    assert res.kind == MutationKind.NOT_FOUND
    assert cache.invalidated == []
    assert nav.redirects == []


def test_unknown_customer_surfaces_database_error(db):
    svc, cache, nav = _svc(db, swallow_persistence_errors=False)
    before = db.query(Invoice).count()
    res = svc.create_invoice({"customerId": "nobody", "amount": "10", "status": "paid"})
    assert res.kind == MutationKind.PERSISTENCE_ERROR
    assert res.state.message == "Database Error: Failed to create invoice."
    assert cache.invalidated == []
    assert nav.redirects == []
    assert db.query(Invoice).count() == before


def test_unknown_customer_swallowed_in_legacy_mode(db):
    svc, cache, nav = _svc(db, swallow_persistence_errors=True)
    before = db.query(Invoice).count()
    res = svc.create_invoice({"customerId": "nobody", "amount": "10", "status": "paid"})
    assert res.kind == MutationKind.PERSISTENCE_ERROR
    # redirected as if nothing went wrong
    assert cache.invalidated == [PATH]
    assert nav.redirects == [PATH]
    assert db.query(Invoice).count() == before


def test_update_to_unknown_customer_leaves_row(db):
    invoice_id = _seed_invoice(db, cents=700)
    svc, _, nav = _svc(db, swallow_persistence_errors=False)
    res = svc.update_invoice(invoice_id, {"customerId": "nobody", "amount": "8", "status": "paid"})
    assert res.kind == MutationKind.PERSISTENCE_ERROR
    assert res.state.message == "Database Error: Failed to update invoice."
    assert nav.redirects == []
    row = _reload(invoice_id)
    assert row["amount"] == 700
    assert row["customer_id"] == CUSTOMERS["c1"]


def test_delete_removes_row_and_invalidates(db):
    invoice_id = _seed_invoice(db)
    svc, cache, nav = _svc(db, legacy_delete=False)
    res = svc.delete_invoice(invoice_id)
    assert res.kind == MutationKind.SUCCESS
    assert _reload(invoice_id) is None
    assert cache.invalidated == [PATH]
    assert nav.redirects == []

    again = svc.delete_invoice(invoice_id)
    assert again.kind == MutationKind.NOT_FOUND


def test_legacy_delete_always_fails(db):
    invoice_id = _seed_invoice(db)
    svc, cache, _ = _svc(db, legacy_delete=True)
    with pytest.raises(InvoiceDeleteError, match="Error deleting invoice."):
        svc.delete_invoice(invoice_id)
    assert _reload(invoice_id) is not None
    assert cache.invalidated == []


def test_get_invoice_returns_dollars(db):
    invoice_id = _seed_invoice(db, cents=1234, status="paid")
    svc, _, _ = _svc(db)
    out = svc.get_invoice(invoice_id)
    assert out.amount == 12.34
    assert out.status == "paid"
    assert svc.get_invoice("missing") is None


def test_list_customers_sorted(db):
    svc, _, _ = _svc(db)
    names = [c.name for c in svc.list_customers()]
    assert names == sorted(names)
    assert "Service One" in names


def test_update_missing_invoice_still_redirects_in_legacy_mode(db):
    svc, cache, nav = _svc(db, swallow_persistence_errors=True)
    res = svc.update_invoice(
        "does-not-exist", {"customerId": CUSTOMERS["c1"], "amount": "1", "status": "paid"}
    )
    assert res.kind == MutationKind.NOT_FOUND
    assert cache.invalidated == [PATH]
    assert nav.redirects == [PATH]


def test_delete_missing_invoice_still_invalidates_in_legacy_mode(db):
    svc, cache, nav = _svc(db, swallow_persistence_errors=True, legacy_delete=False)
    res = svc.delete_invoice("does-not-exist")
    assert res.kind == MutationKind.NOT_FOUND
    assert cache.invalidated == [PATH]
    assert nav.redirects == []


def _failing_delete(invoice_id):
    raise OperationalError("DELETE FROM invoices", {}, Exception("database is locked"))


def test_delete_database_error_is_reported(db):
    invoice_id = _seed_invoice(db)
    svc, cache, _ = _svc(db, swallow_persistence_errors=False, legacy_delete=False)
    svc.repo.delete = _failing_delete
    res = svc.delete_invoice(invoice_id)
    assert res.kind == MutationKind.PERSISTENCE_ERROR
    assert res.state.message == "Database Error: Failed to delete invoice."
    assert cache.invalidated == []
    assert _reload(invoice_id) is not None


def test_delete_database_error_swallowed_in_legacy_mode(db):
    invoice_id = _seed_invoice(db)
    svc, cache, _ = _svc(db, swallow_persistence_errors=True, legacy_delete=False)
    svc.repo.delete = _failing_delete
    res = svc.delete_invoice(invoice_id)
    assert res.kind == MutationKind.PERSISTENCE_ERROR
    assert cache.invalidated == [PATH]
    assert _reload(invoice_id) is not None
