from typing import Optional

from fastapi import APIRouter, Depends, Form, HTTPException, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse
from sqlalchemy.orm import Session

from app.adapters.navigator import Navigator
from app.adapters.page_cache import PageCache, get_page_cache
from app.db import get_db
from app.services.invoice_service import (
    InvoiceService,
    InvoiceServiceException,
    MutationKind,
    MutationResult,
)

router = APIRouter(prefix="/dashboard/invoices", tags=["invoices"])

_STATUS_BY_KIND = {
    MutationKind.VALIDATION_ERROR: 422,
    MutationKind.PERSISTENCE_ERROR: 500,
    MutationKind.NOT_FOUND: 404,
}


def _respond(result: MutationResult, navigator: Navigator):
    # legacy mode may redirect even when the write failed
    if navigator.redirected:
        return RedirectResponse(navigator.location, status_code=303)
    if not result.ok:
        return JSONResponse(
            status_code=_STATUS_BY_KIND[result.kind],
            content=result.state.model_dump(exclude_none=True),
        )
    return {"ok": True, "invoice_id": result.invoice_id}


@router.get("", summary="List invoices")
def list_invoices(
    request: Request,
    query: Optional[str] = Query(None, description="search term"),
    page: int = Query(1, ge=1),
    db: Session = Depends(get_db),
    cache: PageCache = Depends(get_page_cache),
):
    key = request.url.path
    if request.url.query:
        key = f"{key}?{request.url.query}"
    cached = cache.get(key)
    if cached is not None:
        return cached
    generation = cache.generation
    payload = InvoiceService(db, cache=cache).list_invoices(q=query, page=page)
    cache.set(key, payload, generation=generation)
    return payload


@router.get("/create", summary="Create-invoice form context")
def create_form(db: Session = Depends(get_db)):
    svc = InvoiceService(db)
    return {"customers": [c.model_dump() for c in svc.list_customers()]}


@router.get("/{invoice_id}/edit", summary="Edit-invoice form context")
def edit_form(invoice_id: str, db: Session = Depends(get_db)):
    svc = InvoiceService(db)
    inv = svc.get_invoice(invoice_id)
    if not inv:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return {
        "invoice": inv.model_dump(mode="json"),
        "customers": [c.model_dump() for c in svc.list_customers()],
    }


@router.post("/create", summary="Create invoice from form data")
def create_invoice(
    customerId: Optional[str] = Form(None),
    amount: Optional[str] = Form(None),
    status: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    cache: PageCache = Depends(get_page_cache),
):
    navigator = Navigator()
    svc = InvoiceService(db, cache=cache, navigator=navigator)
    result = svc.create_invoice(
        {"customerId": customerId, "amount": amount, "status": status}
    )
    return _respond(result, navigator)


@router.post("/{invoice_id}/edit", summary="Update invoice from form data")
def update_invoice(
    invoice_id: str,
    customerId: Optional[str] = Form(None),
    amount: Optional[str] = Form(None),
    status: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    cache: PageCache = Depends(get_page_cache),
):
    navigator = Navigator()
    svc = InvoiceService(db, cache=cache, navigator=navigator)
    result = svc.update_invoice(
        invoice_id, {"customerId": customerId, "amount": amount, "status": status}
    )
    return _respond(result, navigator)


@router.post("/{invoice_id}/delete", summary="Delete invoice")
def delete_invoice(
    invoice_id: str,
    db: Session = Depends(get_db),
    cache: PageCache = Depends(get_page_cache),
):
    svc = InvoiceService(db, cache=cache)
    try:
        result = svc.delete_invoice(invoice_id)
    except InvoiceServiceException as e:
        raise HTTPException(status_code=500, detail=str(e))
    if not result.ok and not svc.swallow_persistence_errors:
        return JSONResponse(
            status_code=_STATUS_BY_KIND[result.kind],
            content=result.state.model_dump(exclude_none=True),
        )
    # the list page issues the delete, so send it back there
    return RedirectResponse(svc.invoices_path, status_code=303)
