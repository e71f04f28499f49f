#!/usr/bin/env python3
"""
Seed customers (and a handful of invoices) for the dashboard.

Reads an optional JSON file shaped like {"customers": [...], "invoices": [...]}
or a bare list of customers. Invoice entries reference customers by email and
carry amounts in cents. Re-running is safe for customers (matched on email);
invoices are only added when the table is empty.

Usage:
    python scripts/seed_data.py
    python scripts/seed_data.py --file ./placeholder-data.json
"""
import argparse
import json
import os
import sys
from datetime import date

# allow running from repo/scripts
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from app.db import SessionLocal, init_db
from app.models.invoice import Invoice
from app.repositories.customer_repo import CustomerRepository
from app.repositories.invoice_repo import InvoiceRepository

DEFAULT_CUSTOMERS = [
    {"name": "Evil Rabbit", "email": "evil@rabbit.com", "image_url": "/customers/evil-rabbit.png"},
    {"name": "Delba de Oliveira", "email": "delba@oliveira.com", "image_url": "/customers/delba-de-oliveira.png"},
    {"name": "Lee Robinson", "email": "lee@robinson.com", "image_url": "/customers/lee-robinson.png"},
    {"name": "Michael Novotny", "email": "michael@novotny.com", "image_url": "/customers/michael-novotny.png"},
    {"name": "Amy Burns", "email": "amy@burns.com", "image_url": "/customers/amy-burns.png"},
    {"name": "Balazs Orban", "email": "balazs@orban.com", "image_url": "/customers/balazs-orban.png"},
]

DEFAULT_INVOICES = [
    {"customer_email": "evil@rabbit.com", "amount": 15795, "status": "pending", "date": "2022-12-06"},
    {"customer_email": "delba@oliveira.com", "amount": 20348, "status": "pending", "date": "2022-11-14"},
    {"customer_email": "amy@burns.com", "amount": 3040, "status": "paid", "date": "2022-10-29"},
    {"customer_email": "michael@novotny.com", "amount": 44800, "status": "paid", "date": "2023-09-10"},
    {"customer_email": "balazs@orban.com", "amount": 34577, "status": "pending", "date": "2023-08-05"},
    {"customer_email": "lee@robinson.com", "amount": 54246, "status": "pending", "date": "2023-07-16"},
]


def _load(path):
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except Exception as e:
            raise RuntimeError(f"Failed to parse JSON from {path}: {e}")
    if isinstance(data, list):
        return data, []
    return data.get("customers", []), data.get("invoices", [])


def seed(customers, invoices):
    init_db()
    db = SessionLocal()
    cust_repo = CustomerRepository(db)
    inv_repo = InvoiceRepository(db)
    try:
        by_email = {}
        for entry in customers:
            email = entry.get("email")
            if not email:
                continue
            c = cust_repo.create_or_update(
                name=entry.get("name") or email,
                email=email,
                image_url=entry.get("image_url"),
            )
            by_email[email] = c

        added = 0
        if not db.query(Invoice).first():
            for entry in invoices:
                c = by_email.get(entry.get("customer_email"))
                if not c:
                    print("Skipping invoice for unknown customer:", entry.get("customer_email"))
                    continue
                inv_repo.insert(
                    customer_id=c.id,
                    amount_cents=int(entry["amount"]),
                    status=entry.get("status", "pending"),
                    invoice_date=date.fromisoformat(entry["date"]),
                )
                added += 1

        db.commit()
        print(f"Seeded customers: {len(by_email)}, invoices: {added}")
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    parser.add_argument("--file", "-f", default=None, help="Path to placeholder json with customers/invoices")
    args = parser.parse_args()
    if args.file:
        if not os.path.exists(args.file):
            print("File not found:", args.file)
            sys.exit(1)
        customers, invoices = _load(args.file)
    else:
        customers, invoices = DEFAULT_CUSTOMERS, DEFAULT_INVOICES
    seed(customers, invoices)
