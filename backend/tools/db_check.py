import sqlite3
import sys

DB = sys.argv[1] if len(sys.argv) > 1 else "dev.db"
CUSTOMER = sys.argv[2] if len(sys.argv) > 2 else None

conn = sqlite3.connect(DB)
cur = conn.cursor()

print("=== Customers ===")
cur.execute("SELECT id, name, email FROM customers ORDER BY name LIMIT 50")
for r in cur.fetchall():
    print({"id": r[0], "name": r[1], "email": r[2]})

print("\n=== Recent Invoices ===")
if CUSTOMER:
    cur.execute(
        "SELECT id, customer_id, amount, status, date FROM invoices WHERE customer_id=? ORDER BY date DESC LIMIT 50",
        (CUSTOMER,),
    )
else:
    cur.execute(
        "SELECT id, customer_id, amount, status, date FROM invoices ORDER BY date DESC LIMIT 20"
    )
for r in cur.fetchall():
    print(
        {
            "id": r[0],
            "customer_id": r[1],
            "amount_cents": r[2],
            "amount": f"${r[2] / 100:,.2f}",
            "status": r[3],
            "date": r[4],
        }
    )

print("\n=== Totals by status ===")
cur.execute("SELECT status, COUNT(*), COALESCE(SUM(amount), 0) FROM invoices GROUP BY status")
for status, count, total in cur.fetchall():
    print(f"{status}: {count} invoices, ${total / 100:,.2f}")

conn.close()
