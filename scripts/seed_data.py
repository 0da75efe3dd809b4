import argparse
import asyncio

from invoice_processor.config import settings
from invoice_processor.database import db

async def seed_db():
    print(f"Resetting '{settings.STORE_BACKEND}' invoice store to seed data...")
    await db.invoices.clear()

    invoices = await db.invoices.list_all()
    for invoice in invoices:
        print(f"  {invoice.id:>3}  {invoice.invoice_number}  {invoice.vendor:<22} {invoice.amount:>10.2f}  {invoice.status.value}")
    print(f"Seeded {len(invoices)} invoices.")

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Reset the invoice store to its default dataset")
    parser.add_argument("--backend", type=str, default=None, help="memory, json or mongo (defaults to STORE_BACKEND)")
    args = parser.parse_args()
    if args.backend:
        settings.STORE_BACKEND = args.backend

    db.connect()
    try:
        asyncio.run(seed_db())
    finally:
        db.close()
