from fastapi import APIRouter, Depends

from invoice_processor.database import get_invoice_store
from invoice_processor.repositories.base import InvoiceStore

router = APIRouter(prefix="/api/admin", tags=["Admin"])

@router.post("/reset")
async def reset_invoices(store: InvoiceStore = Depends(get_invoice_store)):
    """Restore the seed dataset (demo/test reset)."""
    await store.clear()
    invoices = await store.list_all()
    return {"message": "Invoice store reset", "count": len(invoices)}
