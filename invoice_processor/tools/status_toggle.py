import logging
from typing import Union
from invoice_processor.errors import NotFoundError
from invoice_processor.models.invoice import InvoiceRecord, InvoiceStatus
from invoice_processor.repositories.base import InvoiceStore

logger = logging.getLogger(__name__)

def next_status(current: Union[InvoiceStatus, str]) -> InvoiceStatus:
    """Approved flips back to pending; anything else becomes approved."""
    if InvoiceStatus(current) == InvoiceStatus.APPROVED:
        return InvoiceStatus.PENDING
    return InvoiceStatus.APPROVED

async def toggle_status(store: InvoiceStore, invoice_id: str) -> InvoiceRecord:
    """
    Flip the approval status of one invoice.

    The decision is made here, on the caller side; the store only applies
    the status it is handed.
    """
    invoice = await store.get_by_id(invoice_id)
    if invoice is None:
        raise NotFoundError(invoice_id)

    new_status = next_status(invoice.status)
    logger.info(f"Toggling invoice {invoice_id}: {invoice.status.value} -> {new_status.value}")
    return await store.update_status(invoice_id, new_status)
