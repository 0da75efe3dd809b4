import asyncio
import logging
from typing import Any, Iterable, List, Mapping, Optional

from invoice_processor.errors import DuplicateError, NotFoundError
from invoice_processor.models.invoice import InvoiceRecord, seed_invoices
from invoice_processor.repositories.base import Changes, InvoiceStore, build_record, coerce_update, validate_candidate

logger = logging.getLogger(__name__)

class InMemoryInvoiceStore(InvoiceStore):
    """
    Store backed by a Python list.

    Subclasses persist elsewhere by overriding `_load` and `_save` (and
    `_read`/`_write` to move blocking I/O off the event loop); every
    mutation is a load-modify-save cycle held under one lock, so the
    duplicate check and the append in `create` cannot interleave.
    """

    def __init__(self, records: Optional[Iterable[InvoiceRecord]] = None):
        self._records: List[InvoiceRecord] = list(records) if records is not None else seed_invoices()
        self._lock = asyncio.Lock()

    def _load(self) -> List[InvoiceRecord]:
        return [record.model_copy() for record in self._records]

    def _save(self, records: List[InvoiceRecord]) -> None:
        self._records = list(records)

    async def _read(self) -> List[InvoiceRecord]:
        return self._load()

    async def _write(self, records: List[InvoiceRecord]) -> None:
        self._save(records)

    async def list_all(self) -> List[InvoiceRecord]:
        return await self._read()

    async def get_by_id(self, invoice_id: str) -> Optional[InvoiceRecord]:
        return next((record for record in await self._read() if record.id == invoice_id), None)

    async def create(self, candidate: Mapping[str, Any]) -> InvoiceRecord:
        fields = validate_candidate(candidate)
        async with self._lock:
            records = await self._read()
            if any(record.invoice_number == fields["invoice_number"] for record in records):
                logger.info(f"Rejected duplicate invoice number {fields['invoice_number']}")
                raise DuplicateError(fields["invoice_number"])

            record = build_record(fields)
            records.append(record)
            await self._write(records)

        logger.info(f"Created invoice {record.id} ({record.invoice_number})")
        return record.model_copy()

    async def update(self, invoice_id: str, changes: Changes) -> InvoiceRecord:
        update = coerce_update(changes)
        async with self._lock:
            records = await self._read()
            for index, record in enumerate(records):
                if record.id == invoice_id:
                    break
            else:
                raise NotFoundError(invoice_id)

            updated = record.model_copy(update=update.changes())
            records[index] = updated
            await self._write(records)

        logger.info(f"Updated invoice {invoice_id}: {update.changes()}")
        return updated.model_copy()

    async def delete(self, invoice_id: str) -> None:
        async with self._lock:
            records = await self._read()
            remaining = [record for record in records if record.id != invoice_id]
            if len(remaining) != len(records):
                await self._write(remaining)
                logger.info(f"Deleted invoice {invoice_id}")

    async def clear(self) -> None:
        async with self._lock:
            await self._write(seed_invoices())
        logger.info("Invoice store reset to seed data")
