import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Union
from fastapi.concurrency import run_in_threadpool

from invoice_processor.models.invoice import InvoiceRecord, seed_invoices
from invoice_processor.repositories.memory import InMemoryInvoiceStore

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_KEY = "invoice-processor-invoices"

class JsonFileInvoiceStore(InMemoryInvoiceStore):
    """
    Durable store keeping the serialized record array under one key of a
    JSON object file.

    Storage faults never propagate: an unreadable file yields the seed set
    and a failed write is logged.
    """

    def __init__(self, path: Union[str, Path], key: str = DEFAULT_STORAGE_KEY):
        self.path = Path(path)
        self.key = key
        self._lock = asyncio.Lock()

    def _read_document(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        document = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        if not isinstance(document, dict):
            raise ValueError("storage file does not hold a JSON object")
        return document

    def _load(self) -> List[InvoiceRecord]:
        try:
            stored = self._read_document().get(self.key)
            if stored is None:
                # First use: initialise with the default dataset
                records = seed_invoices()
                self._save(records)
                return records
            if not isinstance(stored, list):
                raise ValueError(f"value under '{self.key}' is not a list")
            return [InvoiceRecord.model_validate(item) for item in stored]
        except (OSError, ValueError) as e:
            logger.error(f"Error reading invoices from {self.path}: {e}")
            return seed_invoices()

    def _save(self, records: List[InvoiceRecord]) -> None:
        try:
            document = self._read_document()
        except (OSError, ValueError):
            document = {}
        document[self.key] = [record.to_wire() for record in records]

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_name(self.path.name + ".tmp")
            tmp_path.write_text(json.dumps(document, indent=2), encoding="utf-8")
            os.replace(tmp_path, self.path)
        except OSError as e:
            logger.error(f"Error saving invoices to {self.path}: {e}")

    async def _read(self) -> List[InvoiceRecord]:
        return await run_in_threadpool(self._load)

    async def _write(self, records: List[InvoiceRecord]) -> None:
        await run_in_threadpool(self._save, records)
