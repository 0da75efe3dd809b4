import asyncio
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, File, HTTPException, Response, UploadFile
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel

from invoice_processor.config import settings
from invoice_processor.database import get_invoice_store
from invoice_processor.errors import DuplicateError, ExtractionError, NotFoundError, UploadRejected, ValidationError
from invoice_processor.models.invoice import InvoiceRecord
from invoice_processor.repositories.base import InvoiceStore
from invoice_processor.tools.extraction import InvoiceExtractor, check_upload, get_extractor
from invoice_processor.tools.search import filter_invoices
from invoice_processor.tools.status_toggle import toggle_status

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/invoices", tags=["Invoices"])

# Response Models
class UploadResult(BaseModel):
    filename: str
    status: str  # success | error
    invoice: Optional[InvoiceRecord] = None
    error: Optional[str] = None

@router.get("/", response_model=List[InvoiceRecord])
async def list_invoices(
    search: Optional[str] = None,
    store: InvoiceStore = Depends(get_invoice_store)
):
    invoices = await store.list_all()
    return filter_invoices(invoices, search)

@router.get("/{invoice_id}", response_model=InvoiceRecord)
async def get_invoice(invoice_id: str, store: InvoiceStore = Depends(get_invoice_store)):
    invoice = await store.get_by_id(invoice_id)
    if not invoice:
        raise HTTPException(status_code=404, detail="Invoice not found")
    return invoice

@router.post("/", response_model=InvoiceRecord, status_code=201)
async def create_invoice(
    candidate: Dict[str, Any] = Body(...),
    store: InvoiceStore = Depends(get_invoice_store)
):
    try:
        return await store.create(candidate)
    except (ValidationError, DuplicateError) as e:
        raise HTTPException(status_code=400, detail=e.message)

@router.patch("/{invoice_id}", response_model=InvoiceRecord)
async def update_invoice(
    invoice_id: str,
    changes: Dict[str, Any] = Body(...),
    store: InvoiceStore = Depends(get_invoice_store)
):
    try:
        return await store.update(invoice_id, changes)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=e.message)

@router.post("/{invoice_id}/toggle", response_model=InvoiceRecord)
async def toggle_invoice_status(invoice_id: str, store: InvoiceStore = Depends(get_invoice_store)):
    try:
        return await toggle_status(store, invoice_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=e.message)

@router.delete("/{invoice_id}", status_code=204)
async def delete_invoice(invoice_id: str, store: InvoiceStore = Depends(get_invoice_store)):
    await store.delete(invoice_id)
    return Response(status_code=204)

async def process_upload(file: UploadFile, store: InvoiceStore, extractor: InvoiceExtractor) -> UploadResult:
    """Check, extract and store one uploaded file. Failures are reported, not raised."""
    filename = file.filename or "upload"
    try:
        # One byte past the limit is enough to detect an oversize file
        content = await file.read(settings.MAX_UPLOAD_BYTES + 1)
        check_upload(filename, file.content_type, len(content))
        candidate = await run_in_threadpool(extractor.extract, content, file.content_type)
        invoice = await store.create(candidate)
    except (UploadRejected, ExtractionError) as e:
        logger.warning(f"Upload of {filename} failed: {e}")
        return UploadResult(filename=filename, status="error", error=str(e))
    except (ValidationError, DuplicateError) as e:
        logger.warning(f"Upload of {filename} not stored: {e}")
        return UploadResult(filename=filename, status="error", error=e.message)
    except Exception as e:
        logger.exception(f"Unexpected error processing upload {filename}")
        return UploadResult(filename=filename, status="error", error=f"Processing failed: {e}")

    return UploadResult(filename=filename, status="success", invoice=invoice)

@router.post("/upload", response_model=List[UploadResult])
async def upload_invoices(
    files: List[UploadFile] = File(...),
    store: InvoiceStore = Depends(get_invoice_store),
    extractor: InvoiceExtractor = Depends(get_extractor)
):
    if not files:
        raise HTTPException(status_code=400, detail="Please select files")

    # Files are independent; each create is serialized by the store
    results = await asyncio.gather(*(process_upload(file, store, extractor) for file in files))
    return list(results)
