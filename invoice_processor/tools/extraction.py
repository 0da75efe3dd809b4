"""
Extraction collaborator: turns an uploaded invoice file into a candidate
record using a Groq vision model.

The store never sees file contents. This module only hands it a plain dict
with the five candidate fields, or raises ExtractionError.
"""
import io
import logging
import re
from typing import Any, Dict, Optional, Tuple

import pdf2image
from groq import GroqError
from pdf2image.exceptions import PDFInfoNotInstalledError, PDFPageCountError, PDFSyntaxError

from invoice_processor.config import settings
from invoice_processor.errors import ExtractionError, UploadRejected
from invoice_processor.models.invoice import REQUIRED_FIELDS
from invoice_processor.tools.groq_llm import GroqLLMTool, groq_tool

logger = logging.getLogger(__name__)

PDF_MIME_TYPE = "application/pdf"

PDF_PROMPT = (
    "Please analyze the invoice information in this PDF file and extract the following information: "
    "invoice number, invoice type, invoice date, amount, and vendor name. "
    "Please return in JSON format with keys: invoiceNumber, type, date, amount, vendor"
)

IMAGE_PROMPT = (
    "Please extract the following information from this invoice image: "
    "invoice number, invoice type, invoice date, amount, and vendor name. "
    "Please return in JSON format with keys: invoiceNumber, type, date, amount, vendor"
)

_LEADING_NUMBER = re.compile(r"\s*([-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?)")

def check_upload(filename: str, content_type: Optional[str], size: int, max_bytes: Optional[int] = None) -> None:
    """Reject anything that is not an image or a PDF, or is over the size limit."""
    limit = max_bytes if max_bytes is not None else settings.MAX_UPLOAD_BYTES
    if not content_type or not (content_type.startswith("image/") or content_type == PDF_MIME_TYPE):
        raise UploadRejected(f"{filename}: Unsupported file type")
    if size > limit:
        raise UploadRejected(f"{filename}: File size exceeds {limit // (1024 * 1024)}MB")

def parse_amount(value: Any) -> float:
    """
    Best-effort number parsing for model output. Reads the leading number of
    a string ("1250.00 EUR" -> 1250.0) and falls back to 0.0.
    """
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    match = _LEADING_NUMBER.match(str(value))
    if not match:
        return 0.0
    return float(match.group(1))

def normalize_candidate(raw: Any) -> Dict[str, Any]:
    """Shape parsed model output into a candidate dict for the store."""
    if isinstance(raw, list):
        if not raw:
            raise ExtractionError("No invoice data found in the file")
        raw = raw[0]
    if not isinstance(raw, dict):
        raise ExtractionError("Failed to parse invoice data. Please ensure the file format is correct")

    missing = [field for field in REQUIRED_FIELDS if not raw.get(field)]
    if missing:
        raise ExtractionError(f"Missing required fields: {', '.join(missing)}")

    return {
        "invoiceNumber": str(raw["invoiceNumber"]),
        "type": str(raw["type"]),
        "date": str(raw["date"]),
        "amount": parse_amount(raw["amount"]),
        "vendor": str(raw["vendor"]),
    }

class InvoiceExtractor:
    def __init__(self, llm: Optional[GroqLLMTool] = None):
        self.llm = llm or groq_tool

    def _to_image(self, content: bytes, mime_type: str) -> Tuple[bytes, str]:
        """The vision model takes images only; PDFs are sent as their first page."""
        if mime_type != PDF_MIME_TYPE:
            return content, mime_type
        try:
            pages = pdf2image.convert_from_bytes(content, first_page=1, last_page=1)
        except (PDFInfoNotInstalledError, PDFPageCountError, PDFSyntaxError) as e:
            raise ExtractionError(f"Could not render PDF: {e}") from e
        if not pages:
            raise ExtractionError("PDF has no pages")
        buffer = io.BytesIO()
        pages[0].save(buffer, format="PNG")
        return buffer.getvalue(), "image/png"

    def extract(self, content: bytes, mime_type: str) -> Dict[str, Any]:
        """Extract a candidate record from an invoice image or PDF."""
        prompt = PDF_PROMPT if mime_type == PDF_MIME_TYPE else IMAGE_PROMPT
        image, image_type = self._to_image(content, mime_type)
        try:
            raw = self.llm.generate_structured_from_image(prompt, image, image_type)
        except ValueError as e:
            raise ExtractionError("Failed to parse invoice data. Please ensure the file format is correct") from e
        except GroqError as e:
            raise ExtractionError(f"Extraction service error: {e}") from e

        candidate = normalize_candidate(raw)
        logger.info(f"Extracted invoice {candidate['invoiceNumber']} from {mime_type} file")
        return candidate

invoice_extractor = InvoiceExtractor()

def get_extractor() -> InvoiceExtractor:
    """Dependency for FastAPI."""
    return invoice_extractor
